# frontend/test_api_client.py
# Unit tests for admin token attachment and 401 handling in the API client

import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from frontend import api_client
from frontend.api_client import api_request, requires_admin


def make_response(status_code: int) -> MagicMock:
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    return resp


@pytest.fixture
def fake_st():
    """Streamlit stand-in with a plain dict as session state."""
    st = MagicMock()
    st.session_state = {}
    with patch.object(api_client, "st", st), patch.object(
        api_client, "get_api_base_url", return_value="http://127.0.0.1:8000"
    ):
        yield st


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/api/admin/blog/posts", True),
        ("/api/admin/blog/posts/3", True),
        ("/api/admin/contact-inquiries", True),
        ("/api/transform-and-import-properties", True),
        ("/api/admin/blog/login", False),
        ("/api/all-properties", False),
        ("/api/blog/posts", False),
        ("/api/all-properties?location=kondapur", False),
    ],
)
def test_requires_admin(path, expected):
    assert requires_admin(path) is expected


def test_public_request_has_no_auth_header(fake_st):
    with patch.object(api_client.requests, "request", return_value=make_response(200)) as req, patch.object(
        api_client, "get_admin_header", return_value={"Authorization": "Bearer t"}
    ):
        resp = api_request("GET", "/api/all-properties", params={"location": "Kondapur"})

    assert resp.status_code == 200
    _, kwargs = req.call_args
    assert "Authorization" not in kwargs["headers"]
    assert kwargs["params"] == {"location": "Kondapur"}
    assert fake_st.session_state["_backend_status"] == "ok"


def test_admin_request_attaches_token(fake_st):
    with patch.object(api_client.requests, "request", return_value=make_response(200)) as req, patch.object(
        api_client, "get_admin_header", return_value={"Authorization": "Bearer t"}
    ):
        api_request("GET", "/api/admin/blog/posts")

    args, kwargs = req.call_args
    assert args == ("GET", "http://127.0.0.1:8000/api/admin/blog/posts")
    assert kwargs["headers"]["Authorization"] == "Bearer t"


def test_admin_request_without_token_is_not_sent(fake_st):
    with patch.object(api_client.requests, "request") as req, patch.object(
        api_client, "get_admin_header", return_value={}
    ):
        assert api_request("GET", "/api/admin/blog/posts") is None
    req.assert_not_called()
    fake_st.error.assert_called_once()


def test_admin_401_clears_session(fake_st):
    with patch.object(api_client.requests, "request", return_value=make_response(401)), patch.object(
        api_client, "get_admin_header", return_value={"Authorization": "Bearer t"}
    ), patch.object(api_client, "clear_admin_session") as clear:
        assert api_request("DELETE", "/api/admin/blog/posts/3") is None
    clear.assert_called_once()


def test_login_401_is_returned_to_caller(fake_st):
    with patch.object(api_client.requests, "request", return_value=make_response(401)), patch.object(
        api_client, "clear_admin_session"
    ) as clear:
        resp = api_request("POST", "/api/admin/blog/login", json={"username": "admin", "password": "x"})
    assert resp.status_code == 401
    clear.assert_not_called()


def test_connection_error_returns_none(fake_st):
    with patch.object(api_client.requests, "request", side_effect=requests.exceptions.ConnectionError()):
        assert api_request("GET", "/api/all-properties") is None
    assert fake_st.session_state["_backend_status"] == "connection_error"
    assert fake_st.session_state["_backend_was_down"] is True
