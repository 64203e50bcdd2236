# frontend/test_config.py
# Unit tests for backend URL resolution per environment

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from frontend.config import LOCAL_BACKEND_URL, BackendURLError, resolve_backend_url


def test_local_defaults_to_uvicorn_address():
    assert resolve_backend_url({}, env="local") == LOCAL_BACKEND_URL


def test_local_accepts_plain_http():
    assert resolve_backend_url({"BACKEND_URL": "http://localhost:9000/"}, env="local") == "http://localhost:9000"


def test_backend_url_wins_over_legacy_name():
    environ = {"BACKEND_URL": "https://api.relai.world", "API_BASE_URL": "https://old.relai.world"}
    assert resolve_backend_url(environ, env="production") == "https://api.relai.world"


def test_legacy_name_used_when_backend_url_blank():
    environ = {"BACKEND_URL": "  ", "API_BASE_URL": "https://old.relai.world/"}
    assert resolve_backend_url(environ, env="staging") == "https://old.relai.world"


@pytest.mark.parametrize("env", ["staging", "production"])
def test_deployed_frontend_needs_a_url(env):
    with pytest.raises(BackendURLError):
        resolve_backend_url({}, env=env)


@pytest.mark.parametrize(
    "url",
    ["http://api.relai.world", "https://localhost:8000", "https://127.0.0.1", "https://0.0.0.0:8000"],
)
def test_deployed_frontend_rejects_insecure_or_loopback(url):
    with pytest.raises(BackendURLError):
        resolve_backend_url({"BACKEND_URL": url}, env="production")


def test_url_errors_are_runtime_errors():
    # api_client reports RuntimeError as a configuration problem
    assert issubclass(BackendURLError, RuntimeError)
