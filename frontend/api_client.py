"""
frontend/api_client.py
Centralized API client for all backend requests.

This module ensures:
1. Admin calls automatically attach the Authorization header
2. A 401 on an admin call clears the admin session
3. Centralized API base URL configuration (dev/staging/prod)
4. Consistent connection error handling across pages
"""

import time
from typing import Any, Dict, Optional, Literal
import requests
import streamlit as st

try:
    from frontend.config import REQUEST_TIMEOUT, get_api_base_url, IS_DEV
except ModuleNotFoundError:
    from config import REQUEST_TIMEOUT, get_api_base_url, IS_DEV

try:
    from frontend.auth import get_admin_header, clear_admin_session
except ModuleNotFoundError:
    from auth import get_admin_header, clear_admin_session


__all__ = ["api_request", "get_api_base_url", "requires_admin"]

ADMIN_LOGIN_PATH = "/api/admin/blog/login"

# Admin-only endpoints outside the /api/admin prefix
ADMIN_EXTRA_PATHS = ("/api/transform-and-import-properties",)


def requires_admin(path: str) -> bool:
    """
    Check if an endpoint needs the admin bearer token.

    Everything under /api/admin is protected except the login endpoint.
    """
    path = path.split("?", 1)[0]
    if path == ADMIN_LOGIN_PATH:
        return False
    return path.startswith("/api/admin/") or path in ADMIN_EXTRA_PATHS


def api_request(
    method: Literal["GET", "POST", "PUT", "DELETE"],
    path: str,
    json: Optional[Any] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: int = REQUEST_TIMEOUT,
) -> Optional[requests.Response]:
    """
    Make an API request with admin auth attachment and error handling.

    This is the ONLY function that should make backend API calls.

    Security:
    - Never logs or prints tokens/auth headers
    - Uses configured base URL with environment validation

    Args:
        method: HTTP method (GET, POST, PUT, DELETE)
        path: API endpoint path (e.g., "/api/all-properties")
        json: JSON body for POST/PUT requests
        params: Query parameters
        timeout: Request timeout in seconds (REQUEST_TIMEOUT by default)

    Returns:
        Response object, or None on connection errors and expired admin sessions
        (a user-facing message has already been shown)
    """
    try:
        base_url = get_api_base_url()
    except RuntimeError as e:
        st.error(f"Configuration error: {str(e)}")
        return None

    url = f"{base_url}{path}"
    headers = {"Accept": "application/json"}
    if json is not None:
        headers["Content-Type"] = "application/json"

    admin_call = requires_admin(path)
    if admin_call:
        auth_headers = get_admin_header()
        if not auth_headers:
            st.error("Admin login required.")
            return None
        headers.update(auth_headers)

    try:
        resp = requests.request(method, url, json=json, params=params, headers=headers, timeout=timeout)
    except requests.exceptions.Timeout:
        if IS_DEV:
            print(f"[API] Timeout on {method} {path}")
        st.error(f"Request timed out after {timeout}s. Please try again.")
        _update_backend_status("timeout")
        return None
    except requests.exceptions.ConnectionError:
        if IS_DEV:
            print(f"[API] Connection error on {method} {path}")
        st.error(f"Cannot connect to backend at {base_url}. Please check your connection.")
        _update_backend_status("connection_error")
        return None
    except requests.exceptions.RequestException as e:
        if IS_DEV:
            print(f"[API] Request error on {method} {path}: {type(e).__name__}")
        st.error(f"Unexpected error: {type(e).__name__}")
        _update_backend_status("error")
        return None

    _update_backend_status("ok")

    if resp.status_code == 401 and admin_call:
        if IS_DEV:
            print(f"[API] 401 on {path}, clearing admin session")
        _handle_session_expired()
        return None

    return resp


def _handle_session_expired() -> None:
    st.warning("Your admin session has expired. Please log in again.")
    clear_admin_session()


def _update_backend_status(status: str) -> None:
    """Record backend connection status ("ok", "timeout", "connection_error", "error")."""
    ss = st.session_state
    ss["_backend_status"] = status
    ss["_backend_last_ping_time"] = time.time()
    if status != "ok":
        ss["_backend_was_down"] = True
