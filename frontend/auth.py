"""
frontend/auth.py
Admin session state for the Relai frontend.

Only blog administrators log in; browsing listings and reading the blog
never needs a token. Every Streamlit rerun starts from the top of the
script, so init_admin_state() must run at the top of main() to make sure
the keys exist before any page reads them.

- init_admin_state(): idempotent key setup
- set_admin_session(): store token + admin user after login
- clear_admin_session(): wipe state on logout or a 401
- get_admin_header(): Authorization header for /api/admin calls
"""

from typing import Any, Dict, Optional
import streamlit as st


def init_admin_state() -> None:
    """Initialize admin session keys. Safe to call on every rerun."""
    ss = st.session_state
    ss.setdefault("admin_token", None)
    ss.setdefault("admin_user", None)
    ss.setdefault("is_admin", False)

    # Keep the flag in sync with the token
    ss["is_admin"] = bool(ss["admin_token"])


def set_admin_session(token: str, user: Dict[str, Any]) -> None:
    """Store the admin token and user returned by /api/admin/blog/login."""
    ss = st.session_state
    ss["admin_token"] = token
    ss["admin_user"] = user
    ss["is_admin"] = True


def clear_admin_session() -> None:
    """Clear admin state (logout or expired session). Safe to call repeatedly."""
    ss = st.session_state
    ss["admin_token"] = None
    ss["admin_user"] = None
    ss["is_admin"] = False


def is_admin() -> bool:
    return bool(st.session_state.get("admin_token"))


def get_admin_user() -> Optional[Dict[str, Any]]:
    return st.session_state.get("admin_user")


def get_admin_header() -> Dict[str, str]:
    """
    Returns:
        {"Authorization": "Bearer <token>"} while logged in, {} otherwise
    """
    token = st.session_state.get("admin_token")
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}
