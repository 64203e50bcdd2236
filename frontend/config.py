# frontend/config.py
# Settings for the Relai Streamlit app, read once from the environment

import os
from typing import Literal, Mapping, Optional
from urllib.parse import urlparse

Env = Literal["local", "staging", "production"]

_raw_env = os.environ.get("ENV", "production").strip().lower()
ENV: Env = _raw_env if _raw_env in ("local", "staging", "production") else "production"  # type: ignore

IS_LOCAL = (ENV == "local")
IS_DEV = IS_LOCAL

# Where `uvicorn backend.main:app` listens by default
LOCAL_BACKEND_URL = "http://127.0.0.1:8000"

# Checked in order; API_BASE_URL is the older name
BACKEND_URL_VARS = ("BACKEND_URL", "API_BASE_URL")

LOOPBACK_HOSTS = ("localhost", "127.0.0.1", "0.0.0.0")

# Listing pages
DEFAULT_CITY = os.environ.get("DEFAULT_CITY", "Hyderabad")
MAX_COMPARE = 4
REQUEST_TIMEOUT = int(os.environ.get("REQUEST_TIMEOUT", "20"))


class BackendURLError(RuntimeError):
    """The backend URL is missing or not allowed for this environment."""


def resolve_backend_url(environ: Optional[Mapping[str, str]] = None, env: str = ENV) -> str:
    """
    Backend base URL without a trailing slash.

    Local runs may talk to any URL and fall back to LOCAL_BACKEND_URL.
    Staging and production need an explicit https URL on a non-loopback host.
    """
    environ = os.environ if environ is None else environ
    url = ""
    for name in BACKEND_URL_VARS:
        url = (environ.get(name) or "").strip().rstrip("/")
        if url:
            break

    if env == "local":
        return url or LOCAL_BACKEND_URL
    if not url:
        raise BackendURLError(f"Set BACKEND_URL for the {env} frontend (https, not localhost)")

    parsed = urlparse(url)
    if parsed.scheme != "https":
        raise BackendURLError(f"The {env} frontend must call the backend over https, got {url}")
    if parsed.hostname in LOOPBACK_HOSTS:
        raise BackendURLError(f"The {env} frontend cannot call a loopback backend, got {url}")
    return url


def get_api_base_url() -> str:
    return resolve_backend_url()


try:
    _startup_url = get_api_base_url()
except BackendURLError as e:
    _startup_url = "not configured"
    print(f"[CONFIG] CRITICAL: {e}")

print(f"[CONFIG] Environment: {ENV}")
print(f"[CONFIG] Backend URL: {_startup_url}")
