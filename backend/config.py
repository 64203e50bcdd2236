# backend/config.py
# Environment-aware configuration for the Relai property backend

import os
from typing import Literal

# Environment detection
ENV: Literal["dev", "staging", "prod"] = os.environ.get("ENV", "dev")  # type: ignore
IS_DEV = (ENV == "dev")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "prod")

# JWT and admin session configuration
SECRET_KEY = os.environ.get("SECRET_KEY", "relai-dev-secret-key")
ALGORITHM = "HS256"
ADMIN_SESSION_HOURS = int(os.environ.get("ADMIN_SESSION_HOURS", "24"))

# Default admin seeded by `python -m backend.migrate --seed-blog`
DEFAULT_ADMIN_USERNAME = os.environ.get("DEFAULT_ADMIN_USERNAME", "admin")
DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "admin123")

# Database configuration
# Relative paths resolve against the backend/ directory
DATABASE_PATH = os.environ.get("DATABASE_PATH", "relai.db")

# Google Maps (geocoding, places, distance matrix)
GOOGLE_API_KEY = os.environ.get("GOOGLE_API_KEY", "").strip()
DEFAULT_CITY = os.environ.get("DEFAULT_CITY", "Hyderabad")

# Flat-file cache for nearby places lookups (permanent, no expiry)
NEARBY_CACHE_PATH = os.environ.get(
    "NEARBY_CACHE_PATH",
    os.path.join(os.getcwd(), "nearby-places-cache.json"),
)

# Static root used to validate /property_images/... paths
PUBLIC_DIR = os.environ.get("PUBLIC_DIR", os.path.join(os.getcwd(), "public"))

# CORS origins (expand for staging/prod)
CORS_ORIGINS = [
    "http://localhost:8501",  # Streamlit default
    "http://127.0.0.1:8501",
]

if IS_STAGING:
    staging_url = os.environ.get("CORS_ORIGINS", "")
    if staging_url:
        CORS_ORIGINS.extend(staging_url.split(","))
    else:
        CORS_ORIGINS.append("https://staging.relai.world")

if IS_PROD:
    prod_origins = os.environ.get("CORS_ORIGINS", "")
    if prod_origins:
        CORS_ORIGINS.extend(prod_origins.split(","))
    else:
        CORS_ORIGINS.extend(["https://relai.world", "https://www.relai.world"])

print(f"[CONFIG] Environment: {ENV}")
print(f"[CONFIG] Database: SQLite ({DATABASE_PATH})")
print(f"[CONFIG] Google Maps: {'configured' if GOOGLE_API_KEY else 'not configured'}")
print(f"[CONFIG] Admin session: {ADMIN_SESSION_HOURS} hours")
