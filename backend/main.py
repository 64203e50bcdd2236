# ---------------------------------------------------------
# backend/main.py
# Relai - Property Listings Backend
#
# Run: uvicorn backend.main:app --reload (from repo root)
#
# - FastAPI + SQLite
# - /api/all-properties, /api/properties/{id}   : listings with location/radius filters
# - /api/filter-options, /api/price-range       : filter dropdown data
# - /api/wizard-properties                      : Find My Home wizard
# - /api/property-nearby-places                 : amenities + transit (cached)
# - /api/contact-inquiries                      : lead capture
# - /api/blog/*                                 : public blog
# - /api/admin/*                                : blog admin + leads (bearer token)
# ---------------------------------------------------------

from __future__ import annotations

import time
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

try:
    from backend.config import CORS_ORIGINS, ENV, IS_PROD
    from backend.db import init_db
    from backend.routes_admin_blog import router as admin_blog_router
    from backend.routes_blog import router as blog_router
    from backend.routes_properties import router as properties_router
except ModuleNotFoundError:
    from config import CORS_ORIGINS, ENV, IS_PROD
    from db import init_db
    from routes_admin_blog import router as admin_blog_router
    from routes_blog import router as blog_router
    from routes_properties import router as properties_router

LOG_LINE_LIMIT = 80


# ---------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------
app = FastAPI(title="Relai Backend", version="0.1")

# CORS configuration from config module
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if IS_PROD else ["*"],  # Restrict origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    """One line per /api request: METHOD path status in Nms (truncated)."""
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        line = f"{request.method} {request.url.path} {response.status_code} in {elapsed_ms}ms"
        if len(line) > LOG_LINE_LIMIT:
            line = line[:LOG_LINE_LIMIT - 1] + "…"
        print(f"[API] {line}")
    return response


@app.middleware("http")
async def redirect_www(request: Request, call_next):
    """www.example.com/... -> example.com/... (301, path and query kept)."""
    host = request.headers.get("host", "")
    if host.lower().startswith("www."):
        target = request.url.replace(netloc=host[4:])
        return RedirectResponse(str(target), status_code=301)
    return await call_next(request)


app.include_router(properties_router)
app.include_router(blog_router)
app.include_router(admin_blog_router)

init_db()
print(f"[CONFIG] Relai backend ready (env={ENV})")


# ---------------------------------------------------------
# Routes
# ---------------------------------------------------------
@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}
