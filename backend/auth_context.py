"""
backend/auth_context.py

Admin authentication primitives for FastAPI dependency injection.

Contains:
- hash_password / verify_password: salted PBKDF2 password hashes
- create_admin_session / revoke_admin_session: server-side session rows
- create_admin_token / verify_token: JWT carrying the session id ("sid")
- AdminContext + require_admin_context: dependency for /api/admin routes

A token is only accepted while its session row exists, is not revoked and
has not expired, so logout takes effect before the JWT's own expiry.

This module MUST NOT import backend.main to avoid circular dependencies.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

try:
    from backend.config import (
        SECRET_KEY,
        ALGORITHM,
        ADMIN_SESSION_HOURS,
        IS_DEV,
    )
    from backend.db import get_db
    from backend.models import AdminSession, BlogAdmin
except ModuleNotFoundError:
    from config import (
        SECRET_KEY,
        ALGORITHM,
        ADMIN_SESSION_HOURS,
        IS_DEV,
    )
    from db import get_db
    from models import AdminSession, BlogAdmin

# auto_error=False so a missing header yields our own 401 message
security = HTTPBearer(auto_error=False)

PBKDF2_ITERATIONS = 260_000

INVALID_TOKEN = "Invalid or expired token"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat()


# ---------------------------------------------------------
# Password hashing
# ---------------------------------------------------------
def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Return 'pbkdf2_sha256$<iterations>$<salt>$<hex digest>'."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, iterations, salt, expected = stored.split("$", 3)
        rounds = int(iterations)
    except (AttributeError, ValueError):
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), rounds)
    return hmac.compare_digest(digest.hex(), expected)


def authenticate_admin(conn: sqlite3.Connection, username: str, password: str) -> Optional[BlogAdmin]:
    """Return the admin for valid credentials, else None."""
    cur = conn.cursor()
    cur.execute(
        "SELECT id, username, password_hash, created_at FROM blog_admins WHERE username = ?",
        (username,),
    )
    row = cur.fetchone()
    if not row or not verify_password(password, row["password_hash"]):
        return None
    return BlogAdmin(id=row["id"], username=row["username"], password_hash=row["password_hash"])


# ---------------------------------------------------------
# Sessions
# ---------------------------------------------------------
def create_admin_session(conn: sqlite3.Connection, admin_id: int) -> AdminSession:
    now = _utcnow()
    session = AdminSession(
        id=uuid.uuid4().hex,
        admin_id=admin_id,
        created_at=now,
        expires_at=now + timedelta(hours=ADMIN_SESSION_HOURS),
    )
    conn.execute(
        "INSERT INTO admin_sessions (id, admin_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
        (session.id, session.admin_id, _iso(session.created_at), _iso(session.expires_at)),
    )
    conn.commit()
    if IS_DEV:
        print(f"[ADMIN] Session {session.id[:8]}... created for admin_id={admin_id}")
    return session


def revoke_admin_session(conn: sqlite3.Connection, session_id: str) -> None:
    conn.execute(
        "UPDATE admin_sessions SET revoked_at = ? WHERE id = ? AND revoked_at IS NULL",
        (_iso(_utcnow()), session_id),
    )
    conn.commit()


# ---------------------------------------------------------
# JWT
# ---------------------------------------------------------
def create_admin_token(admin_id: int, username: str, session: AdminSession) -> str:
    payload = {
        "sub": str(admin_id),
        "username": username,
        "sid": session.id,
        "iat": session.created_at,
        "exp": session.expires_at,
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify an admin JWT and return its payload.

    Raises:
        HTTPException(401): If the token is expired, malformed or signed with another key
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail=INVALID_TOKEN)


# ---------------------------------------------------------
# AdminContext
# ---------------------------------------------------------
class AdminContext(BaseModel):
    """Authenticated admin derived from the token and its live session row."""
    admin_id: int
    username: str
    session_id: str


def require_admin_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AdminContext:
    """
    Auth dependency for admin routes.

    Raises:
        HTTPException(401): "No token provided" without a bearer token,
            "Invalid or expired token" for a bad JWT or a dead session
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="No token provided")

    payload = verify_token(credentials.credentials)
    session_id = payload.get("sid")
    if not session_id:
        print("[AUTH] Missing session id in token payload")
        raise HTTPException(status_code=401, detail=INVALID_TOKEN)

    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT s.admin_id, s.expires_at, s.revoked_at, a.username
            FROM admin_sessions s
            JOIN blog_admins a ON a.id = s.admin_id
            WHERE s.id = ?
            """,
            (session_id,),
        )
        row = cur.fetchone()
    except sqlite3.Error as e:
        if IS_DEV:
            print(f"[AUTH] DB error: {e}")
        raise HTTPException(status_code=500, detail="Database error")
    finally:
        conn.close()

    if not row or row["revoked_at"]:
        print(f"[AUTH] Unknown or revoked session {session_id[:8]}...")
        raise HTTPException(status_code=401, detail=INVALID_TOKEN)

    if datetime.fromisoformat(row["expires_at"]) <= _utcnow():
        print(f"[AUTH] Expired session {session_id[:8]}...")
        raise HTTPException(status_code=401, detail=INVALID_TOKEN)

    ctx = AdminContext(admin_id=row["admin_id"], username=row["username"], session_id=session_id)
    if IS_DEV:
        print(f"[AUTH] Authenticated admin_id={ctx.admin_id}")
    return ctx
