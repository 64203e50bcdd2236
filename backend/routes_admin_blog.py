"""
backend/routes_admin_blog.py

Admin endpoints for blog content and captured leads.

Security guarantees:
- Login is the only unauthenticated endpoint
- Every other endpoint requires a bearer token whose session is live
  (require_admin_context)
- Logout revokes the session server-side, invalidating the token
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path

try:
    from backend.auth_context import (
        AdminContext,
        authenticate_admin,
        create_admin_session,
        create_admin_token,
        require_admin_context,
        revoke_admin_session,
    )
    from backend.config import IS_DEV
    from backend.db import get_db, row_to_dict
    from backend.models import PostStatus
    from backend.schemas_blog import (
        AdminLoginRequest,
        AdminLoginResponse,
        AdminUser,
        BlogCategoryCreate,
        BlogCategoryResponse,
        BlogPostAdmin,
        BlogPostWrite,
        MessageResponse,
    )
    from backend.schemas_properties import ContactInquiryResponse
except ModuleNotFoundError:
    from auth_context import (
        AdminContext,
        authenticate_admin,
        create_admin_session,
        create_admin_token,
        require_admin_context,
        revoke_admin_session,
    )
    from config import IS_DEV
    from db import get_db, row_to_dict
    from models import PostStatus
    from schemas_blog import (
        AdminLoginRequest,
        AdminLoginResponse,
        AdminUser,
        BlogCategoryCreate,
        BlogCategoryResponse,
        BlogPostAdmin,
        BlogPostWrite,
        MessageResponse,
    )
    from schemas_properties import ContactInquiryResponse


router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
)

DEFAULT_CATEGORY = "Real Estate"


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


def _db_error(e: sqlite3.Error) -> HTTPException:
    if IS_DEV:
        print(f"[ADMIN] DB error: {e}")
    return HTTPException(status_code=500, detail="Database error")


def _slug_taken(cur: sqlite3.Cursor, slug: str, exclude_id: Optional[int] = None) -> bool:
    if exclude_id is None:
        cur.execute("SELECT id FROM blog_posts WHERE slug = ?", (slug,))
    else:
        cur.execute("SELECT id FROM blog_posts WHERE slug = ? AND id != ?", (slug, exclude_id))
    return cur.fetchone() is not None


# ---------------------------------------------------------
# Login / logout
# ---------------------------------------------------------
@router.post("/blog/login", response_model=AdminLoginResponse)
def admin_login(request: AdminLoginRequest) -> AdminLoginResponse:
    if not request.username or not request.password:
        raise HTTPException(status_code=401, detail="Username and password are required")

    conn = get_db()
    try:
        admin = authenticate_admin(conn, request.username, request.password)
        if admin is None:
            print(f"[ADMIN] Failed login for username={request.username!r}")
            raise HTTPException(status_code=401, detail="Invalid credentials")
        session = create_admin_session(conn, admin.id)
    except sqlite3.Error as e:
        raise _db_error(e)
    finally:
        conn.close()

    print(f"[ADMIN] Login: admin_id={admin.id}")
    return AdminLoginResponse(
        token=create_admin_token(admin.id, admin.username, session),
        user=AdminUser(id=admin.id, username=admin.username),
    )


@router.post("/blog/logout", response_model=MessageResponse)
def admin_logout(ctx: AdminContext = Depends(require_admin_context)) -> MessageResponse:
    conn = get_db()
    try:
        revoke_admin_session(conn, ctx.session_id)
    except sqlite3.Error as e:
        raise _db_error(e)
    finally:
        conn.close()
    print(f"[ADMIN] Logout: admin_id={ctx.admin_id}")
    return MessageResponse(message="Logged out successfully")


# ---------------------------------------------------------
# Posts
# ---------------------------------------------------------
@router.get("/blog/posts", response_model=List[BlogPostAdmin])
def admin_list_posts(ctx: AdminContext = Depends(require_admin_context)) -> List[BlogPostAdmin]:
    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute("SELECT * FROM blog_posts ORDER BY created_at DESC, id DESC")
        rows = cur.fetchall()
    except sqlite3.Error as e:
        raise _db_error(e)
    finally:
        conn.close()
    return [BlogPostAdmin(**row_to_dict(row)) for row in rows]


@router.post("/blog/posts", response_model=BlogPostAdmin, status_code=201)
def admin_create_post(
    request: BlogPostWrite,
    ctx: AdminContext = Depends(require_admin_context),
) -> BlogPostAdmin:
    now = _now()
    published_at = now if request.status == PostStatus.published else None

    conn = get_db()
    try:
        cur = conn.cursor()
        if _slug_taken(cur, request.slug):
            raise HTTPException(status_code=400, detail="Slug already exists")
        cur.execute(
            """
            INSERT INTO blog_posts (
                title, slug, excerpt, content, featured_image, category,
                status, author_id, published_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                request.title,
                request.slug,
                request.excerpt,
                request.content,
                request.featured_image or None,
                request.category or DEFAULT_CATEGORY,
                request.status.value,
                ctx.admin_id,
                published_at,
                now,
                now,
            ),
        )
        post_id = cur.lastrowid
        conn.commit()
        cur.execute("SELECT * FROM blog_posts WHERE id = ?", (post_id,))
        row = cur.fetchone()
    except sqlite3.Error as e:
        raise _db_error(e)
    finally:
        conn.close()

    print(f"[BLOG] Created post id={post_id} status={request.status.value} by admin_id={ctx.admin_id}")
    return BlogPostAdmin(**row_to_dict(row))


@router.put("/blog/posts/{post_id}", response_model=BlogPostAdmin)
def admin_update_post(
    request: BlogPostWrite,
    post_id: int = Path(..., ge=1),
    ctx: AdminContext = Depends(require_admin_context),
) -> BlogPostAdmin:
    """
    Replace a post. Publishing stamps published_at (kept if the post was
    already published); moving back to draft clears it.
    """
    now = _now()
    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute("SELECT status, published_at FROM blog_posts WHERE id = ?", (post_id,))
        existing = cur.fetchone()
        if not existing:
            raise HTTPException(status_code=404, detail="Post not found")
        if _slug_taken(cur, request.slug, exclude_id=post_id):
            raise HTTPException(status_code=400, detail="Slug already exists")

        if request.status == PostStatus.published:
            published_at = existing["published_at"] if existing["status"] == "published" and existing["published_at"] else now
        else:
            published_at = None

        cur.execute(
            """
            UPDATE blog_posts
            SET title = ?, slug = ?, excerpt = ?, content = ?, featured_image = ?,
                category = ?, status = ?, published_at = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                request.title,
                request.slug,
                request.excerpt,
                request.content,
                request.featured_image or None,
                request.category or DEFAULT_CATEGORY,
                request.status.value,
                published_at,
                now,
                post_id,
            ),
        )
        conn.commit()
        cur.execute("SELECT * FROM blog_posts WHERE id = ?", (post_id,))
        row = cur.fetchone()
    except sqlite3.Error as e:
        raise _db_error(e)
    finally:
        conn.close()

    if IS_DEV:
        print(f"[BLOG] Updated post id={post_id} status={request.status.value}")
    return BlogPostAdmin(**row_to_dict(row))


@router.delete("/blog/posts/{post_id}", response_model=MessageResponse)
def admin_delete_post(
    post_id: int = Path(..., ge=1),
    ctx: AdminContext = Depends(require_admin_context),
) -> MessageResponse:
    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute("DELETE FROM blog_posts WHERE id = ?", (post_id,))
        deleted = cur.rowcount
        conn.commit()
    except sqlite3.Error as e:
        raise _db_error(e)
    finally:
        conn.close()

    if not deleted:
        raise HTTPException(status_code=404, detail="Post not found")
    print(f"[BLOG] Deleted post id={post_id} by admin_id={ctx.admin_id}")
    return MessageResponse(message="Post deleted successfully")


# ---------------------------------------------------------
# Categories
# ---------------------------------------------------------
@router.get("/blog/categories", response_model=List[BlogCategoryResponse])
def admin_list_categories(ctx: AdminContext = Depends(require_admin_context)) -> List[BlogCategoryResponse]:
    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute("SELECT * FROM blog_categories ORDER BY name")
        rows = cur.fetchall()
    except sqlite3.Error as e:
        raise _db_error(e)
    finally:
        conn.close()
    return [BlogCategoryResponse(**row_to_dict(row)) for row in rows]


@router.post("/blog/categories", response_model=BlogCategoryResponse, status_code=201)
def admin_create_category(
    request: BlogCategoryCreate,
    ctx: AdminContext = Depends(require_admin_context),
) -> BlogCategoryResponse:
    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute("SELECT id FROM blog_categories WHERE slug = ?", (request.slug,))
        if cur.fetchone():
            raise HTTPException(status_code=400, detail="Category slug already exists")
        cur.execute(
            "INSERT INTO blog_categories (name, slug, description, created_at) VALUES (?, ?, ?, ?)",
            (request.name.strip(), request.slug, request.description, _now()),
        )
        category_id = cur.lastrowid
        conn.commit()
        cur.execute("SELECT * FROM blog_categories WHERE id = ?", (category_id,))
        row = cur.fetchone()
    except sqlite3.Error as e:
        raise _db_error(e)
    finally:
        conn.close()
    print(f"[BLOG] Created category {request.slug!r}")
    return BlogCategoryResponse(**row_to_dict(row))


# ---------------------------------------------------------
# Leads
# ---------------------------------------------------------
@router.get("/contact-inquiries", response_model=List[ContactInquiryResponse])
def admin_list_inquiries(ctx: AdminContext = Depends(require_admin_context)) -> List[ContactInquiryResponse]:
    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute("SELECT * FROM contact_inquiries ORDER BY created_at DESC, id DESC")
        rows = cur.fetchall()
    except sqlite3.Error as e:
        raise _db_error(e)
    finally:
        conn.close()
    return [ContactInquiryResponse(**row_to_dict(row)) for row in rows]
