"""
backend/routes_blog.py

Public blog endpoints. Only published posts are visible here.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Path

try:
    from backend.config import IS_DEV
    from backend.db import get_db, row_to_dict
    from backend.schemas_blog import BlogCategoryInfo, BlogPostPublic, BlogPostSummary
except ModuleNotFoundError:
    from config import IS_DEV
    from db import get_db, row_to_dict
    from schemas_blog import BlogCategoryInfo, BlogPostPublic, BlogPostSummary


router = APIRouter(
    prefix="/api/blog",
    tags=["blog"],
)

DEFAULT_AUTHOR = "Relai Team"
DEFAULT_CATEGORY = "Real Estate"

# Categories shown on the public blog (admins manage the blog_categories table)
PUBLIC_CATEGORIES = [
    BlogCategoryInfo(id=1, name="Real Estate", slug="real-estate"),
    BlogCategoryInfo(id=2, name="Investment Tips", slug="investment-tips"),
    BlogCategoryInfo(id=3, name="Market Analysis", slug="market-analysis"),
    BlogCategoryInfo(id=4, name="NRI Guide", slug="nri-guide"),
]


def _public_fields(row) -> Dict[str, Any]:
    record = row_to_dict(row)
    return {
        "id": record["id"],
        "title": record["title"],
        "slug": record["slug"],
        "excerpt": record.get("excerpt"),
        "content": record.get("content"),
        "featured_image": record.get("featured_image"),
        "category": record.get("category") or DEFAULT_CATEGORY,
        "published_at": record.get("published_at") or "",
        "author": DEFAULT_AUTHOR,
    }


@router.get("/posts", response_model=List[BlogPostSummary])
def list_published_posts() -> List[BlogPostSummary]:
    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id, title, slug, excerpt, featured_image, category, published_at
            FROM blog_posts
            WHERE status = 'published'
            ORDER BY published_at DESC
            """
        )
        rows = cur.fetchall()
    except sqlite3.Error as e:
        if IS_DEV:
            print(f"[BLOG] DB error: {e}")
        raise HTTPException(status_code=500, detail="Database error")
    finally:
        conn.close()

    if IS_DEV:
        print(f"[BLOG] {len(rows)} published posts")
    return [BlogPostSummary(**_public_fields(row)) for row in rows]


@router.get("/posts/{slug}", response_model=BlogPostPublic)
def get_published_post(slug: str = Path(..., max_length=200)) -> BlogPostPublic:
    conn = get_db()
    try:
        cur = conn.cursor()
        cur.execute("SELECT * FROM blog_posts WHERE slug = ?", (slug,))
        row = cur.fetchone()
    except sqlite3.Error as e:
        if IS_DEV:
            print(f"[BLOG] DB error: {e}")
        raise HTTPException(status_code=500, detail="Database error")
    finally:
        conn.close()

    if not row or row["status"] != "published":
        raise HTTPException(status_code=404, detail="Post not found")
    return BlogPostPublic(**_public_fields(row))


@router.get("/categories", response_model=List[BlogCategoryInfo])
def list_categories() -> List[BlogCategoryInfo]:
    return PUBLIC_CATEGORIES
