"""
backend/schemas_blog.py

Pydantic schemas for the public blog and the admin blog endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

try:
    from backend.models import PostStatus
except ModuleNotFoundError:
    from models import PostStatus


# ========================================================================
# PUBLIC BLOG SCHEMAS
# ========================================================================

class BlogPostSummary(BaseModel):
    """Published post as listed on the blog page."""
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    category: str = "Real Estate"
    published_at: str = Field("", description="ISO timestamp, empty if never published")
    author: str = "Relai Team"


class BlogPostPublic(BlogPostSummary):
    content: Optional[str] = None


class BlogCategoryInfo(BaseModel):
    id: int
    name: str
    slug: str


# ========================================================================
# ADMIN SCHEMAS
# ========================================================================

class AdminLoginRequest(BaseModel):
    # Missing credentials are a 401, not a 422
    username: Optional[str] = None
    password: Optional[str] = None


class AdminUser(BaseModel):
    id: int
    username: str


class AdminLoginResponse(BaseModel):
    token: str
    user: AdminUser


class BlogPostWrite(BaseModel):
    """Body for creating or replacing a post."""
    title: str = Field(..., min_length=1, max_length=300)
    slug: str = Field(..., min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    excerpt: Optional[str] = None
    content: Optional[str] = None
    featured_image: Optional[str] = None
    category: Optional[str] = None
    status: PostStatus = PostStatus.draft

    @field_validator("title", "slug", mode="before")
    @classmethod
    def trim(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class BlogPostAdmin(BaseModel):
    """Full post row as seen by admins (drafts included)."""
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: Optional[str] = None
    featured_image: Optional[str] = None
    category: Optional[str] = None
    status: PostStatus
    author_id: Optional[int] = None
    published_at: Optional[str] = None
    created_at: str
    updated_at: str


class BlogCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = None


class BlogCategoryResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    created_at: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
