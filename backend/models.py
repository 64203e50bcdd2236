from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

# Enums
class PostStatus(str, Enum):
    draft = "draft"
    published = "published"

# Models
class BlogAdmin(BaseModel):
    id: Optional[int] = None
    username: str
    password_hash: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

class AdminSession(BaseModel):
    id: str  # uuid hex, carried in the JWT as "sid"
    admin_id: int
    created_at: datetime
    expires_at: datetime
    revoked_at: Optional[datetime] = None

class BlogCategory(BaseModel):
    id: Optional[int] = None
    name: str
    slug: str
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

class BlogPost(BaseModel):
    id: Optional[int] = None
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: Optional[str] = None
    featured_image: Optional[str] = None
    category: str = "Real Estate"
    status: PostStatus = PostStatus.draft
    author_id: Optional[int] = None
    published_at: Optional[datetime] = None  # set only while published
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
