"""
BlogSpace Backend — Blog Request/Response Schemas
===================================================

What:  Contracts for post creation/update, listing, detail, likes, comments.
Who:   Used by routes.blogs, services.blog_service, and the client SDK.

Create vs. Update:
    BlogCreate requires title/content/excerpt/category. BlogUpdate has the
    same fields, all optional; the service applies only the fields that
    were present in the request (model_dump(exclude_unset=True)). Both
    share the per-field rules in _BlogRules, so a field accepted at
    creation is accepted by update and vice versa.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from blogspace.models.blog import CATEGORIES, STATUSES
from blogspace.schemas.common import CamelModel
from blogspace.schemas.user import AuthorSummary

MAX_TAGS = 10
MAX_TAG_LENGTH = 20
MAX_GALLERY_ITEMS = 20
PLACEMENTS = ("header", "inline", "footer")


class MediaItem(CamelModel):
    """A post's primary media reference (image, video, or none)."""
    type: str = "image"
    url: str
    public_id: Optional[str] = None
    format: Optional[str] = None
    size: Optional[int] = None
    duration: Optional[float] = None

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in ("image", "video", "none"):
            raise ValueError("Media type must be image, video, or none")
        return v


class GalleryItem(CamelModel):
    """One entry of a post's media gallery."""
    type: str
    url: Optional[str] = Field(default=None, validate_default=True)
    public_id: Optional[str] = None
    format: Optional[str] = None
    size: Optional[int] = None
    duration: Optional[float] = None
    order: Optional[int] = None
    placement: str = "header"

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in ("image", "video"):
            raise ValueError("Each media item type must be image or video")
        return v

    @field_validator("url")
    @classmethod
    def require_url(cls, v: Optional[str]) -> str:
        if not v:
            raise ValueError("Each media item must have a url")
        return v

    @field_validator("placement")
    @classmethod
    def validate_placement(cls, v: str) -> str:
        if v not in PLACEMENTS:
            raise ValueError("Placement must be header, inline, or footer")
        return v


class _BlogRules(CamelModel):
    """Per-field validation shared by BlogCreate and BlogUpdate. None passes through."""

    @field_validator("title", check_fields=False)
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not 5 <= len(v) <= 200:
            raise ValueError("Title must be between 5 and 200 characters")
        return v

    @field_validator("content", check_fields=False)
    @classmethod
    def validate_content(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.strip()) < 10:
            raise ValueError("Content must be at least 10 characters")
        return v

    @field_validator("excerpt", check_fields=False)
    @classmethod
    def validate_excerpt(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not 10 <= len(v) <= 300:
            raise ValueError("Excerpt must be between 10 and 300 characters")
        return v

    @field_validator("category", check_fields=False)
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in CATEGORIES:
            raise ValueError("Invalid category")
        return v

    @field_validator("tags", check_fields=False)
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        if len(v) > MAX_TAGS:
            raise ValueError(f"Maximum {MAX_TAGS} tags allowed")
        tags = [tag.strip() for tag in v]
        if any(not 1 <= len(tag) <= MAX_TAG_LENGTH for tag in tags):
            raise ValueError(f"Each tag must be between 1 and {MAX_TAG_LENGTH} characters")
        return tags

    @field_validator("media_gallery", check_fields=False)
    @classmethod
    def validate_gallery(cls, v: Optional[List[GalleryItem]]) -> Optional[List[GalleryItem]]:
        if v is None:
            return v
        if len(v) > MAX_GALLERY_ITEMS:
            raise ValueError(f"Media gallery must be an array (max {MAX_GALLERY_ITEMS} items)")
        # Missing order defaults to the item's position
        for index, item in enumerate(v):
            if item.order is None:
                item.order = index
        return v

    @field_validator("status", check_fields=False)
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in STATUSES:
            raise ValueError("Invalid status")
        return v


class BlogCreate(_BlogRules):
    title: str
    content: str
    excerpt: str
    category: str
    tags: List[str] = Field(default_factory=list)
    media: Optional[MediaItem] = None
    media_gallery: List[GalleryItem] = Field(default_factory=list)
    status: str = "draft"


class BlogUpdate(_BlogRules):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    media: Optional[MediaItem] = None
    media_gallery: Optional[List[GalleryItem]] = None
    status: Optional[str] = None


class CommentCreate(CamelModel):
    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        v = v.strip()
        if not 1 <= len(v) <= 1000:
            raise ValueError("Comment must be between 1 and 1000 characters")
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class CommentResponse(CamelModel):
    id: uuid.UUID
    content: str
    user: AuthorSummary
    created_at: datetime


class BlogResponse(CamelModel):
    """
    A post as it appears in listings and mutation responses.

    media and author.avatar are never null: missing values are replaced
    with placeholders before the response is built.
    """
    id: uuid.UUID
    title: str
    content: str
    excerpt: str
    category: str
    tags: List[str]
    status: str
    media: MediaItem
    media_gallery: List[GalleryItem]
    author: AuthorSummary
    like_count: int = 0
    comment_count: int = 0
    is_liked: bool = False
    views: int = 0
    read_time: int = 1
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class BlogDetailResponse(BlogResponse):
    comments: List[CommentResponse] = Field(default_factory=list)


class BlogPage(CamelModel):
    """The one list contract: GET /blogs, /blogs/my-posts, /blogs/user/{id}."""
    items: List[BlogResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class LikeResponse(CamelModel):
    message: str = "Like toggled successfully"
    is_liked: bool
    like_count: int
