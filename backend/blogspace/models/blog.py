"""
BlogSpace Backend — Blog & Comment SQLAlchemy Models
======================================================

What:  ORM models for posts, their comments, and the like set.
Who:   Used by BlogService and by Alembic for schema management.

Table Design:
    - blogs: post body and metadata. tags, media and media_gallery are
      JSON columns; views and read_time are plain counters.
      published_at is set on the transition to 'published' and cleared
      on reversion to 'draft'.
    - comments: the post's ordered comment list, one row per comment,
      ordered by created_at.
    - blog_likes: one row per (post, user). A like is set membership;
      toggling is one INSERT or one DELETE.

Indexes:
    - (status, published_at): the public feed query
    - author_id: "my posts" and author profile pages
    - views: popular/trending sort
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blogspace.database import Base
from blogspace.models.user import User, utcnow

CATEGORIES = (
    "Technology",
    "Design",
    "Development",
    "Business",
    "Lifestyle",
    "Travel",
    "Food",
    "Health",
    "Education",
    "Entertainment",
    "Other",
)

STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"
STATUSES = (STATUS_DRAFT, STATUS_PUBLISHED)


blog_likes = Table(
    "blog_likes",
    Base.metadata,
    Column("blog_id", Uuid, ForeignKey("blogs.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Index("idx_blog_likes_user_id", "user_id"),
)


class Blog(Base):
    """
    A post owned by its author.

    Visibility:
        - published: visible to everyone
        - draft: visible to the author only (NotFound for everyone else)
    """

    __tablename__ = "blogs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str] = mapped_column(String(300), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=STATUS_DRAFT,
        server_default=text("'draft'"),
    )

    # {"type", "url", "publicId", "format", "size", "duration"} or NULL
    media: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True, default=None)
    # [{"type", "url", "publicId", ..., "order", "placement"}]
    media_gallery: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    author: Mapped[User] = relationship(User, lazy="joined", innerjoin=True)

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    read_time: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))

    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # Loaded explicitly (selectinload) by the detail query only
    comments: Mapped[List["Comment"]] = relationship(
        "Comment",
        back_populates="blog",
        order_by="Comment.created_at",
        lazy="raise",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_blogs_status_published_at", "status", "published_at"),
        Index("idx_blogs_author_id", "author_id"),
        Index("idx_blogs_views", "views"),
    )

    @property
    def is_published(self) -> bool:
        return self.status == STATUS_PUBLISHED

    def is_owned_by(self, user: Optional[User]) -> bool:
        return user is not None and self.author_id == user.id

    def __repr__(self) -> str:
        return f"<Blog(id={self.id}, status='{self.status}', title='{self.title[:30]}')>"


class Comment(Base):
    """A comment on a post, owned by its `user`."""

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    blog_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("blogs.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    blog: Mapped[Blog] = relationship(Blog, back_populates="comments", lazy="raise")
    user: Mapped[User] = relationship(User, lazy="joined", innerjoin=True)

    __table_args__ = (
        Index("idx_comments_blog_id_created_at", "blog_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, blog_id={self.blog_id}, user_id={self.user_id})>"
