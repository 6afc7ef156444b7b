"""
BlogSpace Backend — User SQLAlchemy Models
============================================

What:  ORM models for accounts, the follower graph, and revoked tokens.
Who:   Used by AuthService/UserService and by Alembic for schema management.

Table Design:
    - users: unique username/email, hashed password, profile fields.
      avatar is a JSON media asset ({"url", "publicId", "format"}) or NULL.
    - follows: one row per (follower, followed) pair. Following is set
      membership, so the composite primary key makes a duplicate follow
      impossible and follow/unfollow single-statement operations.
    - revoked_tokens: token ids (jti) invalidated by logout, kept until
      the token would have expired anyway. Shared by every server
      instance, unlike an in-process blacklist.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from blogspace.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


follows = Table(
    "follows",
    Base.metadata,
    Column("follower_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("followed_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
    Index("idx_follows_followed_id", "followed_id"),
)


class User(Base):
    """
    A registered account.

    Lifecycle:
        1. Created at signup (role='user')
        2. Mutated by profile edits and follow/unfollow
        3. Never hard-deleted by the API
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    # passlib hash string; never serialized into any response schema
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    avatar: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True, default=None)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 'user' | 'admin'
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="user",
        server_default=text("'user'"),
    )

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

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or "U"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"


class RevokedToken(Base):
    """A logged-out bearer token, identified by its jti claim."""

    __tablename__ = "revoked_tokens"

    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("idx_revoked_tokens_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<RevokedToken(jti='{self.jti}', expires_at='{self.expires_at}')>"
