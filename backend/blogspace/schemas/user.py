"""
BlogSpace Backend — User Request/Response Schemas
===================================================

What:  Contracts for signup/login, profiles, follow actions, and the admin
       user listing.
Who:   Used by routes.users and the client SDK.

Validation messages are returned verbatim in the 400 response's errors
array, so they are written for end users.
"""

import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from blogspace.schemas.common import CamelModel, MediaAsset

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,30}$")
MIN_PASSWORD_LENGTH = 6


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SignupRequest(CamelModel):
    username: str
    email: EmailStr
    password: str
    full_name: Optional[str] = Field(default=None, max_length=100)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not USERNAME_PATTERN.match(v):
            raise ValueError(
                "Username must be 3-30 characters and contain only letters, numbers and underscores"
            )
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def require_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class ProfileUpdate(CamelModel):
    """
    Partial profile update. Only fields present in the request are applied;
    an explicit null is ignored the same way an absent field is.
    """
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[MediaAsset] = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.strip()) > 100:
            raise ValueError("Full name cannot exceed 100 characters")
        return v.strip() if v is not None else v

    @field_validator("bio")
    @classmethod
    def validate_bio(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > 500:
            raise ValueError("Bio cannot exceed 500 characters")
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AuthorSummary(CamelModel):
    """The populated `author` of a post or `user` of a comment."""
    id: uuid.UUID
    username: str
    full_name: Optional[str] = None
    avatar: MediaAsset


class PublicProfile(CamelModel):
    """What anyone may see about a user. No email, no role."""
    id: uuid.UUID
    username: str
    full_name: Optional[str] = None
    avatar: MediaAsset
    bio: Optional[str] = None
    followers_count: int = 0
    following_count: int = 0
    created_at: datetime


class UserListItem(PublicProfile):
    email: str
    role: str


class UserProfile(UserListItem):
    """The caller's own profile (GET /users/me)."""
    followers: List[uuid.UUID] = Field(default_factory=list)
    following: List[uuid.UUID] = Field(default_factory=list)


class AuthResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserProfile


class FollowResponse(CamelModel):
    message: str
    following: bool
    followers_count: int


class UserPage(CamelModel):
    items: List[UserListItem]
    total: int
    page: int
    limit: int
    total_pages: int
