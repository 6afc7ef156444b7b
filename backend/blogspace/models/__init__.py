"""ORM models. Importing this package registers every table with Base.metadata."""

from blogspace.models.user import RevokedToken, User, follows
from blogspace.models.blog import (
    CATEGORIES,
    STATUS_DRAFT,
    STATUS_PUBLISHED,
    STATUSES,
    Blog,
    Comment,
    blog_likes,
)

__all__ = [
    "CATEGORIES",
    "STATUS_DRAFT",
    "STATUS_PUBLISHED",
    "STATUSES",
    "Blog",
    "Comment",
    "RevokedToken",
    "User",
    "blog_likes",
    "follows",
]
