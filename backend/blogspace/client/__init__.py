"""
BlogSpace Client SDK
======================

Async Python client for the BlogSpace API: the HTTP client, session state,
the optimistic like toggle, and the paginated feed loader.
"""

from blogspace.client.api import ApiError, BlogSpaceClient
from blogspace.client.config import ClientSettings
from blogspace.client.feed import FeedFilters, FeedLoader
from blogspace.client.likes import LikeState, LikeToggle, ToggleInProgressError
from blogspace.client.session import AuthSession

__all__ = [
    "ApiError",
    "AuthSession",
    "BlogSpaceClient",
    "ClientSettings",
    "FeedFilters",
    "FeedLoader",
    "LikeState",
    "LikeToggle",
    "ToggleInProgressError",
]
