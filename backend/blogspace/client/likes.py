"""
BlogSpace Client — Optimistic Like Toggle
===========================================

What:  The like button's state machine.
How:   The flip is applied locally before the request is sent; the server's
       answer then either confirms it (commit) or the previous state is
       restored (rollback).

States:
                 begin()             commit(result)
    IDLE ────────────────▶ PENDING ─────────────────▶ COMMITTED
      ▲                      │                           │
      │                      │ rollback()                │ begin()
      │                      ▼                           ▼
      │                 ROLLED_BACK ──── begin() ────▶ PENDING
      └─────────────────────────────────────────────────────

    begin() is refused while PENDING: one request per button at a time.
    like_count never goes below 0, even from stale local data.
"""

import enum
import logging
from typing import Optional, Tuple
from uuid import UUID

import httpx

from blogspace.client.api import ApiError, BlogSpaceClient
from blogspace.schemas.blog import BlogResponse, LikeResponse

logger = logging.getLogger(__name__)


class LikeState(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class ToggleInProgressError(RuntimeError):
    """begin() called while a previous toggle is still pending."""


class LikeToggle:

    def __init__(self, blog_id: UUID, is_liked: bool = False, like_count: int = 0):
        self.blog_id = blog_id
        self.is_liked = is_liked
        self.like_count = max(0, like_count)
        self.state = LikeState.IDLE
        self._snapshot: Optional[Tuple[bool, int]] = None

    @classmethod
    def from_blog(cls, blog: BlogResponse) -> "LikeToggle":
        return cls(blog.id, is_liked=blog.is_liked, like_count=blog.like_count)

    def begin(self) -> None:
        """Apply the optimistic flip immediately."""
        if self.state == LikeState.PENDING:
            raise ToggleInProgressError(f"Like toggle already pending for blog {self.blog_id}")

        self._snapshot = (self.is_liked, self.like_count)
        self.is_liked = not self.is_liked
        self.like_count = max(0, self.like_count + (1 if self.is_liked else -1))
        self.state = LikeState.PENDING

    def commit(self, result: LikeResponse) -> None:
        """Converge to the server's answer, whatever the optimistic guess was."""
        self._require_pending("commit")
        self.is_liked = result.is_liked
        self.like_count = max(0, result.like_count)
        self._snapshot = None
        self.state = LikeState.COMMITTED

    def rollback(self) -> None:
        """Restore the state from before begin()."""
        self._require_pending("rollback")
        self.is_liked, self.like_count = self._snapshot
        self._snapshot = None
        self.state = LikeState.ROLLED_BACK

    def _require_pending(self, action: str) -> None:
        if self.state != LikeState.PENDING:
            raise RuntimeError(f"Cannot {action} a like toggle in state '{self.state.value}'")

    async def toggle(self, client: BlogSpaceClient, token: str) -> LikeState:
        """
        begin → POST /blogs/{id}/like → commit, or rollback on any failure.

        The failure is re-raised after the rollback so the caller can show
        its message.
        """
        self.begin()
        try:
            result = await client.toggle_like(self.blog_id, token)
        except (ApiError, httpx.HTTPError) as e:
            logger.info("Like toggle for %s failed, rolling back: %s", self.blog_id, e)
            self.rollback()
            raise
        self.commit(result)
        return self.state
