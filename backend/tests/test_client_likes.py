"""
BlogSpace Client — Like Toggle Tests
======================================

What:  The optimistic like state machine.
How:   A fake client stands in for BlogSpaceClient.toggle_like.

What we test:
    ✅ begin() flips immediately, commit() converges to the server's answer
    ✅ Failures roll back to the exact prior state and re-raise
    ✅ A second begin() while pending is refused
    ✅ like_count never goes negative
"""

import uuid
from unittest.mock import AsyncMock

import httpx
import pytest

from blogspace.client.api import ApiError
from blogspace.client.likes import LikeState, LikeToggle, ToggleInProgressError
from blogspace.schemas.blog import LikeResponse


class TestLikeStateMachine:

    def test_begin_is_optimistic(self):
        toggle = LikeToggle(uuid.uuid4(), is_liked=False, like_count=4)

        toggle.begin()

        assert toggle.state == LikeState.PENDING
        assert toggle.is_liked is True
        assert toggle.like_count == 5

    def test_commit_uses_server_truth(self):
        toggle = LikeToggle(uuid.uuid4(), is_liked=False, like_count=4)
        toggle.begin()

        # Someone else liked meanwhile
        toggle.commit(LikeResponse(is_liked=True, like_count=7))

        assert toggle.state == LikeState.COMMITTED
        assert (toggle.is_liked, toggle.like_count) == (True, 7)

    def test_rollback_restores_prior_state(self):
        toggle = LikeToggle(uuid.uuid4(), is_liked=True, like_count=3)
        toggle.begin()

        toggle.rollback()

        assert toggle.state == LikeState.ROLLED_BACK
        assert (toggle.is_liked, toggle.like_count) == (True, 3)

    def test_second_begin_while_pending_refused(self):
        toggle = LikeToggle(uuid.uuid4())
        toggle.begin()

        with pytest.raises(ToggleInProgressError):
            toggle.begin()

    def test_commit_without_begin_refused(self):
        toggle = LikeToggle(uuid.uuid4())
        with pytest.raises(RuntimeError):
            toggle.commit(LikeResponse(is_liked=True, like_count=1))

    def test_count_never_negative(self):
        # Stale local data: marked liked with a zero count
        toggle = LikeToggle(uuid.uuid4(), is_liked=True, like_count=0)

        toggle.begin()

        assert toggle.is_liked is False
        assert toggle.like_count == 0

    def test_toggle_after_commit_starts_from_committed_state(self):
        toggle = LikeToggle(uuid.uuid4(), is_liked=False, like_count=0)
        toggle.begin()
        toggle.commit(LikeResponse(is_liked=True, like_count=1))

        toggle.begin()

        assert (toggle.is_liked, toggle.like_count) == (False, 0)


class TestLikeToggleRoundTrip:

    @pytest.mark.asyncio
    async def test_success_commits(self):
        client = AsyncMock()
        client.toggle_like.return_value = LikeResponse(is_liked=True, like_count=1)
        toggle = LikeToggle(uuid.uuid4(), is_liked=False, like_count=0)

        state = await toggle.toggle(client, "token")

        assert state == LikeState.COMMITTED
        assert (toggle.is_liked, toggle.like_count) == (True, 1)
        client.toggle_like.assert_awaited_once_with(toggle.blog_id, "token")

    @pytest.mark.asyncio
    async def test_api_error_rolls_back_and_reraises(self):
        client = AsyncMock()
        client.toggle_like.side_effect = ApiError(404, "Blog not found")
        toggle = LikeToggle(uuid.uuid4(), is_liked=False, like_count=2)

        with pytest.raises(ApiError) as exc_info:
            await toggle.toggle(client, "token")

        assert exc_info.value.message == "Blog not found"
        assert toggle.state == LikeState.ROLLED_BACK
        assert (toggle.is_liked, toggle.like_count) == (False, 2)

    @pytest.mark.asyncio
    async def test_network_error_rolls_back(self):
        client = AsyncMock()
        client.toggle_like.side_effect = httpx.ConnectError("connection refused")
        toggle = LikeToggle(uuid.uuid4(), is_liked=True, like_count=5)

        with pytest.raises(httpx.ConnectError):
            await toggle.toggle(client, "token")

        assert (toggle.is_liked, toggle.like_count) == (True, 5)
        # Not stuck in PENDING: the user can try again
        toggle.begin()
