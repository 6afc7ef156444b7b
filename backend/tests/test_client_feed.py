"""
BlogSpace Client — Feed Loader Tests
======================================

What:  Filter state, duplicate-request guard and stale-response discarding.
How:   A fake client whose list_blogs() blocks on an asyncio.Event per
       request, so tests control the order in which responses arrive.

What we test:
    ✅ Changing a filter resets the page; changing the page does not
    ✅ A duplicate load for the same filters is refused while in flight
    ✅ A slow response for old filters never overwrites a newer one
    ✅ Errors are stored and raised; stale errors are ignored
    ✅ A failed or cancelled load never leaves the feed stuck "in flight"
"""

import asyncio
import uuid
from datetime import datetime, timezone

import httpx
import pytest

from blogspace.client.api import ApiError
from blogspace.client.feed import FeedFilters, FeedLoader
from blogspace.schemas.blog import BlogPage, BlogResponse


def _post(title: str) -> BlogResponse:
    now = datetime.now(timezone.utc)
    return BlogResponse.model_validate(
        {
            "id": str(uuid.uuid4()),
            "title": title,
            "content": "Some content for the post.",
            "excerpt": "An excerpt here",
            "category": "Technology",
            "tags": [],
            "status": "published",
            "media": {"type": "image", "url": "https://placeholder", "publicId": "placeholder"},
            "mediaGallery": [],
            "author": {
                "id": str(uuid.uuid4()),
                "username": "alice",
                "avatar": {"url": "https://avatar", "publicId": "default-avatar"},
            },
            "createdAt": now.isoformat(),
            "updatedAt": now.isoformat(),
        }
    )


def _page(title: str, page: int = 1, total: int = 1, limit: int = 10) -> BlogPage:
    return BlogPage(
        items=[_post(title)],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit),
    )


class FakeClient:
    """list_blogs() waits until the test releases the matching call."""

    def __init__(self):
        self.calls = []
        self.gates = []
        self.results = []

    def respond(self, index, result):
        self.results[index] = result
        self.gates[index].set()

    async def list_blogs(self, **params):
        index = len(self.calls)
        self.calls.append(params)
        self.gates.append(asyncio.Event())
        self.results.append(None)
        await self.gates[index].wait()
        result = self.results[index]
        if isinstance(result, Exception):
            raise result
        return result


class TestFilters:

    def test_filter_change_resets_page(self):
        loader = FeedLoader(client=FakeClient(), filters=FeedFilters(page=3))

        loader.set_filters(category="Design")

        assert loader.filters.page == 1
        assert loader.filters.category == "Design"

    def test_same_value_keeps_page(self):
        loader = FeedLoader(client=FakeClient(), filters=FeedFilters(page=3, category="Design"))

        loader.set_filters(category="Design")

        assert loader.filters.page == 3

    def test_explicit_page_change_kept(self):
        loader = FeedLoader(client=FakeClient())

        loader.set_filters(page=4)

        assert loader.filters.page == 4

    def test_set_page_clamped_to_known_range(self):
        loader = FeedLoader(client=FakeClient())
        loader.total_pages = 3

        assert loader.set_page(0).page == 1
        assert loader.set_page(9).page == 3


class TestLoading:

    @pytest.mark.asyncio
    async def test_load_applies_result(self):
        client = FakeClient()
        loader = FeedLoader(client=client)

        task = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        assert loader.loading is True
        client.respond(0, _page("first", total=25))
        result = await task

        assert result.total == 25
        assert loader.total_pages == 3
        assert loader.has_next is True
        assert loader.has_previous is False
        assert loader.loading is False
        assert [item.title for item in loader.items] == ["first"]

    @pytest.mark.asyncio
    async def test_duplicate_load_refused_while_in_flight(self):
        client = FakeClient()
        loader = FeedLoader(client=client)

        first = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        duplicate = await loader.load()

        assert duplicate is None
        assert len(client.calls) == 1
        client.respond(0, _page("only"))
        await first

    @pytest.mark.asyncio
    async def test_stale_response_is_discarded(self):
        client = FakeClient()
        loader = FeedLoader(client=client)

        slow = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        loader.set_filters(search="python")
        fast = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        assert len(client.calls) == 2
        assert client.calls[1]["search"] == "python"

        # The newer request finishes first, then the older one arrives late
        client.respond(1, _page("python result"))
        assert (await fast) is not None
        client.respond(0, _page("stale result"))
        assert (await slow) is None

        assert [item.title for item in loader.items] == ["python result"]
        assert loader.loading is False

    @pytest.mark.asyncio
    async def test_error_is_stored_and_raised(self):
        client = FakeClient()
        loader = FeedLoader(client=client)

        task = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        client.respond(0, ApiError(500, "Server error: 500"))

        with pytest.raises(ApiError):
            await task
        assert loader.error.status == 500
        assert loader.loading is False

    @pytest.mark.asyncio
    async def test_stale_error_is_ignored(self):
        client = FakeClient()
        loader = FeedLoader(client=client)

        old = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        loader.set_filters(category="Travel")
        new = asyncio.create_task(loader.load())
        await asyncio.sleep(0)

        client.respond(1, _page("travel"))
        await new
        client.respond(0, ApiError(500, "Server error: 500"))

        assert (await old) is None
        assert loader.error is None
        assert [item.title for item in loader.items] == ["travel"]

    @pytest.mark.asyncio
    async def test_next_page_requests_following_page(self):
        client = FakeClient()
        loader = FeedLoader(client=client)

        task = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        client.respond(0, _page("page one", total=15))
        await task

        task = asyncio.create_task(loader.next_page())
        await asyncio.sleep(0)
        assert client.calls[1]["page"] == 2
        client.respond(1, _page("page two", page=2, total=15))
        await task

        assert loader.page == 2
        assert loader.has_next is False
        assert await loader.next_page() is None

    @pytest.mark.asyncio
    async def test_transport_error_allows_retry(self):
        client = FakeClient()
        loader = FeedLoader(client=client)

        task = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        client.respond(0, httpx.ConnectError("connection refused"))

        with pytest.raises(httpx.ConnectError):
            await task
        assert loader.loading is False
        assert isinstance(loader.error, httpx.ConnectError)

        # Same filters again: a real request, not refused as a duplicate
        retry = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        assert len(client.calls) == 2
        client.respond(1, _page("after reconnect"))
        result = await retry

        assert result is not None
        assert loader.error is None
        assert [item.title for item in loader.items] == ["after reconnect"]

    @pytest.mark.asyncio
    async def test_cancelled_load_allows_retry(self):
        client = FakeClient()
        loader = FeedLoader(client=client)

        task = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert loader.loading is False

        retry = asyncio.create_task(loader.load())
        await asyncio.sleep(0)
        assert len(client.calls) == 2
        client.respond(1, _page("fresh"))
        assert (await retry) is not None
