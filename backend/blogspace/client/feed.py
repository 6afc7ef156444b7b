"""
BlogSpace Client — Feed Loader
================================

What:  Paginated, filterable post feed state for list views.
How:   Holds the filter state, loads pages through BlogSpaceClient.list_blogs,
       and tags every request with a generation number.

Rules:
    - Changing any filter other than the page resets the page to 1.
    - A load() for the same filters as the request already in flight is
      refused (returns None); loads for different filters proceed.
    - Only the response of the newest generation is applied. A slow
      response for superseded filters is discarded, so it can never
      overwrite the result of a later request.
"""

import dataclasses
import logging
from typing import List, Optional, Union

import httpx

from blogspace.client.api import ApiError, BlogSpaceClient
from blogspace.client.session import AuthSession
from blogspace.schemas.blog import BlogPage, BlogResponse

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class FeedFilters:
    page: int = 1
    limit: int = 10
    category: Optional[str] = None
    search: Optional[str] = None
    sort: str = "newest"
    my_posts: bool = False


class FeedLoader:

    def __init__(
        self,
        client: BlogSpaceClient,
        session: Optional[AuthSession] = None,
        filters: Optional[FeedFilters] = None,
    ):
        self.client = client
        self.session = session
        self.filters = filters or FeedFilters()

        self.items: List[BlogResponse] = []
        self.total = 0
        self.total_pages = 0
        self.loading = False
        self.error: Optional[Union[ApiError, httpx.HTTPError]] = None

        self._generation = 0
        self._inflight: Optional[FeedFilters] = None

    # ── Filter state ──────────────────────────────────────────────────────

    def set_filters(self, **changes) -> FeedFilters:
        """
        Update filters. Any change besides `page` resets page to 1.

        Example:
            loader.set_filters(category="Design", search="grid")
        """
        updated = dataclasses.replace(self.filters, **changes)
        if "page" not in changes and dataclasses.replace(updated, page=self.filters.page) != self.filters:
            updated = dataclasses.replace(updated, page=1)
        self.filters = updated
        return updated

    def set_page(self, page: int) -> FeedFilters:
        page = max(1, page)
        if self.total_pages:
            page = min(page, self.total_pages)
        self.filters = dataclasses.replace(self.filters, page=page)
        return self.filters

    @property
    def page(self) -> int:
        return self.filters.page

    @property
    def has_next(self) -> bool:
        return self.filters.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.filters.page > 1

    # ── Loading ───────────────────────────────────────────────────────────

    async def load(self) -> Optional[BlogPage]:
        """
        Fetch the page for the current filters.

        Returns:
            The applied BlogPage, or None when the request was refused as a
            duplicate or its response was superseded.

        Raises:
            ApiError, httpx.HTTPError: the newest request failed (also stored
                in self.error). The in-flight guard is released on any
                outcome, so the same filters can be retried.
        """
        filters = self.filters
        if self.loading and self._inflight == filters:
            logger.debug("Feed load refused: identical request in flight")
            return None

        self._generation += 1
        generation = self._generation
        self._inflight = filters
        self.loading = True

        token = self.session.token if self.session else None
        try:
            result = await self.client.list_blogs(
                page=filters.page,
                limit=filters.limit,
                category=filters.category,
                search=filters.search,
                sort=filters.sort,
                my_posts=filters.my_posts,
                token=token,
            )
        except (ApiError, httpx.HTTPError) as e:
            if generation != self._generation:
                logger.debug("Ignoring failure of superseded feed request: %s", e)
                return None
            self.error = e
            raise
        finally:
            if generation == self._generation:
                self.loading = False
                self._inflight = None

        if generation != self._generation:
            logger.debug("Discarding stale feed response (generation %d < %d)", generation, self._generation)
            return None

        self.items = list(result.items)
        self.total = result.total
        self.total_pages = result.total_pages
        self.filters = dataclasses.replace(self.filters, page=result.page, limit=result.limit)
        self.error = None
        return result

    async def next_page(self) -> Optional[BlogPage]:
        if not self.has_next:
            return None
        self.set_page(self.filters.page + 1)
        return await self.load()

    async def previous_page(self) -> Optional[BlogPage]:
        if not self.has_previous:
            return None
        self.set_page(self.filters.page - 1)
        return await self.load()
