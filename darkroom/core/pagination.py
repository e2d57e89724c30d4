"""
Paginated retrieval of assets.

The Immich search endpoint is page based and does not report a total.
We request pages 1, 2, 3, ... one after another and stop at the first page
that comes back shorter than the page size (an empty page included).

Pages are never fetched concurrently: callers rely on server order (the
pair resolver keeps the *last* cover it sees for a stem).
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Awaitable, Callable, Sequence

from darkroom.catalog.client import CatalogClient
from darkroom.catalog.models import Asset, DateRange, SearchField
from darkroom.config import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)

# fetch_page(page, size) -> items on that page
PageFetcher = Callable[[int, int], Awaitable[Sequence[Asset]]]


async def iter_pages(
    fetch_page: PageFetcher, page_size: int = DEFAULT_PAGE_SIZE
) -> AsyncIterator[Asset]:
    """
    Yield every asset of a paged query, page by page.

    The generator is finite and cannot be restarted. Any error raised by
    `fetch_page` propagates immediately; whatever was yielded before it
    must be thrown away by the caller.
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")

    page = 1
    while True:
        items = await fetch_page(page, page_size)
        logger.debug("Page %d: %d item(s)", page, len(items))

        for item in items:
            yield item

        if len(items) < page_size:
            return
        page += 1


async def fetch_all(
    fetch_page: PageFetcher, page_size: int = DEFAULT_PAGE_SIZE
) -> list[Asset]:
    """Collect all pages into a list (all-or-nothing)."""
    return [asset async for asset in iter_pages(fetch_page, page_size)]


def search_fetcher(
    client: CatalogClient,
    date_range: DateRange | None = None,
    field: SearchField | None = None,
    location: str | None = None,
    *,
    with_stacked: bool = False,
) -> PageFetcher:
    """Bind a metadata search to the `fetch_page(page, size)` signature."""

    async def _fetch(page: int, size: int) -> list[Asset]:
        return await client.search_assets(
            page=page,
            size=size,
            date_range=date_range,
            field=field,
            location=location,
            with_stacked=with_stacked,
        )

    return _fetch
