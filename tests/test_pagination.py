"""
Tests for darkroom.core.pagination.

These tests verify:
- pages are requested sequentially from 1 until a short page
- an exactly full last page triggers one more (empty) request
- errors propagate and stop pagination
- search_fetcher drives the real client against the fake server
"""

from __future__ import annotations

import pytest

from darkroom.catalog.client import CatalogClient, CatalogHttpError
from darkroom.catalog.models import Asset, AssetId, DateRange
from darkroom.core.pagination import fetch_all, iter_pages, search_fetcher


def make_source(total: int) -> tuple[list[tuple[int, int]], object]:
    """A fake page source over `total` assets that records its calls."""
    calls: list[tuple[int, int]] = []
    assets = [Asset(id=AssetId(str(i)), original_file_name=f"IMG_{i:03d}.jpg") for i in range(total)]

    async def fetch_page(page: int, size: int) -> list[Asset]:
        calls.append((page, size))
        return assets[(page - 1) * size : page * size]

    return calls, fetch_page


class TestIterPages:
    """Tests for the pagination contract."""

    async def test_single_short_page(self) -> None:
        calls, fetch_page = make_source(3)
        result = await fetch_all(fetch_page, page_size=10)

        assert [a.id for a in result] == ["0", "1", "2"]
        assert calls == [(1, 10)]

    async def test_multiple_pages_in_order(self) -> None:
        calls, fetch_page = make_source(7)
        result = await fetch_all(fetch_page, page_size=3)

        assert [a.id for a in result] == [str(i) for i in range(7)]
        assert calls == [(1, 3), (2, 3), (3, 3)]

    async def test_exact_multiple_needs_empty_page(self) -> None:
        calls, fetch_page = make_source(6)
        result = await fetch_all(fetch_page, page_size=3)

        assert len(result) == 6
        assert calls == [(1, 3), (2, 3), (3, 3)]

    async def test_empty_result(self) -> None:
        calls, fetch_page = make_source(0)

        assert await fetch_all(fetch_page, page_size=5) == []
        assert calls == [(1, 5)]

    async def test_default_page_size(self) -> None:
        calls, fetch_page = make_source(1)
        await fetch_all(fetch_page)

        assert calls == [(1, 1000)]

    async def test_lazy_iteration(self) -> None:
        """Nothing past the current page is requested until consumed."""
        calls, fetch_page = make_source(10)
        pages = iter_pages(fetch_page, page_size=2)

        first = await pages.__anext__()
        assert first.id == "0"
        assert calls == [(1, 2)]
        await pages.aclose()

    async def test_error_propagates(self) -> None:
        calls: list[int] = []

        async def fetch_page(page: int, size: int) -> list[Asset]:
            calls.append(page)
            if page == 2:
                raise RuntimeError("page 2 failed")
            return [Asset(id=AssetId(f"{page}-{i}"), original_file_name="x.jpg") for i in range(size)]

        with pytest.raises(RuntimeError, match="page 2 failed"):
            await fetch_all(fetch_page, page_size=2)
        assert calls == [1, 2]

    async def test_invalid_page_size(self) -> None:
        _, fetch_page = make_source(1)
        with pytest.raises(ValueError):
            await fetch_all(fetch_page, page_size=0)


class TestSearchFetcher:
    """search_fetcher against the fake Immich server."""

    async def test_pages_through_search(self, catalog, client: CatalogClient) -> None:
        for i in range(5):
            catalog.add_asset(f"a{i}", f"IMG_{i}.jpg")

        result = await fetch_all(search_fetcher(client), page_size=2)

        assert [a.id for a in result] == ["a0", "a1", "a2", "a3", "a4"]
        assert [r["page"] for r in catalog.search_requests] == [1, 2, 3]
        assert all(r["size"] == 2 for r in catalog.search_requests)
        assert all(r["withStacked"] is False for r in catalog.search_requests)

    async def test_date_range_is_sent(self, catalog, client: CatalogClient) -> None:
        catalog.add_asset("old", "old.jpg", taken_at="2023-01-01T00:00:00.000Z")
        catalog.add_asset("new", "new.jpg", taken_at="2024-06-05T00:00:00.000Z")
        date_range = DateRange(taken_after="2024-01-01T00:00:00.000Z")

        result = await fetch_all(search_fetcher(client, date_range))

        assert [a.id for a in result] == ["new"]
        assert catalog.search_requests[0]["takenAfter"] == "2024-01-01T00:00:00.000Z"
        assert "takenBefore" not in catalog.search_requests[0]

    async def test_server_error_propagates(self, catalog, client: CatalogClient) -> None:
        catalog.api_key = "rotated"

        with pytest.raises(CatalogHttpError) as excinfo:
            await fetch_all(search_fetcher(client))
        assert excinfo.value.status_code == 401
