"""
Location aggregation for auto-albums.

A free-text location like "Rome" may be stored in an asset's city, state
or country field, so each location is searched three times. The three
searches run concurrently and are joined all-or-nothing; their results are
concatenated (city, country, state) and de-duplicated by asset id.

Several locations are processed one after another against a running set
of seen ids, so an asset matching two locations is credited to the first
one given. This keeps the per-location counts deterministic.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Iterable, Sequence

from darkroom.catalog.client import CatalogClient
from darkroom.catalog.models import Asset, AssetId, DateRange, SearchField
from darkroom.config import DEFAULT_PAGE_SIZE
from darkroom.core.pagination import fetch_all, search_fetcher

logger = logging.getLogger(__name__)

# Concatenation order of the per-field results.
FIELD_ORDER: tuple[SearchField, ...] = (
    SearchField.CITY,
    SearchField.COUNTRY,
    SearchField.STATE,
)


@dataclass(frozen=True, slots=True)
class AssetRef:
    id: AssetId
    file_name: str

    @classmethod
    def from_asset(cls, asset: Asset) -> AssetRef:
        return cls(id=asset.id, file_name=asset.original_file_name)


# fetch_field(field, location) -> every asset matching location in that field
FieldFetcher = Callable[[SearchField, str], Coroutine[Any, Any, Sequence[AssetRef]]]


@dataclass(frozen=True, slots=True)
class LocationResult:
    location: str
    assets: tuple[AssetRef, ...]
    # Sizes before de-duplication; an asset found in two fields counts twice.
    counts_by_field: dict[SearchField, int]


@dataclass(frozen=True, slots=True)
class LocationCount:
    location: str
    new_assets: int
    matched: int


@dataclass(frozen=True, slots=True)
class AggregationResult:
    assets: tuple[AssetRef, ...]
    per_location: tuple[LocationCount, ...]

    @property
    def asset_ids(self) -> list[AssetId]:
        return [a.id for a in self.assets]


def dedupe(assets: Iterable[AssetRef]) -> list[AssetRef]:
    """Drop repeated ids, keeping the first occurrence and its position."""
    seen: set[AssetId] = set()
    out: list[AssetRef] = []
    for asset in assets:
        if asset.id in seen:
            continue
        seen.add(asset.id)
        out.append(asset)
    return out


class LocationAggregator:
    """Collects the assets of one or more locations through a FieldFetcher."""

    def __init__(self, fetch_field: FieldFetcher) -> None:
        self._fetch_field = fetch_field

    async def aggregate_location(self, location: str) -> LocationResult:
        """
        Search all location fields for one term.

        Raises whatever the first failing field fetch raised; no partial
        result is ever returned.
        """
        tasks = [asyncio.create_task(self._fetch_field(f, location)) for f in FIELD_ORDER]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # First failure wins; stop and drain the sibling searches.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        counts = {f: len(r) for f, r in zip(FIELD_ORDER, results)}
        merged = dedupe(a for r in results for a in r)

        logger.debug(
            "Location %r: city=%d country=%d state=%d -> %d unique",
            location,
            counts[SearchField.CITY],
            counts[SearchField.COUNTRY],
            counts[SearchField.STATE],
            len(merged),
        )
        return LocationResult(location=location, assets=tuple(merged), counts_by_field=counts)

    async def aggregate(
        self,
        locations: Iterable[str],
        on_location: Callable[[LocationResult, LocationCount], None] | None = None,
    ) -> AggregationResult:
        """
        Aggregate several locations sequentially into one de-duplicated set.

        Args:
            locations: Location terms, processed in the given order.
            on_location: Optional progress callback, called after each location.
        """
        seen: set[AssetId] = set()
        collected: list[AssetRef] = []
        per_location: list[LocationCount] = []

        for location in locations:
            result = await self.aggregate_location(location)

            new_assets = [a for a in result.assets if a.id not in seen]
            seen.update(a.id for a in new_assets)
            collected.extend(new_assets)

            count = LocationCount(
                location=location,
                new_assets=len(new_assets),
                matched=len(result.assets),
            )
            per_location.append(count)
            if on_location is not None:
                on_location(result, count)

        return AggregationResult(assets=tuple(collected), per_location=tuple(per_location))


async def aggregate_by_locations(
    locations: Iterable[str],
    fetch_field: FieldFetcher,
    on_location: Callable[[LocationResult, LocationCount], None] | None = None,
) -> AggregationResult:
    """Pure entry point over an injected field fetcher."""
    return await LocationAggregator(fetch_field).aggregate(locations, on_location)


def catalog_field_fetcher(
    client: CatalogClient,
    date_range: DateRange,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> FieldFetcher:
    """Field fetcher that pages through the catalog's metadata search."""

    async def _fetch(field: SearchField, location: str) -> list[AssetRef]:
        fetch_page = search_fetcher(client, date_range, field, location)
        assets = await fetch_all(fetch_page, page_size)
        return [AssetRef.from_asset(a) for a in assets]

    return _fetch
