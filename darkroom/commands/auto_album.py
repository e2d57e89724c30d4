"""
`darkroom auto-album` - build an album from a date range and places.

Every location term is searched in the city, country and state fields of
assets taken within the date range; the union of all matches becomes the
new album. An album with the same name must not exist yet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from darkroom.catalog.client import CatalogClient, CatalogError
from darkroom.catalog.models import DateRange
from darkroom.commands.executor import AlbumExistsError, create_album, ensure_album_name_free
from darkroom.config import DEFAULT_PAGE_SIZE
from darkroom.core.dates import parse_date
from darkroom.core.locations import (
    LocationCount,
    LocationResult,
    aggregate_by_locations,
    catalog_field_fetcher,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AutoAlbumOptions:
    name: str
    after: str
    before: str
    locations: list[str] = field(default_factory=list)
    dry_run: bool = False
    verbose: bool = False


def format_asset_count(count: int) -> str:
    return f"{count} asset{'' if count == 1 else 's'}"


async def auto_album(
    client: CatalogClient,
    options: AutoAlbumOptions,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> int:
    """
    Create an album from assets matching the date range and locations.

    Returns:
        Exit code: 0 on success (including an empty album or a dry run),
        1 if the name is taken or album creation fails.

    Raises:
        ConfigError: for invalid dates, before any request.
        CatalogError: if the album listing or a search fails.
    """
    date_range = DateRange(
        taken_after=parse_date(options.after),
        taken_before=parse_date(options.before),
    )

    print("\nImmich Auto-Album Tool\n")
    print(f"  Album name:     {options.name}")
    print(f"  Date range:     {options.after} to {options.before}")
    print(f"  Locations:      {', '.join(options.locations)}")
    print(f"  Dry run:        {'Yes' if options.dry_run else 'No'}")
    print()

    print("Checking for existing album...")
    try:
        await ensure_album_name_free(client, options.name)
    except AlbumExistsError as e:
        logger.error("%s", e)
        return 1
    print("  No duplicate found.\n")

    def _on_location(result: LocationResult, count: LocationCount) -> None:
        print(f'  Location "{count.location}": {format_asset_count(count.new_assets)}')
        if options.verbose:
            by_field = ", ".join(f"{f.value}={n}" for f, n in result.counts_by_field.items())
            print(f"    ({by_field})")

    print("Searching for matching assets...")
    aggregation = await aggregate_by_locations(
        options.locations,
        catalog_field_fetcher(client, date_range, page_size),
        on_location=_on_location,
    )
    unique_count = len(aggregation.assets)

    print("\nSummary:")
    print(f"  Total unique assets: {format_asset_count(unique_count)}\n")

    if aggregation.per_location:
        print("Assets per location:")
        for count in aggregation.per_location:
            print(f"  - {count.location}: {format_asset_count(count.new_assets)}")
        print()

    if unique_count == 0:
        logger.warning("No assets found matching the criteria.")

    if options.dry_run:
        print("[dry-run] Would create album")
        print(f'  Name: "{options.name}"')
        print(f"  Assets: {format_asset_count(unique_count)}\n")
        return 0

    if unique_count == 0:
        print("Creating empty album...\n")
    else:
        print(f"Creating album with {format_asset_count(unique_count)}...\n")

    try:
        album = await create_album(client, options.name, aggregation.asset_ids)
    except CatalogError as e:
        logger.error("Failed to create album: %s", e)
        return 1

    # Report what the server stored when it says so.
    stored = album.asset_count if album.asset_count is not None else unique_count
    print(f'Created album "{album.name}"')
    print(f"  Album ID: {album.id}")
    print(f"  Assets: {format_asset_count(stored)}\n")
    return 0
