"""
`darkroom stack` - stack cover/raw pairs (e.g. Pixel JPG + DNG).

Flow:
1. compile patterns and parse dates (configuration errors stop here)
2. fetch the assets (date-filtered search, or one album)
3. resolve pairs by stem
4. create one stack per pair unless --dry-run
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from darkroom.catalog.client import CatalogClient
from darkroom.catalog.models import Asset, DateRange
from darkroom.commands.executor import create_stacks
from darkroom.config import DEFAULT_PAGE_SIZE
from darkroom.core.dates import parse_optional_date
from darkroom.core.pagination import fetch_all, search_fetcher
from darkroom.core.pairing import Pair, PairingResult, resolve_pairs
from darkroom.core.stems import compile_pattern

logger = logging.getLogger(__name__)

# How many pairs / warnings to list before truncating.
PAIR_PREVIEW_LIMIT = 20
WARNING_DETAIL_LIMIT = 10


@dataclass(frozen=True, slots=True)
class StackOptions:
    cover_pattern: str
    raw_pattern: str
    stem_pattern: str | None = None
    dry_run: bool = False
    after: str | None = None
    before: str | None = None
    album_id: str | None = None
    skip_stacked: bool = False
    verbose: bool = False


async def fetch_stack_candidates(
    client: CatalogClient,
    *,
    date_range: DateRange,
    album_id: str | None = None,
    with_stacked: bool = False,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[Asset]:
    """Fetch the assets to pair: one album's assets, or a paged search."""
    if album_id:
        return await client.get_album_assets(album_id)
    fetch_page = search_fetcher(client, date_range, with_stacked=with_stacked)
    return await fetch_all(fetch_page, page_size)


def _report_warnings(result: PairingResult, verbose: bool) -> None:
    mismatches = result.mismatched_stem_file_names
    if mismatches:
        logger.warning(
            "--stem-pattern did not match %d file(s). "
            "Using default stem extraction for these files.",
            len(mismatches),
        )
        if verbose:
            for name in mismatches[:WARNING_DETAIL_LIMIT]:
                logger.warning("  - %s", name)
            if len(mismatches) > WARNING_DETAIL_LIMIT:
                logger.warning("  ... and %d more", len(mismatches) - WARNING_DETAIL_LIMIT)

    replaced = result.replaced_covers
    if replaced:
        logger.warning(
            "%d stem(s) had multiple cover matches. "
            "Only the last match will be used as the cover.",
            len(replaced),
        )
        if verbose:
            for r in replaced[:WARNING_DETAIL_LIMIT]:
                logger.warning('  - %s: "%s" replaced by "%s"', r.stem, r.old_file_name, r.new_file_name)
            if len(replaced) > WARNING_DETAIL_LIMIT:
                logger.warning("  ... and %d more", len(replaced) - WARNING_DETAIL_LIMIT)


def _print_pairs(pairs: tuple[Pair, ...], verbose: bool) -> None:
    if verbose or len(pairs) <= PAIR_PREVIEW_LIMIT:
        print("Pairs to stack:")
        shown = pairs
    else:
        print(f"First {PAIR_PREVIEW_LIMIT} pairs:")
        shown = pairs[:PAIR_PREVIEW_LIMIT]

    for pair in shown:
        print(f"  {pair.cover_file_name} + {pair.raw_file_name}")
    if len(shown) < len(pairs):
        print(f"  ... and {len(pairs) - len(shown)} more")
    print()


async def stack(
    client: CatalogClient,
    options: StackOptions,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> int:
    """
    Stack matching cover and raw pairs.

    Returns:
        Exit code: 0 when every stack was created (or nothing to do),
        1 when at least one stack failed.

    Raises:
        ConfigError: for invalid patterns or dates, before any request.
        CatalogError: if fetching assets fails.
    """
    cover = compile_pattern(options.cover_pattern, "cover")
    raw = compile_pattern(options.raw_pattern, "raw")
    stem = compile_pattern(options.stem_pattern, "stem-pattern") if options.stem_pattern else None
    date_range = DateRange(
        taken_after=parse_optional_date(options.after),
        taken_before=parse_optional_date(options.before),
    )

    print("\nImmich Stack Tool\n")
    print(f"  Cover pattern:  {options.cover_pattern}")
    print(f"  Raw pattern:    {options.raw_pattern}")
    if options.stem_pattern:
        print(f"  Stem pattern:   {options.stem_pattern}")
    print(f"  Dry run:        {'Yes' if options.dry_run else 'No'}")
    if options.album_id:
        print(f"  Album ID:       {options.album_id}")
    if options.after:
        print(f"  After:          {options.after}")
    if options.before:
        print(f"  Before:         {options.before}")
    print()

    if options.album_id and (options.after or options.before):
        logger.warning("--after and --before filters are ignored when using --album")

    print("Fetching album assets..." if options.album_id else "Fetching assets...")
    assets = await fetch_stack_candidates(
        client,
        date_range=date_range,
        album_id=options.album_id,
        with_stacked=options.skip_stacked,
        page_size=page_size,
    )
    print(f"  Found {len(assets)} assets{' in album' if options.album_id else ''}\n")

    if not assets:
        print("No assets found matching the criteria.\n")
        return 0

    print("Analyzing assets for matching pairs...")
    print(f"  Processing {len(assets)} assets...\n")
    result = resolve_pairs(assets, cover, raw, stem, skip_stacked=options.skip_stacked)
    _report_warnings(result, options.verbose)

    print("Results:")
    print(f"  Total pairs found:  {len(result.pairs)}")
    print(f"  Skipped (no match): {result.skipped_no_match}")
    if options.skip_stacked:
        print(f"  Skipped (stacked):  {result.skipped_already_stacked}")
    print()

    if not result.pairs:
        print("No pairs to stack.\n")
        return 0

    _print_pairs(result.pairs, options.verbose)

    if options.dry_run:
        print(f"Dry run complete. {len(result.pairs)} stacks would be created.\n")
        return 0

    print(f"Creating {len(result.pairs)} stacks...\n")
    batch = await create_stacks(
        client,
        result.pairs,
        on_created=lambda p: print(f"  Created stack: {p.cover_file_name} + {p.raw_file_name}"),
    )

    print("\nSummary:")
    print(f"  Stacks created:  {batch.created}")
    print(f"  Failed:          {len(batch.failed)}\n")

    return batch.exit_code
