"""
Mutating calls against the catalog.

Stack creation is a batch of independent calls: one failing pair is logged
and counted, the rest still run, and nothing is rolled back. Album creation
is a single call guarded by a full duplicate-name check.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from darkroom.catalog.client import CatalogClient, CatalogError
from darkroom.catalog.models import Album
from darkroom.core.pairing import Pair

logger = logging.getLogger(__name__)


class AlbumExistsError(RuntimeError):
    """Raised when an album with the requested name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f'Album "{name}" already exists.')
        self.name = name


@dataclass(frozen=True, slots=True)
class StackFailure:
    pair: Pair
    error: str


@dataclass(frozen=True, slots=True)
class StackBatchResult:
    created: int
    failed: tuple[StackFailure, ...] = ()

    @property
    def attempted(self) -> int:
        return self.created + len(self.failed)

    @property
    def exit_code(self) -> int:
        # An empty batch counts as success.
        return 0 if not self.failed else 1


async def create_stacks(
    client: CatalogClient,
    pairs: Sequence[Pair],
    on_created: Callable[[Pair], None] | None = None,
) -> StackBatchResult:
    """
    Create one stack per pair, sequentially, in the given order.

    A CatalogError on one pair is recorded and does not stop the batch.
    """
    created = 0
    failures: list[StackFailure] = []

    for pair in pairs:
        try:
            await client.create_stack(pair.asset_ids)
        except CatalogError as e:
            logger.error("Failed to create stack for %s: %s", pair.stem, e)
            failures.append(StackFailure(pair=pair, error=str(e)))
            continue

        created += 1
        logger.debug("Created stack %s + %s", pair.cover_file_name, pair.raw_file_name)
        if on_created is not None:
            on_created(pair)

    return StackBatchResult(created=created, failed=tuple(failures))


def album_exists(albums: Sequence[Album], name: str) -> bool:
    """Exact, case-sensitive name comparison."""
    return any(album.name == name for album in albums)


async def ensure_album_name_free(client: CatalogClient, name: str) -> None:
    """
    Fail if an album called `name` already exists.

    Raises:
        AlbumExistsError: on a name clash.
        CatalogError: if the album listing fails (no conclusion is drawn).
    """
    albums = await client.list_albums()
    if album_exists(albums, name):
        raise AlbumExistsError(name)
    logger.debug("No album named %r among %d album(s)", name, len(albums))


async def create_album(client: CatalogClient, name: str, asset_ids: Sequence[str]) -> Album:
    """Create an album; an empty asset list creates an empty album."""
    album = await client.create_album(name, list(asset_ids))
    logger.info("Created album %r (%s) with %d asset(s)", album.name, album.id, len(asset_ids))
    return album
