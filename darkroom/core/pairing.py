"""
Cover/raw pair resolution.

Assets are fed to `PairResolver` one at a time. Each one is classified and
dropped into the group of its stem:

- a cover replaces any earlier cover of the same stem (last one wins, the
  replacement is reported)
- a raw is appended to the stem's raw list
- anything else is remembered but never grouped

`finish()` then walks the groups in first-seen order and emits one pair per
raw file of every group that has a cover. Groups with only a cover count
as one unmatched asset, groups with only raws count every raw.

The resolver owns all of its state; nothing is shared between instances.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from darkroom.catalog.models import Asset, AssetId
from darkroom.core.stems import ClassifiedAsset, Matcher, RegexMatcher, Role, classify

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Pair:
    cover_id: AssetId
    cover_file_name: str
    raw_id: AssetId
    raw_file_name: str
    stem: str

    @property
    def asset_ids(self) -> list[AssetId]:
        """Ids in stack order: cover first so it becomes the primary asset."""
        return [self.cover_id, self.raw_id]


@dataclass(frozen=True, slots=True)
class ReplacedCover:
    stem: str
    old_file_name: str
    new_file_name: str


@dataclass
class StemGroup:
    stem: str
    cover_id: AssetId | None = None
    raw_ids: list[AssetId] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class PairingResult:
    pairs: tuple[Pair, ...]
    skipped_no_match: int
    skipped_already_stacked: int = 0
    mismatched_stem_file_names: tuple[str, ...] = ()
    replaced_covers: tuple[ReplacedCover, ...] = ()
    groups: int = 0


class PairResolver:
    """
    Incremental stem grouping with last-cover-wins conflict handling.

    Usage:
        resolver = PairResolver(cover, raw)
        for asset in assets:
            resolver.add(asset)
        result = resolver.finish()
    """

    def __init__(
        self,
        cover: Matcher,
        raw: Matcher,
        stem_pattern: RegexMatcher | None = None,
        *,
        skip_stacked: bool = False,
    ) -> None:
        self._cover = cover
        self._raw = raw
        self._stem_pattern = stem_pattern
        self._skip_stacked = skip_stacked

        # Both dicts keep insertion order, which fixes the output order.
        self._groups: dict[str, StemGroup] = {}
        self._details: dict[AssetId, ClassifiedAsset] = {}
        self._mismatches: dict[str, None] = {}
        self._replaced: list[ReplacedCover] = []
        self._seen = 0

    @property
    def seen(self) -> int:
        return self._seen

    def add(self, asset: Asset) -> ClassifiedAsset:
        """Classify one asset and record it in its stem group."""
        item = classify(asset, self._cover, self._raw, self._stem_pattern)
        self._seen += 1
        self._details[item.id] = item

        if not item.stem_matched:
            self._mismatches.setdefault(item.file_name, None)

        if item.role is Role.UNCLASSIFIED:
            return item

        group = self._groups.get(item.stem)
        if group is None:
            group = self._groups[item.stem] = StemGroup(stem=item.stem)

        if item.role is Role.COVER:
            if group.cover_id is not None:
                self._replaced.append(
                    ReplacedCover(
                        stem=item.stem,
                        old_file_name=self._details[group.cover_id].file_name,
                        new_file_name=item.file_name,
                    )
                )
            group.cover_id = item.id
        else:
            group.raw_ids.append(item.id)

        return item

    def add_all(self, assets: Iterable[Asset]) -> None:
        for asset in assets:
            self.add(asset)

    def finish(self) -> PairingResult:
        """Turn the stem groups into pairs and unmatched counts."""
        pairs: list[Pair] = []
        skipped_no_match = 0
        skipped_stacked = 0

        for stem, group in self._groups.items():
            if group.cover_id is None:
                skipped_no_match += len(group.raw_ids)
                continue
            if not group.raw_ids:
                skipped_no_match += 1
                continue

            cover = self._details[group.cover_id]
            for raw_id in group.raw_ids:
                raw = self._details[raw_id]
                if self._skip_stacked and (cover.stacked or raw.stacked):
                    skipped_stacked += 1
                    continue
                pairs.append(
                    Pair(
                        cover_id=cover.id,
                        cover_file_name=cover.file_name,
                        raw_id=raw.id,
                        raw_file_name=raw.file_name,
                        stem=stem,
                    )
                )

        logger.debug(
            "Resolved %d asset(s) into %d group(s): %d pair(s), %d unmatched",
            self._seen,
            len(self._groups),
            len(pairs),
            skipped_no_match,
        )

        return PairingResult(
            pairs=tuple(pairs),
            skipped_no_match=skipped_no_match,
            skipped_already_stacked=skipped_stacked,
            mismatched_stem_file_names=tuple(self._mismatches),
            replaced_covers=tuple(self._replaced),
            groups=len(self._groups),
        )


def resolve_pairs(
    assets: Iterable[Asset],
    cover: Matcher,
    raw: Matcher,
    stem_pattern: RegexMatcher | None = None,
    *,
    skip_stacked: bool = False,
) -> PairingResult:
    """Pure entry point: group `assets` and return the resulting pairs."""
    resolver = PairResolver(cover, raw, stem_pattern, skip_stacked=skip_stacked)
    resolver.add_all(assets)
    return resolver.finish()
