"""
Filename stems and cover/raw classification.

A "stem" is the key that ties a cover image (e.g. IMG_001.jpg) to its raw
sibling (IMG_001.dng). By default it is the file name without its last
extension; a user supplied pattern with one capture group can override it
for cameras whose sidecar names differ by more than the extension.

Patterns are used through the small `Matcher` protocol so the grouping
logic does not care how matching is implemented.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from darkroom.catalog.models import Asset, AssetId
from darkroom.config import ConfigError


class PatternError(ConfigError):
    """Raised when a user supplied regular expression is invalid."""


class Role(Enum):
    COVER = "cover"
    RAW = "raw"
    UNCLASSIFIED = "unclassified"


class Matcher(Protocol):
    def matches(self, file_name: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class RegexMatcher:
    """Matcher backed by a compiled regular expression (search semantics)."""

    pattern: re.Pattern[str]

    def matches(self, file_name: str) -> bool:
        return self.pattern.search(file_name) is not None

    def extract(self, file_name: str) -> str | None:
        """Return the first capture group, or None if absent/empty/unmatched."""
        if self.pattern.groups < 1:
            return None
        match = self.pattern.search(file_name)
        if match is None:
            return None
        return match.group(1) or None


def compile_pattern(pattern: str, option_name: str) -> RegexMatcher:
    """
    Compile a user supplied pattern.

    Raises:
        PatternError: naming the option, for an empty or invalid pattern.
    """
    if not pattern:
        raise PatternError(f"Invalid regex for --{option_name}: pattern is empty")
    try:
        return RegexMatcher(re.compile(pattern))
    except re.error as e:
        raise PatternError(f"Invalid regex for --{option_name}: {e}") from e


def default_stem(file_name: str) -> str:
    """File name before its last '.', or the whole name if there is none."""
    head, dot, _ = file_name.rpartition(".")
    return head if dot else file_name


def file_stem(file_name: str, stem_pattern: RegexMatcher | None = None) -> tuple[str, bool]:
    """
    Compute the grouping stem of a file name.

    Returns:
        (stem, pattern_ok). `pattern_ok` is False only when a stem pattern
        was given but did not produce a non-empty capture; the default
        stem is used in that case.
    """
    if stem_pattern is None:
        return default_stem(file_name), True

    captured = stem_pattern.extract(file_name)
    if captured is not None:
        return captured, True
    return default_stem(file_name), False


@dataclass(frozen=True, slots=True)
class ClassifiedAsset:
    id: AssetId
    file_name: str
    stem: str
    role: Role
    stem_matched: bool = True
    stacked: bool = False


def classify_name(file_name: str, cover: Matcher, raw: Matcher) -> Role:
    # Cover wins when both patterns match.
    if cover.matches(file_name):
        return Role.COVER
    if raw.matches(file_name):
        return Role.RAW
    return Role.UNCLASSIFIED


def classify(
    asset: Asset,
    cover: Matcher,
    raw: Matcher,
    stem_pattern: RegexMatcher | None = None,
) -> ClassifiedAsset:
    """Derive the stem and role of one asset."""
    name = asset.original_file_name
    stem, stem_matched = file_stem(name, stem_pattern)
    return ClassifiedAsset(
        id=asset.id,
        file_name=name,
        stem=stem,
        role=classify_name(name, cover, raw),
        stem_matched=stem_matched,
        stacked=asset.is_stacked,
    )
