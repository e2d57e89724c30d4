"""
Value objects for data returned by the Immich API.

Only the fields Darkroom needs are kept; the rest of each payload is dropped
at the client boundary so the core never sees raw JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, NewType

AssetId = NewType("AssetId", str)
AlbumId = NewType("AlbumId", str)


@dataclass(frozen=True, slots=True)
class Asset:
    id: AssetId
    original_file_name: str
    stack_id: str | None = None

    @property
    def is_stacked(self) -> bool:
        return self.stack_id is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Asset:
        stack = data.get("stack")
        stack_id = stack.get("id") if isinstance(stack, dict) else None
        return cls(
            id=AssetId(str(data["id"])),
            original_file_name=str(data.get("originalFileName", "")),
            stack_id=stack_id,
        )


@dataclass(frozen=True, slots=True)
class Album:
    id: AlbumId
    name: str
    asset_count: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Album:
        count = data.get("assetCount")
        return cls(
            id=AlbumId(str(data["id"])),
            name=str(data.get("albumName", "")),
            asset_count=int(count) if count is not None else None,
        )


@dataclass(frozen=True, slots=True)
class User:
    id: str
    name: str
    email: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            email=str(data.get("email", "")),
        )


class SearchField(Enum):
    """Location field a metadata search can be scoped to."""

    CITY = "city"
    COUNTRY = "country"
    STATE = "state"


@dataclass(frozen=True, slots=True)
class DateRange:
    """Capture-date bounds as UTC ISO strings; either side may be open."""

    taken_after: str | None = None
    taken_before: str | None = None

    def to_filter(self) -> dict[str, str]:
        out: dict[str, str] = {}
        if self.taken_after:
            out["takenAfter"] = self.taken_after
        if self.taken_before:
            out["takenBefore"] = self.taken_before
        return out
