"""Parsing of --after/--before date options into API filter values."""

from __future__ import annotations

from datetime import datetime, timezone

from darkroom.config import ConfigError


class DateParseError(ConfigError):
    """Raised for a date option that is not ISO 8601."""


def parse_date(value: str) -> str:
    """
    Parse an ISO 8601 date or date-time into a UTC timestamp string.

    Naive values are taken as UTC. The result has millisecond precision
    and a "Z" suffix, e.g. "2024-06-01" -> "2024-06-01T00:00:00.000Z".
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise DateParseError(
            f"Invalid date format: {value}. Use ISO format (YYYY-MM-DD)"
        ) from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    else:
        parsed = parsed.astimezone(timezone.utc)

    return parsed.strftime("%Y-%m-%dT%H:%M:%S.") + f"{parsed.microsecond // 1000:03d}Z"


def parse_optional_date(value: str | None) -> str | None:
    """Like parse_date, but None or "" mean "no bound"."""
    if not value:
        return None
    return parse_date(value)
