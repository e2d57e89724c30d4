"""
Configuration management for Darkroom.

Settings come from three places, highest precedence first:
- command line overrides (--baseurl / --apikey)
- environment variables (IMMICH_URL / IMMICH_API_KEY), optionally from a .env file
- an optional TOML file with an [immich] table
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_TIMEOUT = 30.0

ENV_URL = "IMMICH_URL"
ENV_API_KEY = "IMMICH_API_KEY"


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True, slots=True)
class Config:
    """Connection settings for the Immich server."""

    url: str
    api_key: str
    page_size: int = DEFAULT_PAGE_SIZE
    timeout: float = DEFAULT_TIMEOUT

    @property
    def api_base_url(self) -> str:
        """Base URL of the REST API (server URL without trailing slash + /api)."""
        return f"{self.url.rstrip('/')}/api"


@dataclass(frozen=True, slots=True)
class ConfigOverrides:
    """Values passed explicitly on the command line."""

    url: str | None = None
    api_key: str | None = None


def _load_toml(config_path: Path) -> dict[str, object]:
    """Read the [immich] table from a TOML config file."""
    logger.debug("Loading config from %s", config_path)

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    section = data.get("immich", {})
    if not isinstance(section, dict):
        raise ConfigError(f"Invalid config file {config_path}: [immich] must be a table")
    return section


def _positive_number(value: object, name: str, kind: type) -> int | float:
    try:
        number = kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {name}: {value!r}") from e
    if number <= 0:
        raise ConfigError(f"Invalid value for {name}: {value!r} (must be positive)")
    return number


def load_config(
    overrides: ConfigOverrides | None = None,
    config_path: Path | None = None,
    *,
    use_dotenv: bool = True,
) -> Config:
    """
    Load configuration from CLI overrides, the environment and a TOML file.

    Args:
        overrides: Explicit values from the command line.
        config_path: Optional TOML file. Only read when given.
        use_dotenv: Load a .env file from the working directory first.
            Existing environment variables are never overwritten.

    Returns:
        The resolved Config.

    Raises:
        ConfigError: If the URL or API key is missing, or the file is invalid.
    """
    overrides = overrides or ConfigOverrides()

    if use_dotenv:
        load_dotenv(override=False)

    file_values = _load_toml(config_path) if config_path is not None else {}

    url = overrides.url or os.environ.get(ENV_URL) or file_values.get("url")
    api_key = overrides.api_key or os.environ.get(ENV_API_KEY) or file_values.get("api_key")

    missing: list[str] = []
    if not url:
        missing.append(f"{ENV_URL} (or --baseurl)")
    if not api_key:
        missing.append(f"{ENV_API_KEY} (or --apikey)")

    if missing:
        raise ConfigError(
            "Missing required configuration:\n  - "
            + "\n  - ".join(missing)
            + "\n\nSet these in a .env file or pass them as command-line arguments."
        )

    page_size = _positive_number(file_values.get("page_size", DEFAULT_PAGE_SIZE), "page_size", int)
    timeout = _positive_number(file_values.get("timeout", DEFAULT_TIMEOUT), "timeout", float)

    return Config(
        url=str(url),
        api_key=str(api_key),
        page_size=int(page_size),
        timeout=float(timeout),
    )


def mask_api_key(api_key: str) -> str:
    """
    Mask an API key for display, keeping only a few characters at each end.

    Keys of four characters or less are fully masked. Longer keys keep
    20% of their length on each side, clamped to 1..4 characters.
    """
    length = len(api_key)
    if length <= 4:
        return "***"

    show = max(1, min(4, int(length * 0.2)))
    return f"{api_key[:show]}***{api_key[-show:]}"


__all__ = [
    "Config",
    "ConfigError",
    "ConfigOverrides",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_TIMEOUT",
    "load_config",
    "mask_api_key",
]
