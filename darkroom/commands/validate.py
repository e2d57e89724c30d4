"""`darkroom validate` - check server reachability and API key."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

import httpx

from darkroom.catalog.client import (
    CatalogClient,
    CatalogConnectionError,
    CatalogError,
    CatalogHttpError,
    CatalogTimeoutError,
)
from darkroom.config import Config, mask_api_key

logger = logging.getLogger(__name__)


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def format_error(err: Exception) -> str:
    """Turn a catalog error into a short, user-facing reason."""
    if isinstance(err, CatalogHttpError):
        if err.status_code == 401:
            return "Invalid API key"
        if err.status_code == 403:
            return "API key does not have permission"
        return f"API error: {err.message or 'Unknown error'}"
    if isinstance(err, CatalogTimeoutError):
        return "Request timed out"
    if isinstance(err, CatalogConnectionError):
        return str(err)
    return str(err) or "Unknown error"


async def validate(config: Config, *, transport: httpx.AsyncBaseTransport | None = None) -> int:
    """
    Validate URL format, server reachability and API key authentication.

    Returns:
        Exit code: 0 if all checks pass, 1 otherwise.
    """
    print("\nValidating Immich configuration...\n")
    print(f"  URL:     {config.url}")
    print(f"  API Key: {mask_api_key(config.api_key)} (masked)")
    print()

    ok = True

    if not is_valid_url(config.url):
        print("  [FAIL] URL format is invalid")
        print("         Expected: http(s)://hostname")
        print("\nServer is not reachable.\n")
        return 1
    print("  [OK] URL format is valid")

    async with CatalogClient.from_config(config, transport=transport) as client:
        try:
            reply = await client.ping()
        except CatalogError as e:
            ok = False
            print("  [FAIL] Server is not reachable")
            print(f"         Error: {format_error(e)}")
        else:
            if reply == "pong":
                print("  [OK] Server is reachable")
            else:
                ok = False
                logger.debug("Unexpected ping reply: %r", reply)
                print("  [FAIL] Server returned unexpected response")

        if ok:
            try:
                user = await client.get_my_user()
            except CatalogError as e:
                ok = False
                print("  [FAIL] API key authentication failed")
                print(f"         Error: {format_error(e)}")
            else:
                print("  [OK] API key is valid")
                print(f"         Authenticated as: {user.name} ({user.email})")

    print()
    if ok:
        print("Server is reachable!\n")
        return 0
    print("Server is not reachable.\n")
    return 1
