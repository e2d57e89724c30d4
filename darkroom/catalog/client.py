"""
Async HTTP client for the Immich REST API.

Only the handful of endpoints Darkroom needs are wrapped. Every method
returns value objects from `darkroom.catalog.models`; transport and HTTP
failures are translated into `CatalogError` subclasses so callers never
have to know about httpx.

Retries and backoff are not handled here; a failed request fails the call.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from types import TracebackType
from typing import Any, Iterator, Sequence

import httpx

from darkroom.catalog.models import Album, Asset, DateRange, SearchField, User
from darkroom.config import DEFAULT_TIMEOUT, Config

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


class CatalogError(RuntimeError):
    """Base error for catalog operations."""


class CatalogHttpError(CatalogError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class CatalogConnectionError(CatalogError):
    """Raised when the server cannot be reached."""


class CatalogTimeoutError(CatalogConnectionError):
    """Raised when a request times out."""


class CatalogResponseError(CatalogError):
    """Raised when a 2xx response body is not the expected JSON shape."""


@contextmanager
def _parsing(method: str, path: str) -> Iterator[None]:
    # Payload parsing failures surface as catalog errors, not raw KeyErrors.
    try:
        yield
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        raise CatalogResponseError(f"Unexpected response from {method} {path}: {e!r}") from e


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        message = body["message"]
        # Immich returns validation errors as a list of strings
        if isinstance(message, list):
            return "; ".join(str(m) for m in message)
        return str(message)
    return response.reason_phrase


class CatalogClient:
    """
    Thin async wrapper around the Immich API.

    Use as an async context manager so the underlying connection pool
    is closed:

        async with CatalogClient.from_config(config) as client:
            albums = await client.list_albums()
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. "https://photos.example.com/api".
            api_key: Immich API key sent with every request.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests pass an ASGI transport).
        """
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={API_KEY_HEADER: api_key, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls, config: Config, transport: httpx.AsyncBaseTransport | None = None
    ) -> CatalogClient:
        return cls(
            base_url=config.api_base_url,
            api_key=config.api_key,
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> CatalogClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        logger.debug("%s %s", method, path)
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.TimeoutException as e:
            raise CatalogTimeoutError(f"Request timed out: {method} {path}") from e
        except httpx.TransportError as e:
            raise CatalogConnectionError(f"Network error: {e}") from e

        if response.is_error:
            raise CatalogHttpError(response.status_code, _error_message(response))

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise CatalogResponseError(f"Invalid JSON response from {method} {path}") from e

    # -------------------------------------------------------------------------
    # Assets
    # -------------------------------------------------------------------------

    async def search_assets(
        self,
        *,
        page: int,
        size: int,
        date_range: DateRange | None = None,
        field: SearchField | None = None,
        location: str | None = None,
        with_stacked: bool = False,
    ) -> list[Asset]:
        """
        Run one page of a metadata search.

        Args:
            page: 1-based page number.
            size: Page size; the server returns at most this many items.
            date_range: Optional capture-date bounds.
            field: Location field to filter on (requires `location`).
            location: Value matched against `field`.
            with_stacked: Ask the server to include stack membership.

        Returns:
            The assets on this page, in server order.
        """
        if (field is None) != (location is None):
            raise ValueError("field and location must be given together")

        body: dict[str, Any] = {
            "page": page,
            "size": size,
            "visibility": "timeline",
            "withStacked": with_stacked,
        }
        if date_range is not None:
            body.update(date_range.to_filter())
        if field is not None:
            body[field.value] = location

        data = await self._request("POST", "/search/metadata", json=body)
        with _parsing("POST", "/search/metadata"):
            items = (data or {}).get("assets", {}).get("items", [])
            return [Asset.from_dict(item) for item in items]

    async def get_album_assets(self, album_id: str) -> list[Asset]:
        """Return every asset in one album."""
        data = await self._request("GET", f"/albums/{album_id}")
        with _parsing("GET", f"/albums/{album_id}"):
            return [Asset.from_dict(item) for item in (data or {}).get("assets") or []]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create_stack(self, asset_ids: Sequence[str]) -> str | None:
        """Create a stack; the first id becomes the primary asset. Returns the stack id."""
        data = await self._request("POST", "/stacks", json={"assetIds": list(asset_ids)})
        return data.get("id") if isinstance(data, dict) else None

    async def create_album(self, name: str, asset_ids: Sequence[str]) -> Album:
        data = await self._request(
            "POST",
            "/albums",
            json={"albumName": name, "assetIds": list(asset_ids)},
        )
        with _parsing("POST", "/albums"):
            return Album.from_dict(data)

    # -------------------------------------------------------------------------
    # Albums / server
    # -------------------------------------------------------------------------

    async def list_albums(self) -> list[Album]:
        data = await self._request("GET", "/albums")
        with _parsing("GET", "/albums"):
            return [Album.from_dict(item) for item in data or []]

    async def ping(self) -> str | None:
        """Return the server's ping reply ("pong" when healthy)."""
        data = await self._request("GET", "/server/ping")
        return data.get("res") if isinstance(data, dict) else None

    async def get_my_user(self) -> User:
        data = await self._request("GET", "/users/me")
        with _parsing("GET", "/users/me"):
            return User.from_dict(data)
