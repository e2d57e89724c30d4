"""
Shared fixtures: an in-process fake Immich server.

The fake is a small FastAPI app holding assets and albums in memory. Tests
reach it through `httpx.ASGITransport`, so the real `CatalogClient` code
path (URLs, headers, JSON bodies, error mapping) is exercised without a
network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from darkroom.catalog.client import CatalogClient

API_KEY = "test-api-key-1234"
BASE_URL = "http://immich.test"


@dataclass
class FakeAsset:
    id: str
    original_file_name: str
    taken_at: str = "2024-06-05T12:00:00.000Z"
    city: str | None = None
    country: str | None = None
    state: str | None = None
    stack_id: str | None = None

    def to_dict(self, with_stacked: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "originalFileName": self.original_file_name,
            "fileCreatedAt": self.taken_at,
        }
        if with_stacked:
            data["stack"] = {"id": self.stack_id} if self.stack_id else None
        return data


@dataclass
class FakeCatalog:
    """In-memory Immich stand-in with knobs for failure injection."""

    api_key: str = API_KEY
    assets: list[FakeAsset] = field(default_factory=list)
    albums: list[dict[str, Any]] = field(default_factory=list)
    stacks: list[list[str]] = field(default_factory=list)
    search_requests: list[dict[str, Any]] = field(default_factory=list)
    # Stack creation fails when any of these ids is involved
    failing_stack_ids: set[str] = field(default_factory=set)
    # Searches on this field ("city"/"country"/"state") fail with HTTP 500
    failing_search_field: str | None = None
    fail_album_creation: bool = False
    ping_reply: str = "pong"

    def __post_init__(self) -> None:
        self.app = self._build_app()

    # -- setup helpers -------------------------------------------------------

    def add_asset(self, asset_id: str, file_name: str, **kwargs: Any) -> FakeAsset:
        asset = FakeAsset(id=asset_id, original_file_name=file_name, **kwargs)
        self.assets.append(asset)
        return asset

    def add_album(self, name: str, asset_ids: list[str] | None = None) -> dict[str, Any]:
        album = {
            "id": f"album-{len(self.albums) + 1}",
            "albumName": name,
            "assetIds": list(asset_ids or []),
        }
        self.albums.append(album)
        return album

    def album_named(self, name: str) -> dict[str, Any] | None:
        return next((a for a in self.albums if a["albumName"] == name), None)

    # -- app -----------------------------------------------------------------

    def _search(self, body: dict[str, Any]) -> list[FakeAsset]:
        matches = []
        for asset in self.assets:
            if body.get("takenAfter") and asset.taken_at < body["takenAfter"]:
                continue
            if body.get("takenBefore") and asset.taken_at > body["takenBefore"]:
                continue
            if any(
                key in body and getattr(asset, key) != body[key]
                for key in ("city", "country", "state")
            ):
                continue
            matches.append(asset)
        return matches

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        catalog = self

        def error(status: int, message: str) -> JSONResponse:
            return JSONResponse({"message": message, "statusCode": status}, status_code=status)

        @app.middleware("http")
        async def check_api_key(request: Request, call_next):  # type: ignore[no-untyped-def]
            if request.url.path != "/api/server/ping" and request.headers.get("x-api-key") != catalog.api_key:
                return error(401, "Invalid API key")
            return await call_next(request)

        @app.post("/api/search/metadata")
        async def search_metadata(request: Request) -> Any:
            body = await request.json()
            catalog.search_requests.append(body)
            for key in ("city", "country", "state"):
                if key in body and key == catalog.failing_search_field:
                    return error(500, f"search on {key} failed")

            matches = catalog._search(body)
            page, size = body["page"], body["size"]
            items = matches[(page - 1) * size : page * size]
            with_stacked = body.get("withStacked", False)
            return {
                "assets": {
                    "items": [a.to_dict(with_stacked) for a in items],
                    "count": len(items),
                    "total": len(items),
                    "nextPage": str(page + 1) if len(items) == size else None,
                }
            }

        @app.get("/api/albums")
        async def list_albums() -> Any:
            return [
                {"id": a["id"], "albumName": a["albumName"], "assetCount": len(a["assetIds"])}
                for a in catalog.albums
            ]

        @app.get("/api/albums/{album_id}")
        async def get_album(album_id: str) -> Any:
            album = next((a for a in catalog.albums if a["id"] == album_id), None)
            if album is None:
                return error(404, "Album not found")
            by_id = {a.id: a for a in catalog.assets}
            return {
                "id": album["id"],
                "albumName": album["albumName"],
                "assets": [by_id[i].to_dict() for i in album["assetIds"] if i in by_id],
            }

        @app.post("/api/albums", status_code=201)
        async def create_album(request: Request) -> Any:
            if catalog.fail_album_creation:
                return error(500, "album creation failed")
            body = await request.json()
            album = catalog.add_album(body["albumName"], body.get("assetIds", []))
            return {"id": album["id"], "albumName": album["albumName"], "assetCount": len(album["assetIds"])}

        @app.post("/api/stacks", status_code=201)
        async def create_stack(request: Request) -> Any:
            body = await request.json()
            ids = body["assetIds"]
            if catalog.failing_stack_ids.intersection(ids):
                return error(400, "stack creation failed")
            catalog.stacks.append(ids)
            return {"id": f"stack-{len(catalog.stacks)}", "primaryAssetId": ids[0]}

        @app.get("/api/server/ping")
        async def ping() -> Any:
            return {"res": catalog.ping_reply}

        @app.get("/api/users/me")
        async def me() -> Any:
            return {"id": "user-1", "name": "Test User", "email": "test@example.com"}

        return app


@pytest.fixture
def catalog() -> FakeCatalog:
    """Fresh fake Immich server for each test."""
    return FakeCatalog()


@pytest.fixture
def transport(catalog: FakeCatalog) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=catalog.app)


@pytest.fixture
async def client(transport: httpx.ASGITransport) -> CatalogClient:
    """CatalogClient wired to the fake server."""
    async with CatalogClient(
        base_url=f"{BASE_URL}/api", api_key=API_KEY, transport=transport
    ) as client:
        yield client
