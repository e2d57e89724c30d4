"""
Catalog access layer.

Everything that talks to the Immich server lives here:
- CatalogClient: async HTTP client (httpx)
- models: value objects for assets, albums and search filters
"""

from darkroom.catalog.client import (
    CatalogClient,
    CatalogConnectionError,
    CatalogError,
    CatalogHttpError,
    CatalogResponseError,
    CatalogTimeoutError,
)
from darkroom.catalog.models import Album, Asset, DateRange, SearchField, User

__all__ = [
    "Album",
    "Asset",
    "CatalogClient",
    "CatalogConnectionError",
    "CatalogError",
    "CatalogHttpError",
    "CatalogResponseError",
    "CatalogTimeoutError",
    "DateRange",
    "SearchField",
    "User",
]
