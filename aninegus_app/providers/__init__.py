"""Upstream catalog providers."""

from .base import BaseCatalogProvider, RateLimiter
from .catalog_api import CatalogApiProvider, CATEGORY_ENDPOINTS, listing_path
from .jikan import JikanProvider

__all__ = [
    'BaseCatalogProvider', 'RateLimiter', 'CatalogApiProvider',
    'CATEGORY_ENDPOINTS', 'listing_path', 'JikanProvider',
]
