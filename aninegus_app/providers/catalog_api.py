"""
================================================================================
AniNegus - First-Party Catalog API Provider
================================================================================
Client for the application's own catalog routes.

  - GET /api/search/<query>/<page>   -> primary search
  - GET <listing endpoint>/<page>    -> category rows and listing views

Search failure is signalled purely by transport status; the orchestrator
decides what to do with it.
================================================================================
"""

import logging
from typing import Any, Dict
from urllib.parse import quote

from .base import BaseCatalogProvider
from ..errors import UnknownCategory

logger = logging.getLogger(__name__)

# Category -> listing endpoint (page number is appended)
CATEGORY_ENDPOINTS: Dict[str, str] = {
    'recent-episodes': '/api/recent-episodes/1',
    'top-airing': '/api/top-airing',
    'most-popular': '/api/most-popular',
    'movies': '/api/movies',
    'anime-list': '/api/anime-list',
}

GENRE_CATEGORY_PREFIX = 'genre:'


def listing_path(category: str, page: int) -> str:
    """
    Resolve a category to its listing path.

    `genre:<id>` categories map to the genre-search route; everything else
    must be one of CATEGORY_ENDPOINTS.

    Raises:
        UnknownCategory: no endpoint is configured for the category
    """
    if category.startswith(GENRE_CATEGORY_PREFIX):
        genre_id = category[len(GENRE_CATEGORY_PREFIX):].strip()
        if not genre_id:
            raise UnknownCategory(f"Missing genre id in category '{category}'")
        return f"/api/genre-search/{quote(genre_id, safe='')}/{page}"
    endpoint = CATEGORY_ENDPOINTS.get(category)
    if endpoint is None:
        raise UnknownCategory(f"Invalid route configuration for category '{category}'")
    return f"{endpoint}/{page}"


class CatalogApiProvider(BaseCatalogProvider):
    """Primary (first-party) catalog provider."""

    id = "catalog"
    name = "Catalog API"
    base_url = "http://127.0.0.1:3000"
    rate_limit = 600
    # One attempt; a failed primary goes straight to the fallback
    max_retries = 0

    async def search(self, query: str, page: int = 1) -> Dict[str, Any]:
        """
        Primary search.

        Returns:
            Raw payload with `results` and pagination metadata

        Raises:
            TransportFailure: any non-success status or transport error
        """
        return await self._get_json(f"/api/search/{quote(query, safe='')}/{page}")

    async def listing(self, category: str, page: int = 1) -> Dict[str, Any]:
        """Fetch one page of a category listing."""
        return await self._get_json(listing_path(category, page))
