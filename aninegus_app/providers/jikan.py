"""
================================================================================
AniNegus - Jikan Provider (MyAnimeList)
================================================================================
REST client for Jikan v4, the public catalog used as search fallback.

Endpoints used:
  - GET /genres/anime                     -> genre catalog
  - GET /anime?genres=<id>&limit=10       -> items tagged with a genre
  - GET /anime?q=<query>&page=<n>&limit=20 -> free-text title search

Jikan allows 3 requests/sec and 60/min; the rate limiter keeps us under it.

API Docs: https://docs.api.jikan.moe/
================================================================================
"""

import logging
from typing import Any, Dict, List

from .base import BaseCatalogProvider
from ..models import Genre

logger = logging.getLogger(__name__)

# Items fetched per matching genre on the fallback genre path
GENRE_FETCH_LIMIT = 10
# Items per page on the fallback title path
TITLE_PAGE_SIZE = 20


class JikanProvider(BaseCatalogProvider):
    """Jikan v4 API provider for MyAnimeList anime data."""

    id = "jikan"
    name = "MyAnimeList (Jikan)"
    base_url = "https://api.jikan.moe/v4"
    rate_limit = 180

    async def get_genres(self) -> List[Genre]:
        """
        Fetch the anime genre catalog.

        Returns:
            Genres with a usable id and name; unparseable entries are skipped

        Raises:
            TransportFailure: the catalog could not be fetched
        """
        payload = await self._get_json("/genres/anime")
        genres = []
        entries = payload.get('data')
        if not isinstance(entries, list):
            entries = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            name = entry.get('name')
            try:
                genre_id = int(entry.get('mal_id'))
            except (TypeError, ValueError):
                continue
            if isinstance(name, str) and name:
                genres.append(Genre(id=genre_id, name=name))
        return genres

    async def search_by_genre(self, genre_id: int, limit: int = GENRE_FETCH_LIMIT) -> Dict[str, Any]:
        """Fetch up to `limit` anime tagged with a genre."""
        return await self._get_json("/anime", params={'genres': genre_id, 'limit': limit})

    async def search(self, query: str, page: int = 1, limit: int = TITLE_PAGE_SIZE) -> Dict[str, Any]:
        """
        Free-text anime search.

        Returns:
            Raw payload with `data` items and a `pagination` block
        """
        return await self._get_json("/anime", params={'q': query, 'page': page, 'limit': limit})
