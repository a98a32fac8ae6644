import asyncio
import os
import tempfile
from typing import Any, Dict, List, Optional

import pytest

# Keep test logs out of the project tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="aninegus-logs-"))
os.environ.setdefault("DEBUG_LOGGING", "false")

from aninegus_app.errors import TransportFailure  # noqa: E402
from aninegus_app.models import CanonicalResult, Genre  # noqa: E402
from aninegus_app.search.expander import AbbreviationTable  # noqa: E402
from aninegus_app.search.smart_search import GenreCache, SearchContext  # noqa: E402


def make_result(item_id: str, title: Optional[str] = None, popularity: int = 0, **kwargs) -> CanonicalResult:
    return CanonicalResult(id=item_id, title=title or f"Title {item_id}", popularity=popularity, **kwargs)


def catalog_item(item_id: str, title: str, popularity: Optional[int] = None, **extra) -> Dict[str, Any]:
    item = {"id": item_id, "title": title, "image": f"https://img.example/{item_id}.jpg"}
    if popularity is not None:
        item["popularity"] = popularity
    item.update(extra)
    return item


def jikan_item(mal_id: int, title: str, members: int = 0, genres: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "mal_id": mal_id,
        "title": title,
        "images": {"jpg": {"image_url": f"https://cdn.example/{mal_id}.jpg"}},
        "aired": {"from": "2020-10-03T00:00:00+00:00"},
        "url": f"https://myanimelist.net/anime/{mal_id}",
        "genres": [{"mal_id": i, "name": name} for i, name in enumerate(genres or [])],
        "members": members,
    }


def catalog_payload(items, has_next: bool = False, current: int = 1) -> Dict[str, Any]:
    return {"currentPage": current, "hasNextPage": has_next, "results": list(items)}


def jikan_payload(items, has_next: bool = False, current: int = 1) -> Dict[str, Any]:
    return {"data": list(items), "pagination": {"has_next_page": has_next, "current_page": current}}


class FakePrimary:
    """Stands in for CatalogApiProvider."""

    def __init__(self, payloads=None, error: Optional[Exception] = None, delay: float = 0.0):
        self.payloads = payloads if payloads is not None else {}
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []
        self.listing_calls: List[tuple] = []
        self.listing_payloads: Dict[tuple, Any] = {}
        self.listing_delays: Dict[tuple, float] = {}

    async def search(self, query: str, page: int = 1):
        self.calls.append((query, page))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if callable(self.payloads):
            return self.payloads(query, page)
        return self.payloads.get((query, page), catalog_payload([], current=page))

    async def listing(self, category: str, page: int = 1):
        self.listing_calls.append((category, page))
        delay = self.listing_delays.get((category, page), 0.0)
        if delay:
            await asyncio.sleep(delay)
        payload = self.listing_payloads.get((category, page))
        if isinstance(payload, Exception):
            raise payload
        if payload is None:
            raise TransportFailure(f"HTTP 404 for {category}", status_code=404)
        return payload

    async def close(self):
        pass


class FakeJikan:
    """Stands in for JikanProvider."""

    name = "MyAnimeList (Jikan)"

    def __init__(self, genres=None, title_payloads=None, genre_payloads=None,
                 title_error: Optional[Exception] = None, delay: float = 0.0):
        self.genres = genres or []
        self.title_payloads = title_payloads or {}
        self.genre_payloads = genre_payloads or {}
        self.title_error = title_error
        self.delay = delay
        self.calls: List[tuple] = []
        self.genre_calls: List[int] = []

    async def get_genres(self):
        return list(self.genres)

    async def search(self, query: str, page: int = 1, limit: int = 20):
        self.calls.append((query, page))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.title_error is not None:
            raise self.title_error
        return self.title_payloads.get((query, page), jikan_payload([], current=page))

    async def search_by_genre(self, genre_id: int, limit: int = 10):
        self.genre_calls.append(genre_id)
        payload = self.genre_payloads.get(genre_id, jikan_payload([]))
        if isinstance(payload, Exception):
            raise payload
        return payload

    async def close(self):
        pass


def make_context(primary=None, fallback=None, genres=None) -> SearchContext:
    return SearchContext(
        primary=primary or FakePrimary(),
        fallback=fallback or FakeJikan(),
        abbreviations=AbbreviationTable(),
        genre_cache=GenreCache(genres or []),
    )


@pytest.fixture
def genres() -> List[Genre]:
    return [Genre(1, "Action"), Genre(4, "Comedy"), Genre(36, "Slice of Life"), Genre(22, "Romance")]
