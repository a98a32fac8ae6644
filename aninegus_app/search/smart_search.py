"""
================================================================================
AniNegus - Smart Search Coordinator
================================================================================
Primary-then-fallback retrieval, as a function of (context, query, page, token).

Flow (strict order):
  1. Reject blank queries (EmptyQuery, no network call)
  2. Expand abbreviations ("jjk" -> "jujutsu kaisen")
  3. Ask the first-party catalog API
  4. Primary succeeded -> normalize, rank, return (even if empty)
  5. Primary failed -> concurrently:
       a. genre path: every known genre whose name contains the query,
          up to 10 items each
       b. title path: Jikan free-text search (failure is fatal:
          FallbackUnavailable)
  6. Merge [genre, title] (title wins on id collision), rank, return with
     the title path's pagination

Every network call runs through the caller's RequestToken, so superseding the
token aborts the call and raises Cancelled.
================================================================================
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..config import Settings
from ..errors import Cancelled, EmptyQuery, FallbackUnavailable, TransportFailure
from ..providers.catalog_api import CatalogApiProvider
from ..providers.jikan import JikanProvider, GENRE_FETCH_LIMIT
from ..streams.lifecycle import RequestToken
from .deduplicator import merge
from .expander import AbbreviationTable
from ..models import CanonicalResult, Genre, SearchPage
from .normalizer import (
    normalize_batch,
    normalize_catalog_page,
    normalize_jikan_item,
    payload_items,
    read_pagination,
)
from .ranker import rank

logger = logging.getLogger(__name__)


class GenreCache:
    """
    Genre catalog loaded once per context, best-effort.

    An empty cache is valid: the genre path then simply finds nothing.
    """

    def __init__(self, genres: Optional[List[Genre]] = None):
        self.genres: List[Genre] = list(genres or [])
        self.loaded = genres is not None

    async def load(self, provider: JikanProvider) -> "GenreCache":
        if self.loaded:
            return self
        try:
            self.genres = await provider.get_genres()
            logger.info(f"Loaded {len(self.genres)} genres from {provider.name}")
        except TransportFailure as e:
            logger.error(f"Failed to fetch genres: {e}")
        self.loaded = True
        return self

    def match(self, query: str) -> List[Genre]:
        """Genres whose name contains `query`, case-insensitively."""
        needle = query.lower()
        return [genre for genre in self.genres if needle in genre.name.lower()]


@dataclass
class SearchContext:
    """Everything a search needs besides the query, page and token."""
    primary: CatalogApiProvider
    fallback: JikanProvider
    abbreviations: AbbreviationTable = field(default_factory=AbbreviationTable)
    genre_cache: GenreCache = field(default_factory=GenreCache)

    async def close(self):
        await self.primary.close()
        await self.fallback.close()


def build_providers(settings: Settings) -> Tuple[CatalogApiProvider, JikanProvider]:
    """Primary gets a single attempt; only the Jikan fallback retries."""
    primary = CatalogApiProvider(
        base_url=settings.catalog_api_url,
        rate_limit=settings.catalog_rate_limit,
        timeout=settings.http_timeout,
    )
    fallback = JikanProvider(
        base_url=settings.jikan_api_url,
        rate_limit=settings.jikan_rate_limit,
        timeout=settings.http_timeout,
        max_retries=settings.jikan_max_retries,
    )
    return primary, fallback


async def build_context(settings: Optional[Settings] = None) -> SearchContext:
    """Create providers from settings and load the genre catalog once."""
    primary, fallback = build_providers(settings or Settings.from_env())
    context = SearchContext(primary=primary, fallback=fallback)
    await context.genre_cache.load(fallback)
    return context


async def search(context: SearchContext, query: str, page: int, token: RequestToken) -> SearchPage:
    """
    Search the catalog.

    Args:
        context: Providers, abbreviation table and genre cache
        query: Raw user query
        page: 1-based page number
        token: Token of the stream issuing the search

    Returns:
        Ranked, de-duplicated SearchPage

    Raises:
        EmptyQuery: blank query
        Cancelled: token superseded mid-flight
        FallbackUnavailable: primary and fallback title search both failed
    """
    if not query or not query.strip():
        raise EmptyQuery()

    start_time = time.time()
    expanded = context.abbreviations.expand(query)

    try:
        payload = await token.run(context.primary.search(expanded, page))
    except TransportFailure as e:
        logger.warning(f"Primary search failed for '{expanded}' (page {page}): {e} - using fallback")
        result = await _fallback_search(context, expanded, page, token)
    else:
        catalog_page = normalize_catalog_page(payload, page)
        result = SearchPage(
            items=tuple(rank(catalog_page.items, expanded)),
            page_number=catalog_page.page_number,
            has_more=catalog_page.has_more,
        )

    logger.info(
        f"Search '{expanded}' page {result.page_number}: {len(result.items)} results "
        f"in {time.time() - start_time:.2f}s"
    )
    return result


async def _fallback_search(context: SearchContext, expanded: str, page: int, token: RequestToken) -> SearchPage:
    genre_task = asyncio.ensure_future(_search_by_genre(context, expanded, token))

    try:
        payload = await token.run(context.fallback.search(expanded, page))
    except (TransportFailure, Cancelled, asyncio.CancelledError) as e:
        genre_task.cancel()
        await asyncio.gather(genre_task, return_exceptions=True)
        if isinstance(e, TransportFailure):
            raise FallbackUnavailable(f"Failed to fetch search results: {e}") from e
        raise

    genre_results = await genre_task
    title_results = normalize_batch(payload_items(payload, 'data'), normalize_jikan_item)

    merged = merge([genre_results, title_results])
    page_number, has_more = read_pagination(payload, page)
    logger.info(
        f"Fallback for '{expanded}': {len(genre_results)} genre + {len(title_results)} title "
        f"-> {len(merged)} unique"
    )
    return SearchPage(items=tuple(rank(merged, expanded)), page_number=page_number, has_more=has_more)


async def _search_by_genre(context: SearchContext, expanded: str, token: RequestToken) -> List[CanonicalResult]:
    genres = context.genre_cache.match(expanded)
    if not genres:
        return []

    async def fetch(genre: Genre) -> List[CanonicalResult]:
        try:
            payload = await token.run(context.fallback.search_by_genre(genre.id, GENRE_FETCH_LIMIT))
        except TransportFailure as e:
            logger.warning(f"Genre search failed for '{genre.name}': {e}")
            return []
        return normalize_batch(payload_items(payload, 'data'), normalize_jikan_item)

    batches = await asyncio.gather(*(fetch(genre) for genre in genres))
    return [result for batch in batches for result in batch]
