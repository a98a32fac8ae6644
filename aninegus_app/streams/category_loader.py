"""
================================================================================
AniNegus - Category Loader
================================================================================
Loads home-page rows and paginated listing views.

Every category is its own stream ("category:top-airing", "category:genre:
action", ...), so rows load concurrently and never block or cancel each
other. Reloading a category supersedes only that category's request.

Route-driven page changes go through a per-category 0.3s debouncer; pages
accumulate with cross-page de-duplication.
================================================================================
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional

from ..errors import Cancelled, TransportFailure, UnknownCategory
from ..log import log
from ..providers.catalog_api import CatalogApiProvider
from ..search.normalizer import normalize_catalog_page
from .accumulator import ResultAccumulator, StreamView
from .debouncer import Debouncer, PAGE_DEBOUNCE_SECONDS
from .lifecycle import RequestLifecycleTracker

logger = logging.getLogger(__name__)

LISTING_FAILED_MESSAGE = "Failed to fetch anime data"

# Rows shown on the home page
HOME_CATEGORIES = (
    'recent-episodes',
    'top-airing',
    'genre:action',
    'genre:comedy',
    'genre:romance',
    'genre:fantasy',
)


def stream_key(category: str) -> str:
    return f"category:{category}"


class CategoryLoader:
    """Independent, cancellable listing streams keyed by category."""

    def __init__(
        self,
        provider: CatalogApiProvider,
        tracker: Optional[RequestLifecycleTracker] = None,
        accumulator: Optional[ResultAccumulator] = None,
        page_debounce: float = PAGE_DEBOUNCE_SECONDS
    ):
        self.provider = provider
        self.tracker = tracker or RequestLifecycleTracker()
        self.accumulator = accumulator or ResultAccumulator(self.tracker)
        self.page_debounce = page_debounce
        self._debouncers: Dict[str, Debouncer[int]] = {}
        self._categories = set()

    def view(self, category: str) -> StreamView:
        return self.accumulator.view(stream_key(category))

    async def load(self, category: str, page: int = 1) -> StreamView:
        """Fetch one page of a category and commit it if still current."""
        key = stream_key(category)
        self._categories.add(category)
        token = self.tracker.begin_stream(key)
        try:
            if not self.tracker.is_current(key, token):
                return self.view(category)
            payload = await token.run(self.provider.listing(category, page))
            listing = normalize_catalog_page(payload, page)
            if await self.accumulator.commit(key, token, listing):
                log(f"Page {listing.page_number}: {len(listing.items)} items", stream=key)
        except Cancelled:
            logger.debug(f"Request cancelled for category: {category}")
        except UnknownCategory as e:
            logger.error(str(e))
            await self.accumulator.fail(key, token, str(e), page)
        except TransportFailure as e:
            logger.error(f"Error fetching category '{category}' page {page}: {e}")
            message = LISTING_FAILED_MESSAGE
            if e.status_code:
                message = f"{message} (Status: {e.status_code})"
            await self.accumulator.fail(key, token, message, page)
        finally:
            self.tracker.finish(key, token)

        return self.view(category)

    async def load_many(self, categories: Iterable[str] = HOME_CATEGORIES, page: int = 1) -> Dict[str, StreamView]:
        """Load several categories concurrently."""
        categories = list(categories)
        views = await asyncio.gather(*(self.load(category, page) for category in categories))
        return dict(zip(categories, views))

    def request_page(self, category: str, page: int) -> None:
        """Route-driven page change, debounced per category."""
        debouncer = self._debouncers.get(category)
        if debouncer is None:
            debouncer = Debouncer(
                self.page_debounce,
                lambda value, category=category: self.load(category, value),
                name=f"{stream_key(category)}-page"
            )
            self._debouncers[category] = debouncer
        debouncer.push(page)

    async def settle(self) -> None:
        """Wait for debounced page loads already in flight."""
        for debouncer in list(self._debouncers.values()):
            await debouncer.drain()

    def close(self) -> None:
        """Cancel every pending page change and in-flight listing."""
        for debouncer in self._debouncers.values():
            debouncer.cancel()
        for category in self._categories:
            self.tracker.cancel_stream(stream_key(category))
            self.accumulator.drop(stream_key(category))
        self._categories.clear()
