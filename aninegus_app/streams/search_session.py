"""
================================================================================
AniNegus - Search Session
================================================================================
Controller behind the search box.

  keystrokes -> Debouncer (0.5s) -> submit(query, 1) -> search() -> commit
  "Load more" -> submit(query, current_page + 1)
  genre chips -> filter results before commit, re-run page 1

Error kinds become UI state here:
  - EmptyQuery          -> inline message, list cleared, no network call
  - Cancelled           -> ignored (a newer search owns the stream)
  - FallbackUnavailable -> generic failure message; page 1 clears the list,
                           later pages keep what was already loaded
================================================================================
"""

import logging
from typing import Iterable, Optional, Set

from ..errors import Cancelled, EmptyQuery, FallbackUnavailable
from ..log import debug_log_event
from ..models import SearchPage
from ..search.smart_search import SearchContext, search
from .accumulator import ResultAccumulator, StreamView
from .debouncer import Debouncer, SEARCH_DEBOUNCE_SECONDS
from .lifecycle import RequestLifecycleTracker

logger = logging.getLogger(__name__)

SEARCH_FAILED_MESSAGE = "Failed to fetch search results"


class SearchSession:
    """One search box: a stream key, its debouncer and its genre filter."""

    def __init__(
        self,
        context: SearchContext,
        tracker: Optional[RequestLifecycleTracker] = None,
        accumulator: Optional[ResultAccumulator] = None,
        stream_key: str = "search",
        debounce: float = SEARCH_DEBOUNCE_SECONDS
    ):
        self.context = context
        self.tracker = tracker or RequestLifecycleTracker()
        self.accumulator = accumulator or ResultAccumulator(self.tracker)
        self.stream_key = stream_key
        self.query = ""
        self.selected_genres: Set[str] = set()
        self._debouncer: Debouncer[str] = Debouncer(debounce, self._on_settled, name=f"{stream_key}-input")

    @property
    def view(self) -> StreamView:
        return self.accumulator.view(self.stream_key)

    # =========================================================================
    # INPUT
    # =========================================================================

    def on_input(self, text: str) -> None:
        """Feed a live keystroke value; the search fires once input settles."""
        self._debouncer.push(text)

    async def _on_settled(self, text: str) -> None:
        if text:
            await self.submit(text, 1)

    async def settle(self) -> None:
        """Wait for debounced searches already in flight (tests, teardown)."""
        await self._debouncer.drain()

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def submit(self, query: str, page: int = 1) -> StreamView:
        """
        Run a search now and commit it if it is still current.

        Returns:
            The stream's view after this attempt settled
        """
        key = self.stream_key
        self._debouncer.cancel()
        self.query = query

        if not query.strip():
            self.tracker.cancel_stream(key)
            self.accumulator.set_error(key, str(EmptyQuery()), 1)
            return self.view

        token = self.tracker.begin_stream(key)
        try:
            if not self.tracker.is_current(key, token):
                return self.view
            result = await search(self.context, query, page, token)
            applied = await self.accumulator.commit(key, token, self._filter_genres(result))
            debug_log_event({
                'event': 'search_commit',
                'stream': key,
                'query': query,
                'page': result.page_number,
                'count': len(result.items),
                'applied': applied,
            })
        except Cancelled:
            logger.debug(f"Search '{query}' page {page} superseded")
        except EmptyQuery as e:
            await self.accumulator.fail(key, token, str(e), 1)
        except FallbackUnavailable as e:
            logger.error(f"Search '{query}' page {page} failed: {e}")
            await self.accumulator.fail(key, token, SEARCH_FAILED_MESSAGE, page)
        finally:
            self.tracker.finish(key, token)

        return self.view

    async def load_more(self) -> StreamView:
        """Fetch the next page if there is one and nothing is loading."""
        current = self.view
        if not current.has_more or current.loading or not self.query:
            return current
        return await self.submit(self.query, current.page_number + 1)

    # =========================================================================
    # GENRE FILTER
    # =========================================================================

    async def toggle_genre(self, genre: str) -> StreamView:
        """Toggle a genre chip and re-run page 1 for the active query."""
        if genre in self.selected_genres:
            self.selected_genres.discard(genre)
        else:
            self.selected_genres.add(genre)
        if self.query.strip():
            return await self.submit(self.query, 1)
        return self.view

    def set_genres(self, genres: Iterable[str]) -> None:
        self.selected_genres = set(genres)

    def _filter_genres(self, page: SearchPage) -> SearchPage:
        if not self.selected_genres:
            return page
        items = tuple(item for item in page.items if item.genres & self.selected_genres)
        return SearchPage(items=items, page_number=page.page_number, has_more=page.has_more)

    # =========================================================================
    # TEARDOWN
    # =========================================================================

    def close(self) -> None:
        """Cancel pending input and the in-flight search (unmount)."""
        self._debouncer.cancel()
        self.tracker.cancel_stream(self.stream_key)
        self.accumulator.drop(self.stream_key)
