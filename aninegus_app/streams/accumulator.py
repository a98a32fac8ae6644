"""
================================================================================
AniNegus - Result Accumulator
================================================================================
Owns the displayed result list for every stream and is its only writer.

  - append(): merge a page into the list; the incoming page is the later
    source, so a re-fetched item's fresher metadata wins while it keeps its
    original position. Page 1 replaces the list.
  - commit(): append() behind a per-stream lock and the currency check, so
    a superseded response can never write, whatever order results arrive in.
================================================================================
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..search.deduplicator import merge
from ..models import CanonicalResult, SearchPage
from .lifecycle import RequestLifecycleTracker, RequestToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamView:
    """Immutable snapshot of one stream's displayed state."""
    items: Tuple[CanonicalResult, ...] = ()
    page_number: int = 0
    has_more: bool = False
    loading: bool = False
    error: Optional[str] = None

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(item.id for item in self.items)


@dataclass
class _StreamState:
    items: List[CanonicalResult] = field(default_factory=list)
    page_number: int = 0
    has_more: bool = False
    error: Optional[str] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class ResultAccumulator:
    """Per-stream displayed lists, gated by a RequestLifecycleTracker."""

    def __init__(self, tracker: RequestLifecycleTracker):
        self.tracker = tracker
        self._streams: Dict[str, _StreamState] = {}

    def _state(self, stream_key: str) -> _StreamState:
        state = self._streams.get(stream_key)
        if state is None:
            state = _StreamState()
            self._streams[stream_key] = state
        return state

    # =========================================================================
    # UNGATED OPERATIONS
    # =========================================================================

    def reset(self, stream_key: str) -> None:
        """Clear the displayed list for a stream."""
        state = self._state(stream_key)
        state.items = []
        state.page_number = 0
        state.has_more = False
        state.error = None

    def append(self, stream_key: str, page: SearchPage) -> StreamView:
        """Merge a page into the stream's list. Page 1 implies reset()."""
        if page.page_number <= 1:
            self.reset(stream_key)
        state = self._state(stream_key)
        state.items = merge([state.items, page.items])
        state.page_number = page.page_number
        state.has_more = page.has_more
        state.error = None
        return self.view(stream_key)

    def set_error(self, stream_key: str, message: str, page_number: int = 1) -> None:
        """Record a user-facing error. Page 1 failures clear the list."""
        if page_number <= 1:
            self.reset(stream_key)
        self._state(stream_key).error = message

    def clear_error(self, stream_key: str) -> None:
        self._state(stream_key).error = None

    def drop(self, stream_key: str) -> None:
        """Forget a torn-down stream entirely."""
        self._streams.pop(stream_key, None)

    # =========================================================================
    # GATED OPERATIONS
    # =========================================================================

    async def commit(self, stream_key: str, token: RequestToken, page: SearchPage) -> bool:
        """
        Apply a page if the token is still current for the stream.

        Returns:
            True if applied, False if the response was stale and discarded
        """
        async with self._state(stream_key).lock:
            if not self.tracker.is_current(stream_key, token):
                logger.debug(f"Discarded stale page {page.page_number} for '{stream_key}'")
                return False
            self.append(stream_key, page)
            return True

    async def fail(self, stream_key: str, token: RequestToken, message: str, page_number: int = 1) -> bool:
        """Record an error if the token is still current for the stream."""
        async with self._state(stream_key).lock:
            if not self.tracker.is_current(stream_key, token):
                return False
            self.set_error(stream_key, message, page_number)
            return True

    # =========================================================================
    # READ
    # =========================================================================

    def view(self, stream_key: str) -> StreamView:
        state = self._streams.get(stream_key)
        loading = self.tracker.is_pending(stream_key)
        if state is None:
            return StreamView(loading=loading)
        return StreamView(
            items=tuple(state.items),
            page_number=state.page_number,
            has_more=state.has_more,
            loading=loading,
            error=state.error,
        )
