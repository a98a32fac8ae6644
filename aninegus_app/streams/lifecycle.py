"""
================================================================================
AniNegus - Request Lifecycle Tracker
================================================================================
Race-safe request bookkeeping for every incremental, user-driven fetch.

A stream is one independently-cancellable sequence of fetches ("search",
"category:action", ...). Each fetch runs under a RequestToken. Starting a new
fetch on a stream supersedes the previous token: its in-flight calls are
cancelled and any result it still produces fails the currency check.

Commit discipline (two checks, the stream may move on mid-flight):

    token = tracker.begin_stream("search")
    if tracker.is_current("search", token):
        page = await token.run(provider.search(query, page))
    if tracker.is_current("search", token):
        apply(page)

Cancelling is a resource optimization; correctness comes from the check
right before applying a result.
================================================================================
"""

import asyncio
import itertools
import logging
from typing import Any, Awaitable, Dict, Optional, Set, TypeVar

from ..errors import Cancelled

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RequestToken:
    """
    Handle marking one fetch attempt on one stream.

    Network calls made through run() are wrapped in asyncio tasks owned by the
    token, so cancel() aborts them.
    """

    def __init__(self, stream_key: str, serial: int):
        self.stream_key = stream_key
        self.serial = serial
        self._cancelled = False
        self._resolved = False
        self._tasks: Set[asyncio.Future] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def resolved(self) -> bool:
        return self._resolved

    def resolve(self) -> None:
        self._resolved = True

    def cancel(self) -> None:
        """Invalidate the token and abort its in-flight calls."""
        if self._cancelled:
            return
        self._cancelled = True
        for task in list(self._tasks):
            task.cancel()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await a network call bound to this token.

        Raises:
            Cancelled: the token was invalidated before or during the call
        """
        if self._cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise Cancelled(self.stream_key)

        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            if self._cancelled:
                raise Cancelled(self.stream_key) from None
            raise
        finally:
            self._tasks.discard(task)

    def __repr__(self):
        state = 'cancelled' if self._cancelled else ('resolved' if self._resolved else 'pending')
        return f"<RequestToken(stream='{self.stream_key}', serial={self.serial}, {state})>"


class RequestLifecycleTracker:
    """
    Tracks the current token per stream key.

    Stream keys are fully independent; nothing is ordered across streams.
    """

    def __init__(self):
        self._current: Dict[str, RequestToken] = {}
        self._serials = itertools.count(1)

    def begin_stream(self, stream_key: str) -> RequestToken:
        """Issue a new token, superseding and cancelling the previous one."""
        previous = self._current.get(stream_key)
        token = RequestToken(stream_key, next(self._serials))
        self._current[stream_key] = token
        if previous is not None:
            previous.cancel()
            logger.debug(f"Stream '{stream_key}': token {previous.serial} superseded by {token.serial}")
        return token

    def current(self, stream_key: str) -> Optional[RequestToken]:
        return self._current.get(stream_key)

    def is_current(self, stream_key: str, token: Optional[RequestToken]) -> bool:
        """Currency check: may this token still commit to the stream?"""
        if token is None or token.cancelled:
            return False
        return self._current.get(stream_key) is token

    def finish(self, stream_key: str, token: RequestToken) -> None:
        """Mark a token's fetch as settled so loading indicators clear."""
        token.resolve()

    def is_pending(self, stream_key: str) -> bool:
        """True while the stream's current token is still unresolved."""
        token = self._current.get(stream_key)
        return token is not None and not token.resolved and not token.cancelled

    def cancel_stream(self, stream_key: str) -> None:
        """Tear down a stream (unmount / navigation away)."""
        token = self._current.pop(stream_key, None)
        if token is not None:
            token.cancel()
            logger.debug(f"Stream '{stream_key}' cancelled")

    def cancel_all(self) -> None:
        for stream_key in list(self._current):
            self.cancel_stream(stream_key)

    @property
    def streams(self) -> Dict[str, Any]:
        """Snapshot of stream key -> current token."""
        return dict(self._current)
