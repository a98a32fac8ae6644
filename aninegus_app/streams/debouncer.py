"""Input debouncing for live keystrokes and route-driven page changes."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, Set, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Delay before a settled keystroke value triggers a search
SEARCH_DEBOUNCE_SECONDS = 0.5
# Delay before a route-driven page change triggers a fetch
PAGE_DEBOUNCE_SECONDS = 0.3


class Debouncer(Generic[T]):
    """
    Emit a value only after `delay` seconds pass with no newer value.

    Each push() discards the pending emission (it is cancelled, not merely
    postponed) and restarts the delay. Once the delay elapses the callback
    runs in its own task, so a later push() never interrupts it.

    Must be used from inside a running event loop.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[T], Union[Awaitable[Any], Any]],
        name: str = "debounce"
    ):
        self.delay = delay
        self.name = name
        self._callback = callback
        self._pending: Optional[asyncio.Task] = None
        self._pending_value: Optional[T] = None
        self._emissions: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def push(self, value: T) -> None:
        """Record a new input value and restart the delay."""
        self._discard_pending()
        self._pending_value = value
        self._pending = asyncio.get_running_loop().create_task(self._settle(value))

    async def flush(self) -> None:
        """Emit the pending value now (form submit)."""
        if not self.pending:
            return
        value = self._pending_value
        self._discard_pending()
        await self._emit(value)

    def cancel(self) -> None:
        """Drop the pending emission without emitting it."""
        self._discard_pending()

    async def drain(self) -> None:
        """Wait for emissions already handed to the callback."""
        while self._emissions:
            await asyncio.gather(*list(self._emissions), return_exceptions=True)

    def _discard_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            logger.debug(f"{self.name}: discarded pending value {self._pending_value!r}")
        self._pending = None

    async def _settle(self, value: T) -> None:
        await asyncio.sleep(self.delay)
        self._pending = None
        emission = asyncio.get_running_loop().create_task(self._emit(value))
        self._emissions.add(emission)
        emission.add_done_callback(self._emissions.discard)

    async def _emit(self, value: T) -> None:
        result = self._callback(value)
        if inspect.isawaitable(result):
            await result
