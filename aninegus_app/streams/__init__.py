"""
Stream layer: request lifecycle, debouncing and result accumulation.

The controllers (search_session, category_loader) depend on the search
package and are imported from their own modules.
"""

from .lifecycle import RequestLifecycleTracker, RequestToken
from .debouncer import Debouncer, SEARCH_DEBOUNCE_SECONDS, PAGE_DEBOUNCE_SECONDS
from .accumulator import ResultAccumulator, StreamView

__all__ = [
    'RequestLifecycleTracker', 'RequestToken', 'Debouncer',
    'SEARCH_DEBOUNCE_SECONDS', 'PAGE_DEBOUNCE_SECONDS',
    'ResultAccumulator', 'StreamView',
]
