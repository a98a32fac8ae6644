"""
================================================================================
AniNegus - Catalog Error Taxonomy
================================================================================
Every failure that can reach UI state is converted into one of these kinds
before it leaves the provider/orchestration boundary.

  - EmptyQuery          - validation error, shown inline, no network call
  - Cancelled           - superseded request, never shown to the user
  - TransportFailure    - upstream call failed (status, network, bad JSON)
  - FallbackUnavailable - primary and fallback both failed, shown generically
  - MalformedResponse   - one upstream item could not be normalized
  - UnknownCategory     - listing requested for an unmapped category
================================================================================
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for all catalog search errors."""


class EmptyQuery(CatalogError):
    """Search was submitted with a blank query."""

    def __init__(self, message: str = "Empty search query"):
        super().__init__(message)


class Cancelled(CatalogError):
    """The request's token was superseded while the call was in flight."""

    def __init__(self, stream_key: str = ""):
        self.stream_key = stream_key
        super().__init__(f"Request cancelled for stream '{stream_key}'")


class TransportFailure(CatalogError):
    """An upstream call did not produce a usable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class FallbackUnavailable(CatalogError):
    """The fallback title search failed after the primary had failed."""


class MalformedResponse(CatalogError):
    """A single upstream item could not be mapped to a canonical result."""


class UnknownCategory(CatalogError):
    """No listing endpoint is configured for the requested category."""
