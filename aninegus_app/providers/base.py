"""
================================================================================
AniNegus - Base Catalog Provider
================================================================================
Abstract base class for upstream catalog APIs.

Providers handle:
  - Rate limiting (token bucket)
  - Retries with exponential backoff on 429 / 5xx / network errors
  - Converting every transport-level problem into TransportFailure

Only the request/response contract matters here; the payloads are returned
as decoded JSON and mapped by the search normalizer.
================================================================================
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx

from ..errors import TransportFailure


logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Token bucket rate limiter for API requests.

      - Jikan: 3/sec (180/min)
      - First-party catalog API: generous, mostly a safety net
    """

    def __init__(self, requests_per_minute: int):
        """
        Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests allowed per minute
        """
        self.requests_per_minute = requests_per_minute
        self.min_interval = 60.0 / requests_per_minute  # Seconds between requests
        self.last_request = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self):
        """Wait until a request slot is available."""
        async with self._lock:
            now = time.time()
            time_since_last = now - self.last_request

            if time_since_last < self.min_interval:
                wait_time = self.min_interval - time_since_last
                logger.debug(f"Rate limit: waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)

            self.last_request = time.time()


class BaseCatalogProvider:
    """
    Shared HTTP plumbing for catalog providers.

    Pass `client` to reuse an existing httpx.AsyncClient (tests hand in one
    backed by httpx.MockTransport); otherwise one is created lazily.
    """

    # Provider identification
    id: str = "base"
    name: str = "Base Provider"

    base_url: str = ""

    # Rate limiting (requests per minute)
    rate_limit: int = 60

    # Request timeout (seconds)
    timeout: float = 10.0

    # Retry configuration
    max_retries: int = 2
    retry_delay: float = 1.0

    user_agent: str = "AniNegus/1.0"

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        rate_limit: Optional[int] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None
    ):
        if base_url is not None:
            self.base_url = base_url.rstrip('/')
        if rate_limit is not None:
            self.rate_limit = rate_limit
        if timeout is not None:
            self.timeout = timeout
        if max_retries is not None:
            self.max_retries = max_retries
        if retry_delay is not None:
            self.retry_delay = retry_delay
        self.rate_limiter = RateLimiter(self.rate_limit)
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={
                    'User-Agent': self.user_agent,
                    'Accept': 'application/json'
                }
            )
            self._owns_client = True
        return self._client

    async def close(self):
        """Close HTTP client if this provider created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        """
        Make a rate-limited HTTP request with retries.

        Args:
            method: HTTP method
            url: Full URL
            **kwargs: Additional arguments for httpx

        Returns:
            Decoded JSON body

        Raises:
            TransportFailure: non-2xx status, network error or undecodable body
        """
        client = await self._get_client()
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            await self.rate_limiter.acquire()
            last_attempt = attempt == attempts - 1

            try:
                response = await client.request(method, url, **kwargs)
            except httpx.RequestError as e:
                if not last_attempt:
                    logger.warning(f"{self.id}: Request error ({e}), retry {attempt + 1}/{self.max_retries}")
                    await asyncio.sleep(self.retry_delay * (2 ** attempt))
                    continue
                raise TransportFailure(f"{self.id}: request to {url} failed: {e}") from e

            status = response.status_code
            if status == 429 or status >= 500:
                if not last_attempt:
                    logger.warning(f"{self.id}: HTTP {status}, retry {attempt + 1}/{self.max_retries}")
                    await asyncio.sleep(self.retry_delay * (2 ** attempt))
                    continue
                raise TransportFailure(f"{self.id}: HTTP {status} from {url}", status_code=status)

            if not response.is_success:
                raise TransportFailure(f"{self.id}: HTTP {status} from {url}", status_code=status)

            try:
                return response.json()
            except ValueError as e:
                raise TransportFailure(f"{self.id}: invalid JSON from {url}", status_code=status) from e

        raise TransportFailure(f"{self.id}: max retries exceeded for {url}")

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a path under base_url and require a JSON object back."""
        url = f"{self.base_url}{path}"
        data = await self._request("GET", url, params=params)
        if not isinstance(data, dict):
            raise TransportFailure(f"{self.id}: expected a JSON object from {url}")
        return data

    def __repr__(self):
        return f"<{self.__class__.__name__}(id='{self.id}', rate_limit={self.rate_limit}/min)>"
