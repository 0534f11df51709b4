"""
Source adapter base classes.

A source adapter turns a free-text query into listing candidates for one
review platform. Adapters own their HTTP session and a fixed per-platform
call spacing; transport outcomes are mapped onto the errors in ``errors``.
"""
import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiohttp
import structlog

from ...resolution_types import ListingCandidate, Platform
from .errors import RateLimitedError, UpstreamTimeoutError, UpstreamUnavailableError

USER_AGENT = "hotel-identity/0.1 (+aiohttp)"


class FixedIntervalRateLimiter:
    """Spaces calls at least ``min_interval`` seconds apart (no backoff growth)."""

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            if self._last_call is not None:
                wait = self._last_call + self.min_interval - self._clock()
                if wait > 0:
                    await self._sleep(wait)
            self._last_call = self._clock()


class SourceAdapter(ABC):
    """Capability interface every platform adapter implements."""

    # Seconds fetch_by_id may need when it waits on a long-running job
    lookup_timeout: Optional[float] = None

    def __init__(self, platform: Platform, match_confidence: float = 0.85):
        self.platform = platform
        self.match_confidence = match_confidence
        self.logger = structlog.get_logger(f"adapter.{platform.value}")

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self) -> None:
        """Acquire resources (sessions, clients)."""

    async def close(self) -> None:
        """Release resources."""

    @abstractmethod
    async def search(self, query: str) -> List[ListingCandidate]:
        """Return candidates for a free-text query (possibly empty)."""

    def lookup_key(self, identifier: Optional[str], url: Optional[str]) -> Optional[str]:
        """Key passed to fetch_by_id for a previously resolved listing."""
        return identifier or url

    async def fetch_by_id(self, identifier: str) -> Optional[ListingCandidate]:
        """Re-fetch a known listing; adapters without a lookup return None."""
        return None


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    try:
        return float(value) if value else None
    except ValueError:
        return None


class HttpSourceAdapter(SourceAdapter):
    """Adapter backed by a JSON HTTP API."""

    def __init__(
        self,
        platform: Platform,
        match_confidence: float = 0.85,
        min_call_interval: float = 0.5,
        timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(platform, match_confidence)
        self.timeout = timeout
        self.rate_limiter = FixedIntervalRateLimiter(min_call_interval)
        self.session = session
        self._owns_session = session is None

    async def initialize(self) -> None:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={'User-Agent': USER_AGENT},
            )
            self._owns_session = True

    async def close(self) -> None:
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None

    async def _request_json(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        allow_not_found: bool = False,
    ) -> Any:
        """
        Perform one rate-limited request and decode the JSON body.

        Raises:
            RateLimitedError: HTTP 429
            UpstreamTimeoutError: request exceeded the client timeout
            UpstreamUnavailableError: other HTTP errors, transport failures or
                an undecodable body
        """
        await self.initialize()
        await self.rate_limiter.acquire()

        try:
            async with self.session.request(
                method, url, params=params, json=json_body, headers=headers
            ) as response:
                if response.status == 429:
                    self.logger.warning("upstream_rate_limited", url=url)
                    raise RateLimitedError(
                        retry_after=_parse_retry_after(response.headers.get('Retry-After'))
                    )
                if response.status == 404 and allow_not_found:
                    return None
                if response.status >= 400:
                    body = await response.text()
                    raise UpstreamUnavailableError(
                        f"{self.platform.value} HTTP {response.status}: {body[:200]}",
                        status_code=response.status,
                    )
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise UpstreamUnavailableError(
                        f"{self.platform.value} returned invalid JSON: {e}",
                        status_code=response.status,
                    ) from e
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(f"{self.platform.value} request timeout: {url}") from e
        except aiohttp.ClientError as e:
            raise UpstreamUnavailableError(f"{self.platform.value} request failed: {e}") from e
