"""
Rate-limited HTTP client shared by every harvester.

One instance per process. All requests go through a single FIFO lock, so
concurrent callers share the rate limit instead of getting one each.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout

from paperatlas.domain.errors import FetchTimeoutError, TransientFetchError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "paperatlas/0.1 (+https://arxiv.org/help/api)"


@dataclass(frozen=True)
class FetchResponse:
    """Fully-read HTTP response; the body is consumed before the lock is released."""

    status: int
    text: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400


class RateLimitedClient:
    """
    Serialized async HTTP client with a minimum inter-request interval.

    - ``min_interval`` is measured from the start of the previous request.
    - Each attempt is bounded by ``timeout`` seconds.
    - HTTP 5xx and request-level failures are retried ``retries`` times,
      sleeping ``retry_delay * 2 ** attempt`` before each retry.
    """

    def __init__(
        self,
        *,
        min_interval: float = 3.2,
        timeout: float = 15.0,
        retries: int = 2,
        retry_delay: float = 1.2,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self.timeout = timeout
        self.retries = retries
        self.retry_delay = retry_delay
        self.user_agent = user_agent
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request_at: Optional[float] = None
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": self.user_agent},
                timeout=ClientTimeout(total=None),
            )
        return self._session

    async def _wait_for_rate_limit(self) -> None:
        """Wait until ``min_interval`` has passed since the previous dispatch."""
        if self._last_request_at is not None:
            elapsed = self._clock() - self._last_request_at
            if elapsed < self.min_interval:
                await self._sleep(self.min_interval - elapsed)
        self._last_request_at = self._clock()

    async def _send(self, url: str, params: Optional[Dict[str, Any]]) -> FetchResponse:
        session = await self._get_session()
        async with session.get(url, params=params) as response:
            text = await response.text()
            return FetchResponse(
                status=response.status,
                text=text,
                url=str(response.url),
                headers=dict(response.headers),
            )

    async def fetch(self, url: str, params: Optional[Dict[str, Any]] = None) -> FetchResponse:
        """GET ``url`` once the queue admits this call.

        Raises:
            FetchTimeoutError: The last attempt timed out.
            TransientFetchError: The last attempt returned 5xx or failed at
                the transport level.
        """
        async with self._lock:
            await self._wait_for_rate_limit()

            attempt = 0
            while True:
                try:
                    response = await asyncio.wait_for(self._send(url, params), self.timeout)
                except asyncio.TimeoutError as exc:
                    failure: Exception = FetchTimeoutError(
                        f"Request timed out after {self.timeout}s: {url}", url=url
                    )
                    failure.__cause__ = exc
                except aiohttp.ClientError as exc:
                    failure = TransientFetchError(f"Request failed: {url} - {exc}", url=url)
                    failure.__cause__ = exc
                else:
                    if response.status < 500:
                        return response
                    failure = TransientFetchError(
                        f"HTTP {response.status} from {url}", url=url, status=response.status
                    )

                if attempt >= self.retries:
                    logger.error(f"Giving up after {attempt + 1} attempts: {failure}")
                    raise failure

                delay = self.retry_delay * (2 ** attempt)
                attempt += 1
                logger.warning(f"{failure}, retry {attempt}/{self.retries} in {delay:.1f}s")
                await self._sleep(delay)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "RateLimitedClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
