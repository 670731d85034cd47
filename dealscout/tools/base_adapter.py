import asyncio
import time
from abc import ABC, abstractmethod
from typing import AsyncIterator, Awaitable, Callable, Optional

import httpx

from dealscout.config import settings
from dealscout.errors import RateLimited, SourceFetchError
from dealscout.models.items import RawItem
from dealscout.services.logger import logger

# Adapters report per-section progress through this callback: emit(message, level)
Emit = Callable[..., Awaitable[None]]


class RateLimiter:
    """Minimum-interval gate owned by one adapter instance."""

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self):
        async with self._lock:
            if self._last_request is not None:
                remaining = self.min_interval - (self._clock() - self._last_request)
                if remaining > 0:
                    await self._sleep(remaining)
            self._last_request = self._clock()


class SectionTally:
    """Sections (subreddits, topics, pages) reached and lost during one fetch."""

    def __init__(self):
        self.reachable = 0
        self.failed = 0


class SourceAdapter(ABC):
    name: str = "base"

    # Whether the keyword/heuristic relevance gate runs for this source
    applies_relevance_filter: bool = True

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        request_delay: Optional[float] = None,
        backoff_seconds: Optional[float] = None,
    ):
        self._client = client
        self.limiter = RateLimiter(settings.REQUEST_DELAY_SECONDS if request_delay is None else request_delay)
        self.backoff_seconds = settings.RATE_LIMIT_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        self.last_tally = SectionTally()

    @property
    def reachable_sections(self) -> int:
        return self.last_tally.reachable

    @property
    def failed_sections(self) -> int:
        return self.last_tally.failed

    @abstractmethod
    def fetch(self, query, emit: Emit, tally: Optional[SectionTally] = None) -> AsyncIterator[RawItem]:
        """
        Yield RawItems for one scan pass. Every call starts from the first page.

        Section counts go to `tally` when given, so concurrent passes over one
        adapter keep separate counts.
        """

    def _start_tally(self, tally: Optional[SectionTally]) -> SectionTally:
        self.last_tally = tally if tally is not None else SectionTally()
        return self.last_tally

    async def enrich(self, item: RawItem, emit: Emit) -> RawItem:
        """Optional extra fetch for an item that survived the identity check."""
        return item

    def _make_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return _BorrowedClient(self._client)
        return httpx.AsyncClient(
            headers={"User-Agent": settings.USER_AGENT, "Accept-Language": "en-US,en;q=0.9"},
            follow_redirects=True,
            timeout=settings.HTTP_TIMEOUT,
        )

    async def _get(self, client: httpx.AsyncClient, url: str, **kwargs) -> httpx.Response:
        """GET through the rate limiter; one long backoff and retry on HTTP 429."""
        try:
            return await self._send(client, url, **kwargs)
        except RateLimited:
            logger.warning(f"[{self.name}] Rate limited on {url}, backing off {self.backoff_seconds:.0f}s")
            await asyncio.sleep(self.backoff_seconds)
        try:
            return await self._send(client, url, **kwargs)
        except RateLimited:
            raise SourceFetchError(self.name, f"rate limited twice on {url}")

    async def _send(self, client: httpx.AsyncClient, url: str, **kwargs) -> httpx.Response:
        await self.limiter.wait()
        try:
            resp = await client.get(url, **kwargs)
        except httpx.HTTPError as e:
            raise SourceFetchError(self.name, f"{url}: {e!r}") from e
        if resp.status_code == 429:
            raise RateLimited(url)
        if resp.status_code >= 400:
            raise SourceFetchError(self.name, f"{url} returned HTTP {resp.status_code}")
        return resp


class _BorrowedClient:
    """Context manager over an injected client that leaves it open on exit."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def __aenter__(self) -> httpx.AsyncClient:
        return self._client

    async def __aexit__(self, *exc):
        return False
