"""RSS/Atom feed fetcher with rate limiting, retries and caching."""

import asyncio
import time
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

import aiohttp
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from .interfaces import Feed, FeedParseError, FetchError, FetchOptions, FetchResult, FetcherInterface
from .parser import parse_feed
from .rate_limiter import RateLimiter
from ..config.settings import settings

logger = structlog.get_logger()

ACCEPT_HEADER = "application/rss+xml, application/atom+xml, application/xml, text/xml"


class HTTPStatusError(FetchError):
    """Non-success HTTP status from a feed endpoint."""

    def __init__(self, status: int, reason: str = ""):
        self.status = status
        super().__init__(f"HTTP {status}: {reason}" if reason else f"HTTP {status}")

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500


def _should_retry(exc: BaseException) -> bool:
    """Client errors and unparseable documents will not improve on retry."""
    if isinstance(exc, HTTPStatusError):
        return not exc.is_client_error
    return not isinstance(exc, FeedParseError)


class FeedFetcher(FetcherInterface):
    """Async feed fetcher sharing one rate limiter across all calls."""

    def __init__(
        self,
        rate_limiter: RateLimiter = None,
        session: aiohttp.ClientSession = None,
        cache_ttl_seconds: float = None,
    ):
        self.rate_limiter = rate_limiter or RateLimiter()
        self._session = session
        self._owns_session = session is None
        self.cache_ttl_seconds = (
            settings.feed_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        )
        self._cache: Dict[str, Tuple[Feed, datetime, float]] = {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": settings.user_agent, "Accept": ACCEPT_HEADER}
            )
            self._owns_session = True
        return self._session

    async def close(self):
        """Close HTTP session if this fetcher created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def fetch_feed(self, url: str, options: FetchOptions = None) -> FetchResult:
        """Fetch and parse a feed. Never raises for network or parse problems."""
        options = options or FetchOptions()
        delay = settings.fetch_delay_seconds if options.delay_seconds is None else options.delay_seconds
        retries = max(1, settings.fetch_max_retries if options.retries is None else options.retries)
        timeout = options.timeout_seconds or settings.fetch_timeout_seconds

        cached = self._cached(url)
        if cached:
            feed, fetched_at = cached
            logger.debug("feed_cache_hit", url=url)
            return FetchResult.ok(feed, cached=True, fetched_at=fetched_at)

        await self.rate_limiter.wait(delay)
        start_time = time.time()

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(retries),
                wait=wait_incrementing(start=delay, increment=delay),
                retry=retry_if_exception(_should_retry),
                reraise=True,
            ):
                with attempt:
                    feed = await self._download(url, timeout)
        except FeedParseError as e:
            logger.error("feed_parse_failed", url=url, error=str(e))
            return FetchResult.failed(str(e), phase="parse")
        except asyncio.TimeoutError:
            error = f"Request timed out after {timeout}s"
            logger.error("feed_fetch_failed", url=url, error=error)
            return FetchResult.failed(error)
        except Exception as e:
            logger.error("feed_fetch_failed", url=url, error=str(e))
            return FetchResult.failed(str(e) or e.__class__.__name__)

        fetched_at = datetime.now(timezone.utc)
        self._cache[url] = (feed, fetched_at, time.monotonic())

        logger.info(
            "feed_fetched",
            url=url,
            items=len(feed.items),
            time_ms=int((time.time() - start_time) * 1000),
        )
        return FetchResult.ok(feed, fetched_at=fetched_at)

    async def _download(self, url: str, timeout: float) -> Feed:
        session = await self._get_session()
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
            if response.status >= 400:
                raise HTTPStatusError(response.status, response.reason or "")
            xml = await response.text()
        return parse_feed(xml, url)

    def _cached(self, url: str) -> Optional[Tuple[Feed, datetime]]:
        entry = self._cache.get(url)
        if not entry:
            return None
        feed, fetched_at, stored_at = entry
        if time.monotonic() - stored_at >= self.cache_ttl_seconds:
            del self._cache[url]
            return None
        return feed, fetched_at

    def clear_cache(self) -> None:
        """Drop all cached feeds."""
        self._cache.clear()

    def cache_stats(self) -> dict:
        """Get cache statistics."""
        return {"size": len(self._cache), "urls": list(self._cache.keys())}


def substack_feed_url(slug_or_url: str) -> str:
    """Build a Substack feed URL from a publication slug or base URL."""
    if slug_or_url.startswith("http"):
        base = slug_or_url.rstrip("/")
        if base.endswith("/feed"):
            return base
        scheme, _, rest = base.partition("://")
        host = rest.split("/", 1)[0]
        return f"{scheme}://{host}/feed"
    return f"https://{slug_or_url}.substack.com/feed"
