"""Shared gate that spaces out requests to feed endpoints."""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger()


class RateLimiter:
    """Keeps successive requests at least ``delay`` seconds apart.

    One instance is shared by every caller that talks to the same network
    target. The clock and sleep functions are injectable for tests.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._clock = clock
        self._sleep = sleep
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop = None
        self._last_request: Optional[float] = None

    async def wait(self, delay_seconds: float) -> float:
        """Block until the next request may go out. Returns seconds waited."""
        # One lock per event loop; a lock is bound to the loop it first waits on
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        async with self._lock:
            waited = 0.0
            if self._last_request is not None and delay_seconds > 0:
                elapsed = self._clock() - self._last_request
                if elapsed < delay_seconds:
                    waited = delay_seconds - elapsed
                    logger.debug("rate_limit_wait", seconds=round(waited, 3))
                    await self._sleep(waited)

            self._last_request = self._clock()
            return waited

    def reset(self) -> None:
        """Forget the last request time."""
        self._last_request = None
