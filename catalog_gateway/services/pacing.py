"""Spacing between dependent upstream calls.

RAWG rate-limits per key without telling us the budget, so calls that
depend on each other inside one request (primary list fetch, then its tag
fallback) are spaced by a fixed minimum interval. A pacer is created per
call chain; nothing is shared between requests.
"""

import asyncio
from collections.abc import Awaitable, Callable
import time


class CallPacer:
    """Enforce a minimum interval between consecutive calls."""

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None

    async def wait(self) -> None:
        """Wait until the next call is allowed, then mark it as started."""
        if self._last_call is not None and self.min_interval > 0:
            remaining = self.min_interval - (self._clock() - self._last_call)
            if remaining > 0:
                await self._sleep(remaining)
        self._last_call = self._clock()
