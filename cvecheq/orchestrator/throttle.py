"""Minimum-interval rate limiter for outbound registry lookups."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

import structlog

log = structlog.get_logger("cvecheq.orchestrator")


class RateLimiter:
    """Enforce at least *interval* seconds between successive :meth:`wait` returns.

    The first call never waits. Time spent doing work between calls counts
    toward the interval, so a slow lookup is not followed by a full delay.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        self.interval = interval
        self._clock = clock
        self._last: float | None = None

    async def wait(self) -> float:
        """Sleep until the next lookup may start. Returns the seconds slept."""
        slept = 0.0
        if self._last is not None and self.interval > 0:
            remaining = self._last + self.interval - self._clock()
            if remaining > 0:
                log.debug("ratelimit.wait", seconds=round(remaining, 3))
                await asyncio.sleep(remaining)
                slept = remaining
        self._last = self._clock()
        return slept
