"""
Rate limiters for inference calls.

One limiter instance belongs to one run, so concurrent runs never share
spacing state.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class RateLimiter(ABC):
    """Grants permission for the next inference call."""

    @abstractmethod
    async def acquire(self) -> None:
        """Wait until the next call may proceed."""
        pass


class FixedIntervalRateLimiter(RateLimiter):
    """
    Waits a fixed interval before every call except the first.

    N calls therefore incur exactly N-1 waits.
    """

    def __init__(self, interval_seconds: float, sleep: SleepFunc = asyncio.sleep):
        """
        Args:
            interval_seconds: Delay inserted between consecutive calls
            sleep: Awaitable sleep (tests inject a recorder)
        """
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self.interval_seconds = interval_seconds
        self._sleep = sleep
        self._calls = 0
        self.waits = 0

    async def acquire(self) -> None:
        if self._calls > 0 and self.interval_seconds > 0:
            logger.info(f"Waiting {self.interval_seconds:g}s before next inference call")
            self.waits += 1
            await self._sleep(self.interval_seconds)
        self._calls += 1


class NoDelayRateLimiter(RateLimiter):
    """Never waits."""

    async def acquire(self) -> None:
        return None
