"""Injectable wall clock so sweeps can be driven deterministically in tests."""

import asyncio
import time
from typing import Protocol


class Clock(Protocol):
    """What the ledger and scheduler need from a clock."""

    def now(self) -> float:
        """Current time in epoch seconds."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Wait until the next tick."""
        ...


class SystemClock:
    """Real time. Epoch seconds, so ledger timestamps survive a restart."""

    def now(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class ManualClock:
    """A clock that only moves when told to.

    sleep() advances the clock instead of waiting, which lets a sweep loop
    fast-forward through minutes of simulated time.

    Example:
        clock = ManualClock(start=1000.0)
        clock.advance(5)
        assert clock.now() == 1005.0
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        """Move the clock forward and return the new time."""
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self._now += seconds
        return self._now

    async def sleep(self, seconds: float) -> None:
        self.advance(seconds)
        # Yield so tasks scheduled by the previous tick get to run
        await asyncio.sleep(0)
