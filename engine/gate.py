"""
gate.py — Clock & Pause Gate
=============================
The only two things the step loop ever awaits.

Clock
    now() and sleep().  The real one wraps time.monotonic and
    asyncio.sleep; InstantClock keeps virtual time so tests and batch
    runs never wait on the wall clock.

PauseGate
    A per-run token carrying the pause and cancel flags.  The Runner
    owns one per run and passes it into the loop, so there is no
    module-level state and any number of Runners can coexist.

      checkpoint()  – before every step: raises RunCancelled if
                      cancelled, otherwise polls every `poll_interval`
                      seconds while paused
      delay(s)      – the inter-step pacing, slept in poll-sized slices
                      with the cancel flag checked after each slice

    Time spent paused is accumulated so elapsed_time can exclude it.
"""

import asyncio
import time
from typing import Optional

from errors import RunCancelled


class Clock:
    def now(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class InstantClock(Clock):
    """Virtual time: sleep() advances now() and yields to the loop once."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    async def sleep(self, seconds: float) -> None:
        self._now += max(0.0, seconds)
        await asyncio.sleep(0)


class PauseGate:
    """
    Attributes:
        clock         : Clock used for polling and paused-time bookkeeping.
        poll_interval : Seconds between pause polls / pacing slices.
        paused        : True while the run should hold before its next step.
        cancelled     : Once True, the next checkpoint raises RunCancelled.
    """

    def __init__(self, clock: Clock, poll_interval: float = 0.1):
        self.clock:         Clock           = clock
        self.poll_interval: float           = poll_interval
        self.paused:        bool            = False
        self.cancelled:     bool            = False
        self._paused_at:    Optional[float] = None
        self._paused_total: float           = 0.0

    # ------------------------------------------------------------------
    # Commands (called by the Runner)
    # ------------------------------------------------------------------
    def pause(self) -> None:
        if not self.paused:
            self.paused = True
            self._paused_at = self.clock.now()

    def resume(self) -> None:
        if self.paused:
            self._paused_total += self.clock.now() - self._paused_at
            self._paused_at = None
            self.paused = False

    def cancel(self) -> None:
        self.resume()
        self.cancelled = True

    # ------------------------------------------------------------------
    # Suspension points (awaited by the step loop)
    # ------------------------------------------------------------------
    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RunCancelled("run cancelled")

    async def checkpoint(self) -> None:
        self.raise_if_cancelled()
        while self.paused:
            await self.clock.sleep(self.poll_interval)
            self.raise_if_cancelled()

    async def delay(self, seconds: float) -> None:
        remaining = seconds
        while remaining > 0:
            self.raise_if_cancelled()
            chunk = min(self.poll_interval, remaining)
            await self.clock.sleep(chunk)
            remaining -= chunk
        self.raise_if_cancelled()

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------
    def paused_time(self) -> float:
        """Total seconds paused so far, including a pause in progress."""
        total = self._paused_total
        if self.paused and self._paused_at is not None:
            total += self.clock.now() - self._paused_at
        return total
