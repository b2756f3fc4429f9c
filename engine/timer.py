"""
timer.py — Challenge Countdown
===============================
Challenge mode gives the learner a fixed budget (five minutes by
default) to watch a run through.  When the countdown reaches zero the
`on_expire` callback fires; the web layer passes one that cancels the
active run.

The countdown ticks on the same Clock as the Runner, so tests drive it
with InstantClock and never wait on the wall clock.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from engine.gate import Clock
from errors import InvalidTransition, UserInputError

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 300
WARNING_THRESHOLD = 10


def check_duration(duration: Any) -> float:
    """Seconds as a float; anything but a positive number is a UserInputError."""
    if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration <= 0:
        raise UserInputError("Challenge duration must be a positive number of seconds")
    return float(duration)


class ChallengeTimer:
    """
    Attributes:
        clock    : Clock the countdown is measured on.
        tick     : Seconds between expiry checks.
        duration : Seconds granted by the last start().
    """

    def __init__(self, clock: Optional[Clock] = None, tick: float = 0.1):
        self.clock:    Clock = clock or Clock()
        self.tick:     float = tick
        self.duration: float = 0.0

        self._deadline: Optional[float]                = None
        self._task:     Optional[asyncio.Task]         = None
        self._expired:  bool                           = False
        self._on_expire: Optional[Callable[[], None]]  = None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def start(self, duration: float = DEFAULT_DURATION,
              on_expire: Optional[Callable[[], None]] = None) -> asyncio.Task:
        if self.running:
            raise InvalidTransition("start a challenge", "counting down")
        seconds = check_duration(duration)
        loop = asyncio.get_running_loop()
        self.duration   = seconds
        self._deadline  = self.clock.now() + self.duration
        self._expired   = False
        self._on_expire = on_expire
        self._task = loop.create_task(self._countdown())
        logger.info("challenge started: %s", self.format())
        return self._task

    def stop(self) -> None:
        """Abandon the countdown without firing on_expire."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._deadline = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        return self._expired

    def remaining(self) -> float:
        if self._deadline is None:
            return 0.0
        return max(0.0, self._deadline - self.clock.now())

    @property
    def warning(self) -> bool:
        return self.running and self.remaining() <= WARNING_THRESHOLD

    def format(self) -> str:
        """mm:ss, rounded up so 0:00 only shows once time is really up."""
        secs = int(-(-self.remaining() // 1))
        return f"{secs // 60}:{secs % 60:02d}"

    def to_dict(self) -> dict:
        return {
            "running":   self.running,
            "remaining": round(self.remaining(), 1),
            "display":   self.format(),
            "warning":   self.warning,
            "expired":   self._expired,
        }

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    async def _countdown(self) -> None:
        while self.remaining() > 0:
            await self.clock.sleep(min(self.tick, self.remaining()))
        self._expired = True
        logger.info("challenge time is up")
        if self._on_expire is not None:
            self._on_expire()
