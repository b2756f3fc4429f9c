"""
host.py — Event-Loop Thread
============================
Flask serves requests on worker threads; the Runner lives on one
asyncio event loop.  RunnerHost owns that loop in a daemon thread and
marshals every command onto it, so the store is only ever touched from
the loop thread and a command always lands between two steps.

    host = RunnerHost(Runner())
    host.call(host.runner.pause)          # runs on the loop, returns / raises here
"""

import asyncio
import logging
import threading
from typing import Any, Callable, Optional

from engine.runner import Runner

logger = logging.getLogger(__name__)


class RunnerHost:
    def __init__(self, runner: Runner, timeout: float = 5.0):
        self.runner:  Runner = runner
        self.timeout: float  = timeout
        self.loop:    asyncio.AbstractEventLoop = asyncio.new_event_loop()
        self._thread: Optional[threading.Thread] = threading.Thread(
            target=self._serve, name="runner-loop", daemon=True
        )
        self._thread.start()

    def _serve(self) -> None:
        asyncio.set_event_loop(self.loop)
        logger.debug("runner loop thread started")
        self.loop.run_forever()

    def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run fn(*args, **kwargs) on the loop thread; its exception re-raises here."""

        async def invoke():
            return fn(*args, **kwargs)

        future = asyncio.run_coroutine_threadsafe(invoke(), self.loop)
        return future.result(self.timeout)

    def stop(self) -> None:
        if self._thread is None:
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(self.timeout)
        self._thread = None
        self.loop.close()
        logger.debug("runner loop thread stopped")
