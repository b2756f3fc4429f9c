"""
runner.py — Step-Synchronized Runner
=====================================
The Runner is the ONLY object that drives a run.  It owns the RunState,
the Stats and the PauseGate of the current run; it pulls Steps out of
the algorithm generator one at a time and paces them.

State machine:
    IDLE / COMPLETED / CANCELLED  →  start()   →  RUNNING
    RUNNING                       →  pause()   →  PAUSED
    PAUSED                        →  resume()  →  RUNNING
    RUNNING                       →  (generator returns) → COMPLETED
    RUNNING / PAUSED              →  cancel()  →  CANCELLED
    not RUNNING / PAUSED          →  reset()   →  IDLE

Step loop (one asyncio task per run):
    gate.checkpoint()                 – hold while paused, raise on cancel
    step = next(generator)            – the algorithm applies ONE operation
    stats / run state updated, listeners get (RunState, Stats, Snapshot)
    visible step   → gate.delay(speed) in poll-sized slices
    invisible step → asyncio.sleep(0)
    generator done → store unlocked, then info.commit(store, outcome)

Concurrency:
  Single-threaded cooperative.  Every command and the loop itself run
  on the same event loop, so a command always lands between two steps
  and the store is never seen half-mutated.  The web layer marshals
  commands onto that loop (see engine/host.py).
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Generator, List, Optional

from algorithms import AlgoInfo, get_algorithm
from algorithms.step import Outcome, Step
from engine.config import RunnerConfig
from engine.feedback import Feedback
from engine.gate import Clock, PauseGate
from engine.stats import Stats
from errors import AlreadyRunning, InvalidTransition, RunCancelled, UserInputError
from store import Snapshot, VisualStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------
class RunStatus(Enum):
    IDLE      = "idle"
    RUNNING   = "running"
    PAUSED    = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE = (RunStatus.RUNNING, RunStatus.PAUSED)


@dataclass(frozen=True)
class RunState:
    status:         RunStatus     = RunStatus.IDLE
    step_count:     int           = 0
    elapsed_time:   float         = 0.0
    algorithm_kind: Optional[str] = None
    error:          Optional[str] = None

    @property
    def active(self) -> bool:
        return self.status in ACTIVE

    def to_dict(self) -> dict:
        return {
            "status":         self.status.value,
            "step_count":     self.step_count,
            "elapsed_time":   round(self.elapsed_time, 4),
            "algorithm_kind": self.algorithm_kind,
            "error":          self.error,
        }


Listener = Callable[[RunState, Stats, Snapshot], None]


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------
class Runner:
    """
    Attributes:
        config    : RunnerConfig (pacing bounds, poll interval).
        clock     : Clock the gate and the elapsed time are measured on.
        feedback  : Optional Feedback notified per visible step / success.
        speed_ms  : Current delay after each visible step.
        state     : Current RunState (replaced, never mutated).
        stats     : Current Stats (replaced, never mutated).
        store     : The store the Runner drives (attach() or start()).
        last_step : Most recent Step of the current / last run.
        outcome   : Outcome of the last completed run.
    """

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        clock: Optional[Clock] = None,
        feedback: Optional[Feedback] = None,
    ):
        self.config:    RunnerConfig          = config or RunnerConfig()
        self.clock:     Clock                 = clock or Clock()
        self.feedback:  Optional[Feedback]    = feedback
        self.speed_ms:  int                   = self.config.speed_ms
        self.state:     RunState              = RunState()
        self.stats:     Stats                 = Stats()
        self.store:     Optional[VisualStore] = None
        self.last_step: Optional[Step]        = None
        self.outcome:   Optional[Outcome]     = None

        self._listeners: List[Listener]               = []
        self._gate:      Optional[PauseGate]          = None
        self._task:      Optional[asyncio.Task]       = None
        self._run_id:    int                          = 0
        self._started:   float                        = 0.0

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def snapshot(self) -> Optional[Snapshot]:
        return self.store.snapshot() if self.store is not None else None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def attach(self, store: VisualStore) -> None:
        """Point the Runner at a new store; only between runs."""
        if self.state.active:
            raise InvalidTransition("replace the store", self.state.status.value)
        self.store = store
        self._clear()

    def start(self, kind: str, store: Optional[VisualStore] = None, **params: Any) -> asyncio.Task:
        """
        Validate, then schedule the step loop on the running event loop.
        Every precondition failure raises before any state changes.
        """
        if self.state.active:
            raise AlreadyRunning(self.state.status.value)
        loop = asyncio.get_running_loop()
        store = store if store is not None else self.store
        if store is None:
            raise UserInputError("Create a data structure first")

        info = get_algorithm(kind)
        info.validate(store, params)
        if info.layout is not None:
            store.reset(info.layout(params))
        else:
            store.reset()

        self._run_id += 1
        self.store     = store
        self._gate     = PauseGate(self.clock, self.config.poll_interval)
        self._started  = self.clock.now()
        self.state     = RunState(status=RunStatus.RUNNING, algorithm_kind=kind)
        self.stats     = Stats(memory_estimate=store.memory_estimate())
        self.last_step = None
        self.outcome   = None
        store.lock()

        logger.info("run %d: %s started on %s store (%d elements)", self._run_id, kind, store.family, len(store))
        self._task = loop.create_task(self._run(info, store, params, self._gate, self._run_id))
        try:
            self._notify()
        except Exception as exc:
            logger.exception("run %d: listener failed on start", self._run_id)
            self._gate.cancel()
            store.unlock()
            self.state = replace(self.state, status=RunStatus.CANCELLED, error=f"{type(exc).__name__}: {exc}")
        return self._task

    def pause(self) -> None:
        if self.state.status is not RunStatus.RUNNING:
            raise InvalidTransition("pause", self.state.status.value)
        self._gate.pause()
        self._transition(RunStatus.PAUSED)
        logger.info("run %d paused at step %d", self._run_id, self.state.step_count)

    def resume(self) -> None:
        if self.state.status is not RunStatus.PAUSED:
            raise InvalidTransition("resume", self.state.status.value)
        self._gate.resume()
        self._transition(RunStatus.RUNNING)
        logger.info("run %d resumed", self._run_id)

    def cancel(self) -> None:
        """Takes effect immediately; the loop stops at its next wake-up."""
        if not self.state.active:
            raise InvalidTransition("cancel", self.state.status.value)
        self._gate.cancel()
        self.store.unlock()
        self._transition(RunStatus.CANCELLED)
        logger.info("run %d cancelled after %d steps", self._run_id, self.state.step_count)

    def reset(self, container: Any = None) -> None:
        if self.state.active:
            raise InvalidTransition("reset", self.state.status.value)
        if self.store is not None:
            self.store.reset(container)
        self._clear()

    def set_speed(self, ms: int) -> None:
        lo, hi = self.config.min_speed_ms, self.config.max_speed_ms
        if isinstance(ms, bool) or not isinstance(ms, int) or not lo <= ms <= hi:
            raise UserInputError(f"Speed must be an integer between {lo} and {hi} ms")
        self.speed_ms = ms

    async def wait(self) -> Optional[Outcome]:
        """Await the current run; its Outcome, or None if cancelled / failed."""
        if self._task is None:
            return None
        return await self._task

    # ------------------------------------------------------------------
    # Step loop
    # ------------------------------------------------------------------
    async def _run(self, info: AlgoInfo, store: VisualStore, params: dict,
                   gate: PauseGate, run_id: int) -> Optional[Outcome]:
        gen: Optional[Generator[Step, None, Outcome]] = None
        try:
            if len(store) < info.min_size:
                outcome = Outcome(found=info.family != "searching",
                                  summary=f"Nothing to do for {len(store)} element(s).")
            else:
                gen = info.fn(store, **params)
                outcome = await self._drive(gen, gate, run_id)
        except RunCancelled:
            logger.debug("run %d: loop observed cancel", run_id)
            return None
        except Exception as exc:
            logger.exception("run %d: %s failed", run_id, info.key)
            if run_id == self._run_id:
                store.unlock()
                self.state = replace(self.state, status=RunStatus.CANCELLED,
                                     elapsed_time=self._elapsed(gate), error=f"{type(exc).__name__}: {exc}")
                self._notify()
            return None
        finally:
            if gen is not None:
                gen.close()

        if run_id != self._run_id or self.state.status is RunStatus.CANCELLED:
            return None
        store.unlock()
        if info.commit is not None:
            info.commit(store, outcome)
        self.outcome = outcome
        self.stats = self.stats.merge(elapsed_time=self._elapsed(gate),
                                      memory_estimate=max(self.stats.memory_estimate, store.memory_estimate()))
        self.state = replace(self.state, status=RunStatus.COMPLETED, elapsed_time=self.stats.elapsed_time)
        logger.info("run %d: %s completed, %d steps, %d operations",
                    run_id, info.key, self.state.step_count, self.stats.operations)
        self._notify()
        self._feedback("on_success", outcome)
        return outcome

    async def _drive(self, gen: Generator[Step, None, Outcome], gate: PauseGate, run_id: int) -> Outcome:
        while True:
            await gate.checkpoint()
            try:
                step = next(gen)
            except StopIteration as stop:
                return stop.value if stop.value is not None else Outcome()

            self.last_step = step
            self.stats = self.stats.add_operations(step.cost).merge(elapsed_time=self._elapsed(gate))
            self.state = replace(self.state, step_count=self.state.step_count + 1,
                                 elapsed_time=self.stats.elapsed_time)
            self._notify()
            if step.visible:
                logger.debug("run %d step %d: %s %s", run_id, step.step_number, step.action, step.refs)
                self._feedback("on_step", step)
                await gate.delay(self.speed_ms / 1000)
            else:
                await asyncio.sleep(0)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _elapsed(self, gate: PauseGate) -> float:
        return max(0.0, self.clock.now() - self._started - gate.paused_time())

    def _transition(self, status: RunStatus) -> None:
        self.state = replace(self.state, status=status, elapsed_time=self._elapsed(self._gate))
        self.stats = self.stats.merge(elapsed_time=self.state.elapsed_time)
        self._notify()

    def _clear(self) -> None:
        self.state     = RunState()
        self.stats     = Stats(memory_estimate=self.store.memory_estimate() if self.store is not None else 0)
        self.last_step = None
        self.outcome   = None
        self._gate     = None
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(self.state, self.stats, snap)

    def _feedback(self, hook: str, arg: Any) -> None:
        if self.feedback is None:
            return
        try:
            getattr(self.feedback, hook)(arg)
        except Exception:
            logger.warning("feedback %s failed; run continues", hook, exc_info=True)
