"""
Tests for the Runner state machine, pacing, pause/cancel and fault
handling.

Every async test runs on InstantClock, so pacing delays advance virtual
time instead of waiting on the wall clock.
"""

import asyncio
import unittest
from unittest import mock

from algorithms import REGISTRY, AlgoInfo
from algorithms.step import Step
from engine import (
    ChallengeTimer,
    Feedback,
    InstantClock,
    LoggingFeedback,
    Runner,
    RunnerConfig,
    RunnerHost,
    RunStatus,
    Stats,
)
from engine.gate import Clock, PauseGate
from errors import AlreadyRunning, InvalidTransition, RunCancelled, StructureLocked, UserInputError
from store import ArrayStore, Flag, GridStore, PopulationStore, TableStore


async def pump(n: int = 200) -> None:
    for _ in range(n):
        await asyncio.sleep(0)


def exploding(store):
    yield Step(action="compare", refs=(0, 1))
    raise RuntimeError("kaboom")


BOOM = AlgoInfo(key="boom", label="Boom", family="sorting", fn=exploding, pseudocode=[], stores=("array",))


class RunnerTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.clock = InstantClock()
        self.runner = Runner(RunnerConfig(speed_ms=100), clock=self.clock)
        self.events = []
        self.runner.subscribe(lambda state, stats, snap: self.events.append((state, stats, snap)))


class TestLifecycle(RunnerTestCase):

    async def test_bubble_sort_runs_to_completion(self):
        store = ArrayStore([5, 3, 4, 1, 2])
        self.runner.start("bubble_sort", store)
        self.assertEqual(self.runner.state.status, RunStatus.RUNNING)
        self.assertTrue(store.locked)

        outcome = await self.runner.wait()

        self.assertEqual(outcome.result, [1, 2, 3, 4, 5])
        self.assertEqual(self.runner.state.status, RunStatus.COMPLETED)
        self.assertEqual(self.runner.stats.operations, 10)
        self.assertEqual(self.runner.state.step_count, 11)
        self.assertGreater(self.runner.stats.elapsed_time, 0)
        self.assertFalse(store.locked)
        self.assertEqual(self.runner.outcome, outcome)

    async def test_listeners_see_every_step_and_final_state(self):
        self.runner.start("bubble_sort", ArrayStore([2, 1, 3]))
        await self.runner.wait()
        statuses = [state.status for state, _, _ in self.events]
        self.assertEqual(statuses[0], RunStatus.RUNNING)
        self.assertEqual(statuses[-1], RunStatus.COMPLETED)
        step_counts = [state.step_count for state, _, _ in self.events]
        self.assertEqual(sorted(set(step_counts)), list(range(0, 4)))
        final_snap = self.events[-1][2]
        self.assertEqual(final_snap.refs_with(Flag.SORTED), [0, 1, 2])

    async def test_operations_never_decrease(self):
        self.runner.start("quick_sort", ArrayStore([9, 2, 7, 4, 5, 1]))
        await self.runner.wait()
        ops = [stats.operations for _, stats, _ in self.events]
        self.assertEqual(ops, sorted(ops))

    async def test_start_while_active_is_rejected(self):
        store = ArrayStore([3, 2, 1])
        self.runner.start("bubble_sort", store)
        with self.assertRaises(AlreadyRunning):
            self.runner.start("insertion_sort", store)
        self.runner.pause()
        with self.assertRaises(AlreadyRunning):
            self.runner.start("insertion_sort", store)
        self.runner.cancel()
        await self.runner.wait()

    async def test_new_run_after_completion(self):
        store = ArrayStore([3, 1, 2])
        self.runner.start("bubble_sort", store)
        await self.runner.wait()
        self.runner.start("linear_search", store, target=2)
        outcome = await self.runner.wait()
        self.assertEqual(outcome.result, 1)
        self.assertEqual(self.runner.stats.operations, 2)

    async def test_tiny_containers_short_circuit(self):
        self.runner.start("bubble_sort", ArrayStore([7]))
        outcome = await self.runner.wait()
        self.assertEqual(self.runner.state.status, RunStatus.COMPLETED)
        self.assertEqual(self.runner.stats.operations, 0)
        self.assertTrue(outcome.found)

        self.runner.start("linear_search", ArrayStore([]), target=4)
        outcome = await self.runner.wait()
        self.assertFalse(outcome.found)
        self.assertEqual(self.runner.stats.operations, 0)

    async def test_dp_run_lays_out_its_table(self):
        table = TableStore()
        self.runner.start("fibonacci", table, n=10)
        outcome = await self.runner.wait()
        self.assertEqual(outcome.result, 55)
        self.assertEqual((table.rows, table.cols), (1, 11))
        self.assertEqual(self.runner.stats.operations, 9)

    async def test_mutations_after_the_last_step_reach_listeners(self):
        pop = PopulationStore.random(size=6, gene_count=4, seed=1)
        self.runner.start("genetic", pop, generations=3, seed=2)
        outcome = await self.runner.wait()
        self.assertEqual(self.events[-1][2].refs_with(Flag.FOUND), outcome.path)


class TestPreconditions(RunnerTestCase):

    async def test_failed_validation_changes_nothing(self):
        grid = GridStore.empty(3, 3, start=(0, 0))
        with self.assertRaises(UserInputError):
            self.runner.start("dijkstra", grid)
        self.assertEqual(self.runner.state.status, RunStatus.IDLE)
        self.assertFalse(grid.locked)
        self.assertEqual(self.events, [])

    async def test_unknown_algorithm_and_wrong_family(self):
        with self.assertRaises(UserInputError):
            self.runner.start("bogo_sort", ArrayStore([2, 1]))
        with self.assertRaises(UserInputError):
            self.runner.start("bfs", ArrayStore([2, 1]))

    async def test_no_store(self):
        with self.assertRaises(UserInputError):
            self.runner.start("bubble_sort")

    async def test_start_needs_a_running_loop(self):
        runner = Runner(clock=self.clock)
        with self.assertRaises(RuntimeError):
            await asyncio.get_running_loop().run_in_executor(
                None, lambda: runner.start("bubble_sort", ArrayStore([2, 1])))
        self.assertEqual(runner.state.status, RunStatus.IDLE)


class TestPauseResumeCancel(RunnerTestCase):

    async def test_pause_holds_everything_until_resume(self):
        store = ArrayStore([5, 3, 4, 1, 2])

        def pause_at_three(state, stats, snap):
            if state.status is RunStatus.RUNNING and state.step_count == 3:
                self.runner.pause()

        self.runner.subscribe(pause_at_three)
        self.runner.start("bubble_sort", store)
        await pump()

        self.assertEqual(self.runner.state.status, RunStatus.PAUSED)
        frozen_ops, frozen_values = self.runner.stats.operations, store.values()
        await pump()
        self.assertEqual(self.runner.stats.operations, frozen_ops)
        self.assertEqual(store.values(), frozen_values)
        self.assertEqual(frozen_ops, 3)

        self.runner.unsubscribe(pause_at_three)
        self.runner.resume()
        await self.runner.wait()
        self.assertEqual(self.runner.stats.operations, 10)

    async def test_pause_then_immediate_resume_changes_nothing(self):
        store = ArrayStore([4, 3, 2, 1])
        self.runner.start("bubble_sort", store)
        await pump(20)
        ops, values = self.runner.stats.operations, store.values()
        self.runner.pause()
        self.runner.resume()
        self.assertEqual(self.runner.stats.operations, ops)
        self.assertEqual(store.values(), values)
        await self.runner.wait()
        self.assertEqual(store.values(), [1, 2, 3, 4])

    async def test_paused_time_is_excluded_from_elapsed(self):
        store = ArrayStore([5, 3, 4, 1, 2])

        def pause_once(state, stats, snap):
            if state.status is RunStatus.RUNNING and state.step_count == 1:
                self.runner.unsubscribe(pause_once)
                self.runner.pause()

        self.runner.subscribe(pause_once)
        self.runner.start("bubble_sort", store)
        await pump(300)
        self.assertGreater(self.clock.now(), 5.0)
        self.runner.resume()
        await self.runner.wait()
        # 11 visible steps at 100 ms; the pacing slept while paused is excluded too
        self.assertAlmostEqual(self.runner.stats.elapsed_time, 1.05, delta=0.1)

    async def test_cancel_takes_effect_immediately(self):
        store = ArrayStore([5, 3, 4, 1, 2])

        def cancel_at_two(state, stats, snap):
            if state.status is RunStatus.RUNNING and state.step_count == 2:
                self.runner.cancel()

        self.runner.subscribe(cancel_at_two)
        self.runner.start("bubble_sort", store)
        outcome = await self.runner.wait()

        self.assertIsNone(outcome)
        self.assertEqual(self.runner.state.status, RunStatus.CANCELLED)
        self.assertEqual(self.runner.state.step_count, 2)
        self.assertEqual(self.runner.stats.operations, 2)
        self.assertFalse(store.locked)

    async def test_cancel_while_paused(self):
        store = ArrayStore([3, 2, 1])
        self.runner.start("bubble_sort", store)
        self.runner.pause()
        self.runner.cancel()
        self.assertIsNone(await self.runner.wait())
        self.assertEqual(self.runner.state.status, RunStatus.CANCELLED)
        store.reset([1])
        self.runner.start("bubble_sort", store)
        await self.runner.wait()
        self.assertEqual(self.runner.state.status, RunStatus.COMPLETED)

    async def test_invalid_transitions(self):
        with self.assertRaises(InvalidTransition):
            self.runner.pause()
        with self.assertRaises(InvalidTransition):
            self.runner.resume()
        with self.assertRaises(InvalidTransition):
            self.runner.cancel()
        self.runner.start("bubble_sort", ArrayStore([3, 2, 1]))
        with self.assertRaises(InvalidTransition):
            self.runner.resume()
        with self.assertRaises(InvalidTransition):
            self.runner.reset()
        self.assertEqual(self.runner.state.status, RunStatus.RUNNING)
        await self.runner.wait()

    async def test_structure_is_locked_during_a_run(self):
        grid = GridStore.empty(4, 4, start=(0, 0), target=(3, 3))
        self.runner.start("bfs", grid)
        with self.assertRaises(StructureLocked):
            grid.toggle_wall((1, 1))
        await self.runner.wait()
        self.assertTrue(grid.toggle_wall((1, 1)))

    async def test_reset_is_idempotent(self):
        store = ArrayStore([2, 1])
        self.runner.start("bubble_sort", store)
        await self.runner.wait()
        self.runner.reset()
        first = (self.runner.state, self.runner.stats, store.snapshot())
        self.runner.reset()
        self.assertEqual((self.runner.state, self.runner.stats, store.snapshot()), first)
        self.assertEqual(self.runner.state.status, RunStatus.IDLE)
        self.assertEqual(self.runner.stats.operations, 0)

    async def test_runners_do_not_share_pause_state(self):
        other = Runner(RunnerConfig(speed_ms=100), clock=self.clock)
        a, b = ArrayStore([3, 2, 1]), ArrayStore([3, 2, 1])
        self.runner.start("bubble_sort", a)
        other.start("bubble_sort", b)
        self.runner.pause()
        await other.wait()
        self.assertEqual(other.state.status, RunStatus.COMPLETED)
        self.assertEqual(self.runner.state.status, RunStatus.PAUSED)
        self.runner.cancel()
        await self.runner.wait()


class TestSpeed(RunnerTestCase):

    async def test_bounds(self):
        for bad in (99, 2001, True, "500", 250.5):
            with self.subTest(speed=bad):
                with self.assertRaises(UserInputError):
                    self.runner.set_speed(bad)
        self.runner.set_speed(100)
        self.runner.set_speed(2000)
        self.assertEqual(self.runner.speed_ms, 2000)


class TestFaultsAndFeedback(RunnerTestCase):

    async def test_internal_fault_cancels_with_error(self):
        with mock.patch.dict(REGISTRY, {"boom": BOOM}):
            store = ArrayStore([2, 1])
            with self.assertLogs("engine.runner", level="ERROR"):
                self.runner.start("boom", store)
                outcome = await self.runner.wait()
        self.assertIsNone(outcome)
        self.assertEqual(self.runner.state.status, RunStatus.CANCELLED)
        self.assertIn("kaboom", self.runner.state.error)
        self.assertEqual(self.runner.stats.operations, 1)
        self.assertFalse(store.locked)

        self.runner.start("bubble_sort", store)
        await self.runner.wait()
        self.assertEqual(self.runner.state.status, RunStatus.COMPLETED)
        self.assertIsNone(self.runner.state.error)

    async def test_listener_fault_on_start_leaves_runner_reusable(self):
        def broken(state, stats, snap):
            if state.status is RunStatus.RUNNING:
                raise RuntimeError("listener down")

        store = ArrayStore([3, 2, 1])
        self.runner.subscribe(broken)
        with self.assertLogs("engine.runner", level="ERROR"):
            self.runner.start("bubble_sort", store)
        self.assertEqual(self.runner.state.status, RunStatus.CANCELLED)
        self.assertIn("listener down", self.runner.state.error)
        self.assertFalse(store.locked)
        self.assertIsNone(await self.runner.wait())
        self.assertEqual(store.values(), [3, 2, 1])

        self.runner.unsubscribe(broken)
        self.runner.start("bubble_sort", store)
        await self.runner.wait()
        self.assertEqual(self.runner.state.status, RunStatus.COMPLETED)

    async def test_resizing_edit_commits_after_unlock(self):
        store = ArrayStore([4, 8, 15])
        self.runner.start("array_insert", store, index=3, value=16)
        outcome = await self.runner.wait()
        self.assertEqual(store.values(), [4, 8, 15, 16])
        self.assertEqual(outcome.result, [4, 8, 15, 16])
        self.assertEqual(self.runner.stats.operations, 1)
        self.assertEqual(self.events[-1][2].values(), [4, 8, 15, 16])
        self.assertFalse(store.locked)

    async def test_feedback_errors_never_reach_the_run(self):
        class Broken(Feedback):
            def on_step(self, step):
                raise OSError("no audio device")

        runner = Runner(RunnerConfig(speed_ms=100), clock=self.clock, feedback=Broken())
        with self.assertLogs("engine.runner", level="WARNING"):
            runner.start("bubble_sort", ArrayStore([2, 1]))
            await runner.wait()
        self.assertEqual(runner.state.status, RunStatus.COMPLETED)

    async def test_logging_feedback_counts_visible_steps(self):
        feedback = LoggingFeedback()
        runner = Runner(RunnerConfig(speed_ms=100), clock=self.clock, feedback=feedback)
        runner.start("bubble_sort", ArrayStore([3, 1, 2]))
        await runner.wait()
        self.assertEqual(feedback.clicks, runner.state.step_count)


class TestPauseGate(unittest.IsolatedAsyncioTestCase):

    async def test_cancel_raises_at_next_checkpoint(self):
        gate = PauseGate(InstantClock())
        gate.cancel()
        with self.assertRaises(RunCancelled):
            await gate.checkpoint()

    async def test_delay_is_sliced_and_cancellable(self):
        clock = InstantClock()
        gate = PauseGate(clock, poll_interval=0.1)
        await gate.delay(0.35)
        self.assertAlmostEqual(clock.now(), 0.35)
        gate.cancel()
        with self.assertRaises(RunCancelled):
            await gate.delay(1.0)

    async def test_paused_time_accumulates(self):
        clock = InstantClock()
        gate = PauseGate(clock)
        gate.pause()
        await clock.sleep(2.0)
        gate.resume()
        self.assertAlmostEqual(gate.paused_time(), 2.0)


class TestStats(unittest.TestCase):

    def test_merge_returns_new_record(self):
        s = Stats()
        t = s.add_operations(3).merge(elapsed_time=1.5)
        self.assertEqual(s.operations, 0)
        self.assertEqual((t.operations, t.elapsed_time), (3, 1.5))

    def test_operations_cannot_go_down(self):
        with self.assertRaises(ValueError):
            Stats(operations=5).merge(operations=4)


class TestChallengeTimer(unittest.IsolatedAsyncioTestCase):

    async def test_expiry_fires_callback(self):
        fired = []
        timer = ChallengeTimer(InstantClock())
        self.assertEqual(timer.format(), "0:00")
        task = timer.start(90, on_expire=lambda: fired.append(True))
        self.assertEqual(timer.format(), "1:30")
        self.assertFalse(timer.warning)
        await task
        self.assertTrue(timer.expired)
        self.assertEqual(fired, [True])
        self.assertEqual(timer.remaining(), 0.0)

    async def test_warning_in_the_last_ten_seconds(self):
        clock = InstantClock()
        timer = ChallengeTimer(clock, tick=1.0)
        timer.start(12)
        while timer.remaining() > 10:
            await asyncio.sleep(0)
        self.assertTrue(timer.warning)
        timer.stop()

    async def test_stop_prevents_expiry(self):
        fired = []
        timer = ChallengeTimer(InstantClock())
        timer.start(5, on_expire=lambda: fired.append(True))
        await asyncio.sleep(0)
        timer.stop()
        await pump(50)
        self.assertEqual(fired, [])
        self.assertFalse(timer.running)

    async def test_bad_duration(self):
        timer = ChallengeTimer(InstantClock())
        with self.assertRaises(UserInputError):
            timer.start(0)

    async def test_expiry_cancels_the_active_run(self):
        clock = InstantClock()
        runner = Runner(RunnerConfig(speed_ms=1000), clock=clock)
        timer = ChallengeTimer(clock)
        runner.start("bubble_sort", ArrayStore(list(range(30, 0, -1))))
        await timer.start(2, on_expire=runner.cancel)
        self.assertEqual(runner.state.status, RunStatus.CANCELLED)
        self.assertIsNone(await runner.wait())


class TestRunnerHost(unittest.TestCase):

    def setUp(self):
        self.host = RunnerHost(Runner(clock=Clock()))

    def tearDown(self):
        self.host.stop()

    def test_commands_run_on_the_loop_thread(self):
        self.host.call(self.host.runner.set_speed, 100)
        self.assertEqual(self.host.runner.speed_ms, 100)

    def test_exceptions_propagate_to_the_caller(self):
        with self.assertRaises(InvalidTransition):
            self.host.call(self.host.runner.pause)

    def test_start_and_cancel_through_the_host(self):
        runner = self.host.runner
        self.host.call(runner.start, "bubble_sort", ArrayStore([3, 2, 1]))
        self.assertTrue(runner.state.active)
        self.host.call(runner.cancel)
        self.assertEqual(runner.state.status, RunStatus.CANCELLED)


if __name__ == "__main__":
    unittest.main()
