"""
recorder.py — Batch Runs & Comparison Mode
===========================================
Runs algorithms to completion with no pacing and no pause gate, then
reports the analytics the Comparison panel renders.

Usage:
    metrics = run_batch("quick_sort", ArrayStore([5, 3, 4, 1, 2]))
    result  = compare_algorithms(["bubble_sort", "merge_sort"], sizes=(10, 100))
    result.winner(100, "comparisons")      # → "merge_sort"

Comparison Mode:
    Every algorithm in one comparison sees the SAME input per size:
      sorting      – a seeded random array
      searching    – a seeded sorted array, target = its last element
      pathfinding  – a seeded random graph, start "0", target "n-1"
    A fresh store is built per (algorithm, size) so no run sees another
    run's flags or mutations.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from algorithms import AlgoInfo, get_algorithm
from algorithms.step import Outcome
from engine.config import COMPARISON_SIZES
from errors import UserInputError
from store import ArrayStore, GraphStore, VisualStore

logger = logging.getLogger(__name__)

COMPARABLE_FAMILIES = ("sorting", "searching", "pathfinding")


# ---------------------------------------------------------------------------
# Metrics dataclass — one card per (algorithm, size)
# ---------------------------------------------------------------------------
@dataclass
class RunMetrics:
    algo_key:        str   = ""
    algo_label:      str   = ""
    size:            int   = 0
    comparisons:     int   = 0
    swaps:           int   = 0
    relaxations:     int   = 0
    operations:      int   = 0          # sum of step costs, as the Runner counts them
    total_steps:     int   = 0
    elapsed_time:    float = 0.0        # seconds, perf_counter around the exhausted generator
    memory_estimate: int   = 0          # bytes, store.memory_estimate() after the run
    found:           bool  = True

    def to_dict(self) -> dict:
        data = asdict(self)
        data["elapsed_time"] = round(self.elapsed_time, 6)
        return data


# ---------------------------------------------------------------------------
# ComparisonResult — metrics table plus winners
# ---------------------------------------------------------------------------
@dataclass
class ComparisonResult:
    keys:    List[str]                         = field(default_factory=list)
    sizes:   List[int]                         = field(default_factory=list)
    family:  str                               = ""
    runs:    Dict[int, Dict[str, RunMetrics]]  = field(default_factory=dict)

    def metric(self, key: str, size: int, name: str) -> Any:
        return getattr(self.runs[size][key], name)

    def winner(self, size: int, name: str, lower_is_better: bool = True) -> str:
        """Key with the best value for `name` at `size`, or "tie"."""
        scores = {key: getattr(m, name) for key, m in self.runs[size].items()}
        best = min(scores.values()) if lower_is_better else max(scores.values())
        leaders = [key for key, v in scores.items() if v == best]
        return leaders[0] if len(leaders) == 1 else "tie"

    def to_dict(self) -> dict:
        headline = "relaxations" if self.family == "pathfinding" else "comparisons"
        return {
            "family": self.family,
            "keys":   list(self.keys),
            "sizes":  list(self.sizes),
            "runs": {
                str(size): {key: m.to_dict() for key, m in per_key.items()}
                for size, per_key in self.runs.items()
            },
            "winners": {
                str(size): {
                    headline:       self.winner(size, headline),
                    "elapsed_time": self.winner(size, "elapsed_time"),
                }
                for size in self.runs
            },
        }


# ---------------------------------------------------------------------------
# Single batch run
# ---------------------------------------------------------------------------
def run_batch(algo_key: str, store: VisualStore, **params: Any) -> RunMetrics:
    """
    Validate like Runner.start() does, then exhaust the generator in one
    go.  The store is reset (or re-laid-out) first and left with the
    run's final flags.
    """
    info = get_algorithm(algo_key)
    info.validate(store, params)
    if info.layout is not None:
        store.reset(info.layout(params))
    else:
        store.reset()

    size = len(store)
    operations, steps = 0, 0
    last_metrics: Dict[str, int] = {}
    t0 = time.perf_counter()
    if len(store) < info.min_size:
        outcome = Outcome(found=info.family != "searching",
                          summary=f"Nothing to do for {len(store)} element(s).")
    else:
        gen = info.fn(store, **params)
        while True:
            try:
                step = next(gen)
            except StopIteration as stop:
                outcome = stop.value if stop.value is not None else Outcome()
                break
            operations += step.cost
            steps += 1
            last_metrics = step.metrics
    elapsed = time.perf_counter() - t0
    if info.commit is not None:
        info.commit(store, outcome)

    tallies = {**last_metrics, **outcome.metrics}
    metrics = RunMetrics(
        algo_key=info.key,
        algo_label=info.label,
        size=size,
        comparisons=tallies.get("comparisons", 0),
        swaps=tallies.get("swaps", 0),
        relaxations=tallies.get("relaxations", 0),
        operations=operations,
        total_steps=steps,
        elapsed_time=elapsed,
        memory_estimate=store.memory_estimate(),
        found=outcome.found,
    )
    logger.debug("batch %s n=%d: %d steps, %d operations in %.4fs",
                 info.key, metrics.size, steps, operations, elapsed)
    return metrics


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------
def compare_algorithms(
    keys: Sequence[str],
    sizes: Iterable[int] = COMPARISON_SIZES,
    seed: Optional[int] = None,
) -> ComparisonResult:
    """Run every key at every size on identical inputs."""
    keys = list(keys)
    if len(keys) < 2:
        raise UserInputError("Pick at least two algorithms to compare")
    if len(set(keys)) != len(keys):
        raise UserInputError("Each algorithm may appear only once in a comparison")

    infos = [get_algorithm(k) for k in keys]
    families = {info.family for info in infos}
    if len(families) != 1:
        raise UserInputError("Only algorithms of the same family can be compared")
    family = families.pop()
    if family not in COMPARABLE_FAMILIES:
        raise UserInputError(f"Comparison supports {', '.join(COMPARABLE_FAMILIES)}; not {family}")

    sizes = [int(s) for s in sizes]
    if not sizes or any(s < 2 for s in sizes):
        raise UserInputError("Comparison sizes must be integers of at least 2")

    result = ComparisonResult(keys=keys, sizes=sizes, family=family)
    logger.info("comparing %s over sizes %s", ", ".join(keys), sizes)
    for size in sizes:
        result.runs[size] = {}
        for info in infos:
            store, params = _build_input(info, size, seed)
            result.runs[size][info.key] = run_batch(info.key, store, **params)
    return result


def _build_input(info: AlgoInfo, size: int, seed: Optional[int]):
    """Same (size, seed) → same input for every algorithm of a family."""
    if info.family == "sorting":
        return ArrayStore.random(length=size, high=max(100, size), seed=seed), {}
    if info.family == "searching":
        store = ArrayStore.random(length=size, high=max(100, size * 2), sorted_values=True, seed=seed)
        return store, {"target": store.value(size - 1)}
    store = GraphStore.generate_random(num_nodes=size, edge_probability=min(0.3, 4 / size), seed=seed)
    store.set_start("0")
    store.set_target(str(size - 1))
    return store, {}
