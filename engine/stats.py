"""
stats.py — Run Statistics
==========================
The counters the stats panel renders.  Immutable: the Runner replaces
its Stats with `merge()` after every step, so a reader holding an old
record never sees it change.
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Stats:
    operations:      int   = 0      # sum of Step.cost so far
    elapsed_time:    float = 0.0    # seconds, time spent paused excluded
    memory_estimate: int   = 0      # bytes held by the store (approximate)

    def merge(self, **changes) -> "Stats":
        """Return a copy with `changes` applied; operations never go down."""
        if changes.get("operations", self.operations) < self.operations:
            raise ValueError("operations is non-decreasing within a run")
        return replace(self, **changes)

    def add_operations(self, n: int) -> "Stats":
        return self.merge(operations=self.operations + n)

    def to_dict(self) -> dict:
        return {
            "operations":      self.operations,
            "elapsed_time":    round(self.elapsed_time, 4),
            "memory_estimate": self.memory_estimate,
        }
