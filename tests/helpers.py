"""Shared helpers for driving algorithm generators without a Runner."""

from typing import Generator, List, Tuple

from algorithms.step import Outcome, Step


def drain(gen: Generator[Step, None, Outcome]) -> Tuple[List[Step], Outcome]:
    """Exhaust a generator; return every Step and the returned Outcome."""
    steps = []
    while True:
        try:
            steps.append(next(gen))
        except StopIteration as stop:
            return steps, stop.value


def operations(steps: List[Step]) -> int:
    return sum(s.cost for s in steps)
