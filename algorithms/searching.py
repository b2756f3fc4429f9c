"""
searching.py — Array Search
============================
Linear, binary, jump and interpolation search over an ArrayStore.

One visible Step per probe (cost 1).  A hit flags the element `found`
and ends the run on that step; running out of candidates ends with a
cost-0 "exhausted" step and Outcome(found=False).  Every probed index
stays flagged `visited`.

binary / jump / interpolation require ascending values; check_sorted()
is their registry precondition.
"""

import math
from typing import Any, Dict, Generator, List, Optional

from algorithms.step import Outcome, Step, StepBuilder
from errors import UserInputError
from store import ArrayStore, Flag

SearchGen = Generator[Step, None, Outcome]


LINEAR_PSEUDOCODE: List[str] = [
    "def linear_search(a, target):",                # 0
    "    for i in range(n):",                       # 1
    "        if a[i] == target: return i",          # 2
    "    return NOT FOUND",                         # 3
]

BINARY_PSEUDOCODE: List[str] = [
    "def binary_search(a, target):",                # 0
    "    lo, hi ← 0, n - 1",                        # 1
    "    while lo <= hi:",                          # 2
    "        mid ← (lo + hi) // 2",                 # 3
    "        if a[mid] == target: return mid",      # 4
    "        if a[mid] < target: lo ← mid + 1",     # 5
    "        else: hi ← mid - 1",                   # 6
    "    return NOT FOUND",                         # 7
]

JUMP_PSEUDOCODE: List[str] = [
    "def jump_search(a, target):",                  # 0
    "    block ← floor(sqrt(n)); prev ← 0",         # 1
    "    while a[min(block, n) - 1] < target:",     # 2
    "        prev ← block; block += sqrt(n)",       # 3
    "        if prev >= n: return NOT FOUND",       # 4
    "    while a[prev] < target:",                  # 5
    "        prev ← prev + 1",                      # 6
    "    if a[prev] == target: return prev",        # 7
    "    return NOT FOUND",                         # 8
]

INTERPOLATION_PSEUDOCODE: List[str] = [
    "def interpolation_search(a, target):",                         # 0
    "    lo, hi ← 0, n - 1",                                        # 1
    "    while lo <= hi and a[lo] <= target <= a[hi]:",             # 2
    "        pos ← lo + (hi-lo)*(target-a[lo]) // (a[hi]-a[lo])",   # 3
    "        if a[pos] == target: return pos",                      # 4
    "        if a[pos] < target: lo ← pos + 1",                     # 5
    "        else: hi ← pos - 1",                                   # 6
    "    return NOT FOUND",                                         # 7
]


# ---------------------------------------------------------------------------
# Preconditions (called by the registry before a run starts)
# ---------------------------------------------------------------------------
def check_target(store: ArrayStore, params: Dict[str, Any]) -> None:
    target = params.get("target")
    if target is None:
        raise UserInputError("Enter a target value to search for")
    if isinstance(target, bool) or not isinstance(target, (int, float)):
        raise UserInputError(f"Search target must be a number, not {target!r}")


def check_sorted(store: ArrayStore, params: Dict[str, Any]) -> None:
    check_target(store, params)
    if not store.is_sorted():
        raise UserInputError("This search needs the array sorted in ascending order")


# ---------------------------------------------------------------------------
# Shared probe helper
# ---------------------------------------------------------------------------
def _probe(store: ArrayStore, sb: StepBuilder, ref: int, target: Any, line: int,
           extra: str = "", overlay: Optional[Dict[str, Any]] = None) -> Step:
    """Highlight `ref`, count the comparison, flag it found on a hit."""
    store.clear_flag_everywhere(Flag.COMPARING)
    store.apply(ref, add=(Flag.COMPARING, Flag.VISITED))
    sb.count("comparisons")
    value = store.value(ref)
    if value == target:
        store.apply(ref, add=(Flag.FOUND,), remove=(Flag.COMPARING,))
        return sb.build("found", refs=(ref,), line=line, is_final=True, overlay=overlay,
                        explanation=f"a[{ref}] = {value} equals the target. Found at index {ref}.")
    relation = "<" if value < target else ">"
    return sb.build("probe", refs=(ref,), line=line, overlay=overlay,
                    explanation=f"a[{ref}] = {value} {relation} {target}. {extra}".rstrip())


def _exhausted(store: ArrayStore, sb: StepBuilder, target: Any, line: int) -> Step:
    store.clear_flag_everywhere(Flag.COMPARING)
    return sb.build("exhausted", line=line, cost=0, is_final=True,
                    explanation=f"{target} is not in the array.")


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------
def linear_search(store: ArrayStore, target: Any = None) -> SearchGen:
    sb = StepBuilder("comparisons")
    for i in range(len(store)):
        step = _probe(store, sb, i, target, line=2)
        yield step
        if step.action == "found":
            return sb.outcome(result=i, summary=f"Found {target} at index {i}.")
    yield _exhausted(store, sb, target, line=3)
    return sb.outcome(found=False, summary=f"{target} not found.")


def binary_search(store: ArrayStore, target: Any = None) -> SearchGen:
    sb = StepBuilder("comparisons")
    lo, hi = 0, len(store) - 1
    while lo <= hi:
        mid = (lo + hi) // 2
        if store.value(mid) < target:
            extra, nxt = f"Search the right half [{mid + 1}, {hi}].", (mid + 1, hi)
        else:
            extra, nxt = f"Search the left half [{lo}, {mid - 1}].", (lo, mid - 1)
        step = _probe(store, sb, mid, target, line=4, extra=extra, overlay={"lo": lo, "hi": hi, "mid": mid})
        yield step
        if step.action == "found":
            return sb.outcome(result=mid, summary=f"Found {target} at index {mid}.")
        lo, hi = nxt
    yield _exhausted(store, sb, target, line=7)
    return sb.outcome(found=False, summary=f"{target} not found.")


def jump_search(store: ArrayStore, target: Any = None) -> SearchGen:
    sb = StepBuilder("comparisons")
    n = len(store)
    block = int(math.sqrt(n))
    step_size, prev = block, 0

    # jump ahead block by block; every block edge read is a probe
    while True:
        edge = min(step_size, n) - 1
        ahead = store.value(edge) < target
        step = _probe(store, sb, edge, target, line=2,
                      extra="Jump to the next block." if ahead else f"Scan the block [{prev}, {edge - 1}].",
                      overlay={"block": block, "prev": prev})
        yield step
        if step.action == "found":
            return sb.outcome(result=edge, summary=f"Found {target} at index {edge}.")
        if not ahead:
            break
        prev = step_size
        step_size += block
        if prev >= n:
            yield _exhausted(store, sb, target, line=4)
            return sb.outcome(found=False, summary=f"{target} not found.")

    # linear scan inside the block, up to the edge already probed
    limit = edge
    while prev < limit:
        step = _probe(store, sb, prev, target, line=7 if store.value(prev) >= target else 5,
                      overlay={"block": block, "prev": prev})
        yield step
        if step.action == "found":
            return sb.outcome(result=prev, summary=f"Found {target} at index {prev}.")
        if store.value(prev) > target:
            break
        prev += 1
    yield _exhausted(store, sb, target, line=8)
    return sb.outcome(found=False, summary=f"{target} not found.")


def interpolation_search(store: ArrayStore, target: Any = None) -> SearchGen:
    sb = StepBuilder("comparisons")
    lo, hi = 0, len(store) - 1
    while lo <= hi and store.value(lo) <= target <= store.value(hi):
        a_lo, a_hi = store.value(lo), store.value(hi)
        if a_hi == a_lo:
            pos = lo
        else:
            pos = lo + int((hi - lo) * (target - a_lo) // (a_hi - a_lo))
        if store.value(pos) < target:
            extra, nxt = f"Narrow to [{pos + 1}, {hi}].", (pos + 1, hi)
        else:
            extra, nxt = f"Narrow to [{lo}, {pos - 1}].", (lo, pos - 1)
        step = _probe(store, sb, pos, target, line=4, extra=extra, overlay={"lo": lo, "hi": hi, "pos": pos})
        yield step
        if step.action == "found":
            return sb.outcome(result=pos, summary=f"Found {target} at index {pos}.")
        if a_hi == a_lo:
            break
        lo, hi = nxt
    yield _exhausted(store, sb, target, line=7)
    return sb.outcome(found=False, summary=f"{target} not found.")
