"""
sorting.py — Comparison Sorts
==============================
Bubble, insertion, quick (Lomuto) and merge sort over an ArrayStore.

One visible Step per comparison, with any swap or write that the
comparison triggers applied before the yield.  Each comparison costs
one operation; the bookkeeping steps (pivot placement, copying the
leftover run in merge) cost nothing.

`sorted` is set as soon as a position is proven final:
  - bubble    : the last i indices after outer pass i
  - quick     : the pivot after each partition, and singleton partitions
  - insertion : every index when the run ends
  - merge     : each write of the top-level merge, the rest at the end
"""

from typing import Generator, List, Tuple

from algorithms.step import Outcome, Step, StepBuilder
from store import ArrayStore, Flag, Highlight

SortGen = Generator[Step, None, Outcome]


# ---------------------------------------------------------------------------
# Pseudocode
# ---------------------------------------------------------------------------
BUBBLE_PSEUDOCODE: List[str] = [
    "def bubble_sort(a):",                          # 0
    "    for i in range(n - 1):",                   # 1
    "        for j in range(n - 1 - i):",           # 2
    "            if a[j] > a[j + 1]:",              # 3
    "                swap(a[j], a[j + 1])",         # 4
    "        mark a[n - 1 - i] sorted",             # 5
]

INSERTION_PSEUDOCODE: List[str] = [
    "def insertion_sort(a):",                       # 0
    "    for i in range(1, n):",                    # 1
    "        key ← a[i]; j ← i - 1",                # 2
    "        while j >= 0 and a[j] > key:",         # 3
    "            a[j + 1] ← a[j]; j ← j - 1",       # 4
    "        a[j + 1] ← key",                       # 5
]

QUICK_PSEUDOCODE: List[str] = [
    "def quick_sort(a, lo, hi):",                   # 0
    "    if lo < hi:",                              # 1
    "        pivot ← a[hi]; i ← lo - 1",            # 2
    "        for j in range(lo, hi):",              # 3
    "            if a[j] <= pivot:",                # 4
    "                i ← i + 1; swap(a[i], a[j])",  # 5
    "        swap(a[i + 1], a[hi])",                # 6
    "        quick_sort(a, lo, i)",                 # 7
    "        quick_sort(a, i + 2, hi)",             # 8
]

MERGE_PSEUDOCODE: List[str] = [
    "def merge_sort(a, lo, hi):",                   # 0
    "    if lo < hi:",                              # 1
    "        mid ← (lo + hi) // 2",                 # 2
    "        merge_sort(a, lo, mid)",               # 3
    "        merge_sort(a, mid + 1, hi)",           # 4
    "        while both halves non-empty:",         # 5
    "            a[k] ← min(left[i], right[j])",    # 6
    "        copy the leftover half",               # 7
]


def _finish(store: ArrayStore, sb: StepBuilder, line: int) -> Step:
    store.clear_flag_everywhere(Flag.COMPARING)
    for ref in store.refs():
        store.set_flags(ref, Flag.SORTED)
    return sb.build(
        "done", refs=store.refs(), line=line, cost=0, is_final=True,
        explanation=f"Sorted in {sb.metrics['comparisons']} comparisons "
                    f"and {sb.metrics['swaps']} swaps/writes.",
    )


# ---------------------------------------------------------------------------
# Bubble sort: no early exit, always n(n-1)/2 comparisons
# ---------------------------------------------------------------------------
def bubble_sort(store: ArrayStore) -> SortGen:
    sb = StepBuilder("comparisons", "swaps")
    hl = Highlight(store, Flag.COMPARING)
    n = len(store)

    for i in range(n - 1):
        for j in range(n - 1 - i):
            hl.move(j, j + 1)
            sb.count("comparisons")
            a, b = store.value(j), store.value(j + 1)
            if a > b:
                store.swap(j, j + 1)
                sb.count("swaps")
                text = f"{a} > {b}: swap positions {j} and {j + 1}."
            else:
                text = f"{a} ≤ {b}: already in order."
            yield sb.build("compare", refs=(j, j + 1), line=4 if a > b else 3, explanation=text)
        store.set_flags(n - 1 - i, Flag.SORTED)

    yield _finish(store, sb, line=5)
    return sb.outcome(result=store.values(), summary="Array sorted with bubble sort.")


# ---------------------------------------------------------------------------
# Insertion sort: shift larger elements right, then drop the key in
# ---------------------------------------------------------------------------
def insertion_sort(store: ArrayStore) -> SortGen:
    sb = StepBuilder("comparisons", "swaps")
    hl = Highlight(store, Flag.COMPARING)
    n = len(store)

    for i in range(1, n):
        key = store.value(i)
        j = i - 1
        while j >= 0:
            hl.move(j, j + 1)
            sb.count("comparisons")
            current = store.value(j)
            if current > key:
                store.set_value(j + 1, current)
                store.set_value(j, key)
                sb.count("swaps")
                yield sb.build(
                    "compare", refs=(j, j + 1), line=4,
                    explanation=f"{current} > key {key}: shift {current} right to position {j + 1}.",
                )
                j -= 1
            else:
                yield sb.build(
                    "compare", refs=(j, j + 1), line=5,
                    explanation=f"{current} ≤ key {key}: key stays at position {j + 1}.",
                )
                break

    yield _finish(store, sb, line=5)
    return sb.outcome(result=store.values(), summary="Array sorted with insertion sort.")


# ---------------------------------------------------------------------------
# Quick sort: Lomuto partition, last element as pivot, explicit work stack
# ---------------------------------------------------------------------------
def quick_sort(store: ArrayStore) -> SortGen:
    sb = StepBuilder("comparisons", "swaps")
    hl = Highlight(store, Flag.COMPARING)
    work = [(0, len(store) - 1)]

    while work:
        lo, hi = work.pop()
        if lo > hi:
            continue
        if lo == hi:
            store.set_flags(lo, Flag.SORTED)
            continue

        p = yield from _partition(store, lo, hi, sb, hl)
        store.set_flags(p, Flag.SORTED)
        # left part on top so it is processed first
        work.append((p + 1, hi))
        work.append((lo, p - 1))

    yield _finish(store, sb, line=1)
    return sb.outcome(result=store.values(), summary="Array sorted with quick sort.")


def _partition(store: ArrayStore, lo: int, hi: int, sb: StepBuilder, hl: Highlight) -> Generator[Step, None, int]:
    pivot = store.value(hi)
    i = lo - 1
    for j in range(lo, hi):
        hl.move(j, hi)
        sb.count("comparisons")
        value = store.value(j)
        if value <= pivot:
            i += 1
            if i != j:
                store.swap(i, j)
                sb.count("swaps")
            text = f"{value} ≤ pivot {pivot}: move it into the low side (position {i})."
        else:
            text = f"{value} > pivot {pivot}: leave it on the high side."
        yield sb.build("compare", refs=(j, hi), line=5 if value <= pivot else 4, explanation=text,
                       overlay={"pivot": pivot, "range": [lo, hi]})

    p = i + 1
    if p != hi:
        store.swap(p, hi)
        sb.count("swaps")
    hl.move(p)
    yield sb.build(
        "pivot", refs=(p,), line=6, cost=0,
        explanation=f"Pivot {pivot} placed at its final position {p}.",
        overlay={"pivot": pivot, "range": [lo, hi]},
    )
    return p


# ---------------------------------------------------------------------------
# Merge sort: top-down, one recursive generator per level
# ---------------------------------------------------------------------------
def merge_sort(store: ArrayStore) -> SortGen:
    sb = StepBuilder("comparisons", "swaps")
    hl = Highlight(store, Flag.COMPARING)
    n = len(store)
    yield from _merge_sort(store, 0, n - 1, sb, hl, top=(0, n - 1))
    yield _finish(store, sb, line=7)
    return sb.outcome(result=store.values(), summary="Array sorted with merge sort.")


def _merge_sort(store: ArrayStore, lo: int, hi: int, sb: StepBuilder, hl: Highlight,
                top: Tuple[int, int]) -> Generator[Step, None, None]:
    if lo >= hi:
        return
    mid = (lo + hi) // 2
    yield from _merge_sort(store, lo, mid, sb, hl, top)
    yield from _merge_sort(store, mid + 1, hi, sb, hl, top)

    final = (lo, hi) == top
    left  = [store.value(r) for r in range(lo, mid + 1)]
    right = [store.value(r) for r in range(mid + 1, hi + 1)]
    i = j = 0
    k = lo

    while i < len(left) and j < len(right):
        hl.move(k)
        sb.count("comparisons")
        if left[i] <= right[j]:
            value, i = left[i], i + 1
        else:
            value, j = right[j], j + 1
        store.set_value(k, value)
        sb.count("swaps")
        if final:
            store.set_flags(k, Flag.SORTED)
        yield sb.build("compare", refs=(k,), line=6,
                       explanation=f"Write {value} (the smaller head) to position {k}.",
                       overlay={"range": [lo, hi]})
        k += 1

    for value in left[i:] + right[j:]:
        hl.move(k)
        store.set_value(k, value)
        sb.count("swaps")
        if final:
            store.set_flags(k, Flag.SORTED)
        yield sb.build("copy", refs=(k,), line=7, cost=0,
                       explanation=f"Copy leftover {value} to position {k}.",
                       overlay={"range": [lo, hi]})
        k += 1
