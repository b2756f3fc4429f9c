"""
dynamic.py — Dynamic-Programming Table Fill
============================================
Fibonacci, 0/1 knapsack, longest common subsequence and matrix-chain
order over a TableStore.

Each problem has two halves:

    *_layout(params)  – validates the inputs and returns the table
                        container (shape + labels).  The Runner loads it
                        into the store before the run starts.
    generator         – fills the table one cell per visible Step.

Cell life-cycle: `processing` while it is the cell being computed (its
dependency cells shown `comparing`), `calculated` from the next step on.
Base cells are seeded in a single cost-0 step; every computed cell
costs one operation.  Knapsack and LCS finish with a backtrack that
flags the cells it walks `path`.
"""

from typing import Any, Dict, Generator, Iterable, List, Optional, Sequence, Tuple

from algorithms.step import Outcome, Step, StepBuilder
from errors import UserInputError
from store import Flag, TableStore

Cell = Tuple[int, int]
DPGen = Generator[Step, None, Outcome]

FIBONACCI_MAX = 90


FIBONACCI_PSEUDOCODE: List[str] = [
    "def fib(n):",                                  # 0
    "    dp[0], dp[1] ← 0, 1",                      # 1
    "    for i in range(2, n + 1):",                # 2
    "        dp[i] ← dp[i - 1] + dp[i - 2]",        # 3
    "    return dp[n]",                             # 4
]

KNAPSACK_PSEUDOCODE: List[str] = [
    "def knapsack(weights, values, W):",                            # 0
    "    dp[0][*] ← 0; dp[*][0] ← 0",                               # 1
    "    for i in range(1, n + 1):",                                # 2
    "        for w in range(1, W + 1):",                            # 3
    "            if weight[i] <= w:",                               # 4
    "                dp[i][w] ← max(dp[i-1][w], value[i] + dp[i-1][w-weight[i]])",  # 5
    "            else: dp[i][w] ← dp[i-1][w]",                      # 6
    "    backtrack from dp[n][W]",                                  # 7
]

LCS_PSEUDOCODE: List[str] = [
    "def lcs(a, b):",                                               # 0
    "    dp[0][*] ← 0; dp[*][0] ← 0",                               # 1
    "    for i in range(1, m + 1):",                                # 2
    "        for j in range(1, n + 1):",                            # 3
    "            if a[i-1] == b[j-1]: dp[i][j] ← dp[i-1][j-1] + 1", # 4
    "            else: dp[i][j] ← max(dp[i-1][j], dp[i][j-1])",     # 5
    "    backtrack from dp[m][n]",                                  # 6
]

MATRIX_CHAIN_PSEUDOCODE: List[str] = [
    "def matrix_chain(dims):",                                      # 0
    "    dp[i][i] ← 0",                                             # 1
    "    for length in range(2, n + 1):",                           # 2
    "        for i in range(n - length + 1):",                      # 3
    "            j ← i + length - 1",                               # 4
    "            dp[i][j] ← min over k of",                         # 5
    "                dp[i][k] + dp[k+1][j] + d[i]*d[k+1]*d[j+1]",   # 6
    "    return dp[0][n-1]",                                        # 7
]


# ---------------------------------------------------------------------------
# Input coercion shared by the layouts
# ---------------------------------------------------------------------------
def _int(params: Dict[str, Any], name: str, low: int, high: Optional[int] = None) -> int:
    try:
        value = int(params[name])
    except (KeyError, TypeError, ValueError):
        raise UserInputError(f"'{name}' must be an integer") from None
    if value < low or (high is not None and value > high):
        bound = f"between {low} and {high}" if high is not None else f"at least {low}"
        raise UserInputError(f"'{name}' must be {bound}")
    return value


def _int_list(params: Dict[str, Any], name: str, low: int) -> List[int]:
    raw = params.get(name)
    if isinstance(raw, str):
        raw = [x for x in raw.replace(",", " ").split()]
    try:
        values = [int(x) for x in (raw or [])]
    except (TypeError, ValueError):
        raise UserInputError(f"'{name}' must be a list of integers") from None
    if any(v < low for v in values):
        raise UserInputError(f"Every entry of '{name}' must be at least {low}")
    return values


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------
def _settle(store: TableStore) -> None:
    """Previous `processing` cell becomes `calculated`; dependency highlight cleared."""
    for ref in store.refs_with(Flag.PROCESSING):
        store.apply(ref, add=(Flag.CALCULATED,), remove=(Flag.PROCESSING,))
    store.clear_flag_everywhere(Flag.COMPARING)


def _seed(store: TableStore, sb: StepBuilder, cells: Iterable[Cell], value: Any, line: int, text: str) -> Step:
    cells = list(cells)
    for cell in cells:
        store.set_value(cell, value)
        store.set_flags(cell, Flag.CALCULATED)
    return sb.build("base", refs=cells, line=line, cost=0, explanation=text)


def _fill(store: TableStore, sb: StepBuilder, cell: Cell, value: Any, deps: Sequence[Cell],
          line: int, text: str, final: bool = False, overlay: Optional[Dict[str, Any]] = None) -> Step:
    _settle(store)
    store.set_value(cell, value)
    store.set_flags(cell, Flag.CALCULATED if final else Flag.PROCESSING)
    if not final:
        for dep in deps:
            store.set_flags(dep, Flag.COMPARING)
    sb.count("cells")
    return sb.build("fill", refs=(cell,) + tuple(deps), line=line, explanation=text,
                    is_final=final, overlay=overlay)


def _trace(store: TableStore, sb: StepBuilder, cell: Cell, line: int, text: str, final: bool = False) -> Step:
    _settle(store)
    store.set_flags(cell, Flag.PATH)
    return sb.build("backtrack", refs=(cell,), line=line, cost=0, explanation=text, is_final=final)


# ---------------------------------------------------------------------------
# Fibonacci
# ---------------------------------------------------------------------------
def fibonacci_layout(params: Dict[str, Any]) -> Dict[str, Any]:
    n = _int(params, "n", 0, FIBONACCI_MAX)
    return {"rows": 1, "cols": n + 1, "row_labels": ["dp"], "col_labels": list(range(n + 1))}


def fibonacci(store: TableStore, n: int = 10) -> DPGen:
    sb = StepBuilder("cells")
    n = int(n)
    base = [(0, 0)] if n == 0 else [(0, 0), (0, 1)]
    store.set_value((0, 0), 0)
    store.set_flags((0, 0), Flag.CALCULATED)
    if n >= 1:
        store.set_value((0, 1), 1)
        store.set_flags((0, 1), Flag.CALCULATED)
    yield sb.build("base", refs=base, line=1, cost=0, is_final=n < 2,
                   explanation="Base cases: dp[0] = 0, dp[1] = 1." if n else "Base case: dp[0] = 0.")

    for i in range(2, n + 1):
        a, b = store.value((0, i - 1)), store.value((0, i - 2))
        yield _fill(store, sb, (0, i), a + b, deps=[(0, i - 1), (0, i - 2)], line=3,
                    final=i == n, text=f"dp[{i}] = dp[{i - 1}] + dp[{i - 2}] = {a} + {b} = {a + b}.")

    result = store.value((0, n))
    return sb.outcome(result=result, summary=f"fib({n}) = {result}.")


# ---------------------------------------------------------------------------
# 0/1 knapsack
# ---------------------------------------------------------------------------
def knapsack_layout(params: Dict[str, Any]) -> Dict[str, Any]:
    weights = _int_list(params, "weights", 1)
    values  = _int_list(params, "values", 0)
    capacity = _int(params, "capacity", 0, 1000)
    if not weights or len(weights) != len(values):
        raise UserInputError("Give one weight and one value per item")
    return {
        "rows": len(weights) + 1,
        "cols": capacity + 1,
        "row_labels": ["-"] + [f"#{i + 1} (w{w}, v{v})" for i, (w, v) in enumerate(zip(weights, values))],
        "col_labels": list(range(capacity + 1)),
    }


def knapsack(store: TableStore, weights: Sequence[int] = (), values: Sequence[int] = (),
             capacity: int = 0) -> DPGen:
    sb = StepBuilder("cells")
    weights = [int(w) for w in weights]
    values  = [int(v) for v in values]
    n, cap = len(weights), int(capacity)

    base = [(0, w) for w in range(cap + 1)] + [(i, 0) for i in range(1, n + 1)]
    yield _seed(store, sb, base, 0, line=1, text="No items or no capacity: value 0.")

    for i in range(1, n + 1):
        wt, val = weights[i - 1], values[i - 1]
        for w in range(1, cap + 1):
            skip = store.value((i - 1, w))
            if wt <= w:
                take = val + store.value((i - 1, w - wt))
                best = max(skip, take)
                yield _fill(store, sb, (i, w), best, deps=[(i - 1, w), (i - 1, w - wt)], line=5,
                            text=f"Item {i} fits: max(skip {skip}, take {val} + {take - val}) = {best}.")
            else:
                yield _fill(store, sb, (i, w), skip, deps=[(i - 1, w)], line=6,
                            text=f"Item {i} (weight {wt}) does not fit in {w}: carry {skip}.")

    # backtrack the chosen items
    chosen: List[int] = []
    w = cap
    for i in range(n, 0, -1):
        if store.value((i, w)) != store.value((i - 1, w)):
            chosen.append(i - 1)
            yield _trace(store, sb, (i, w), line=7, text=f"dp[{i}][{w}] differs from the row above: item {i} is taken.")
            w -= weights[i - 1]
        else:
            yield _trace(store, sb, (i, w), line=7, text=f"dp[{i}][{w}] equals the row above: item {i} is skipped.")
    chosen.reverse()
    best = store.value((n, cap))
    yield _trace(store, sb, (0, w), line=7, final=True,
                 text=f"Best value {best} using items {[c + 1 for c in chosen]}.")
    return sb.outcome(result={"value": best, "items": chosen},
                      summary=f"Best value {best} with items {[c + 1 for c in chosen]}.")


# ---------------------------------------------------------------------------
# Longest common subsequence
# ---------------------------------------------------------------------------
def lcs_layout(params: Dict[str, Any]) -> Dict[str, Any]:
    a, b = str(params.get("a", "")), str(params.get("b", ""))
    if not a or not b:
        raise UserInputError("Enter two non-empty strings")
    return {
        "rows": len(a) + 1,
        "cols": len(b) + 1,
        "row_labels": ["∅"] + list(a),
        "col_labels": ["∅"] + list(b),
    }


def lcs(store: TableStore, a: str = "", b: str = "") -> DPGen:
    sb = StepBuilder("cells")
    m, n = len(a), len(b)

    base = [(0, j) for j in range(n + 1)] + [(i, 0) for i in range(1, m + 1)]
    yield _seed(store, sb, base, 0, line=1, text="Empty prefix: LCS length 0.")

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if a[i - 1] == b[j - 1]:
                v = store.value((i - 1, j - 1)) + 1
                yield _fill(store, sb, (i, j), v, deps=[(i - 1, j - 1)], line=4,
                            text=f"'{a[i - 1]}' == '{b[j - 1]}': diagonal + 1 = {v}.")
            else:
                up, left = store.value((i - 1, j)), store.value((i, j - 1))
                v = max(up, left)
                yield _fill(store, sb, (i, j), v, deps=[(i - 1, j), (i, j - 1)], line=5,
                            text=f"'{a[i - 1]}' != '{b[j - 1]}': max(up {up}, left {left}) = {v}.")

    chars: List[str] = []
    i, j = m, n
    while i > 0 and j > 0:
        if a[i - 1] == b[j - 1]:
            chars.append(a[i - 1])
            yield _trace(store, sb, (i, j), line=6, text=f"Match '{a[i - 1]}': take it and move diagonally.")
            i, j = i - 1, j - 1
        elif store.value((i - 1, j)) >= store.value((i, j - 1)):
            yield _trace(store, sb, (i, j), line=6, text="No match: move up.")
            i -= 1
        else:
            yield _trace(store, sb, (i, j), line=6, text="No match: move left.")
            j -= 1
    result = "".join(reversed(chars))
    yield _trace(store, sb, (i, j), line=6, final=True,
                 text=f"Reached the border. LCS = '{result}' (length {len(result)}).")
    return sb.outcome(result=result, summary=f"LCS of '{a}' and '{b}' is '{result}'.")


# ---------------------------------------------------------------------------
# Matrix-chain multiplication order
# ---------------------------------------------------------------------------
def matrix_chain_layout(params: Dict[str, Any]) -> Dict[str, Any]:
    dims = _int_list(params, "dims", 1)
    if len(dims) < 2:
        raise UserInputError("Give at least two dimensions (one matrix)")
    n = len(dims) - 1
    labels = [f"A{i + 1}" for i in range(n)]
    return {"rows": n, "cols": n, "row_labels": labels, "col_labels": labels}


def matrix_chain(store: TableStore, dims: Sequence[int] = ()) -> DPGen:
    sb = StepBuilder("cells")
    dims = [int(d) for d in dims]
    n = len(dims) - 1
    split: Dict[Cell, int] = {}

    yield _seed(store, sb, [(i, i) for i in range(n)], 0, line=1,
                text="A single matrix needs no multiplications.")

    for length in range(2, n + 1):
        for i in range(n - length + 1):
            j = i + length - 1
            best, best_k = None, i
            for k in range(i, j):
                cost = store.value((i, k)) + store.value((k + 1, j)) + dims[i] * dims[k + 1] * dims[j + 1]
                if best is None or cost < best:
                    best, best_k = cost, k
            split[(i, j)] = best_k
            deps = [(i, best_k), (best_k + 1, j)]
            yield _fill(store, sb, (i, j), best, deps=deps, line=6, overlay={"split": best_k},
                        text=f"A{i + 1}..A{j + 1}: best split after A{best_k + 1}, cost {best}.")

    order = _parenthesize(split, 0, n - 1)
    for cell in _split_cells(split, 0, n - 1):
        store.set_flags(cell, Flag.PATH)
    _settle(store)
    total = store.value((0, n - 1))
    yield sb.build("done", refs=[(0, n - 1)], line=7, cost=0, is_final=True,
                   explanation=f"Minimum cost {total} with order {order}.")
    return sb.outcome(result={"cost": total, "order": order},
                      summary=f"Optimal order {order} costs {total} scalar multiplications.")


def _parenthesize(split: Dict[Cell, int], i: int, j: int) -> str:
    if i == j:
        return f"A{i + 1}"
    k = split[(i, j)]
    return f"({_parenthesize(split, i, k)}{_parenthesize(split, k + 1, j)})"


def _split_cells(split: Dict[Cell, int], i: int, j: int) -> List[Cell]:
    if i == j:
        return []
    k = split[(i, j)]
    return [(i, j)] + _split_cells(split, i, k) + _split_cells(split, k + 1, j)
