"""
matrix.py — Matrix Operations
==============================
In-place transpose, 90° clockwise rotation and self-multiplication over
a TableStore loaded with {"values": [[…], …]}.

    transpose : swap (i, j) with (j, i) above the diagonal, one Step each
    rotate    : transpose, then reverse every row
    multiply  : C = M · M, one Step per result cell (n multiplications)

All three need a square matrix.
"""

from typing import Any, Dict, Generator, List

from algorithms.step import Outcome, Step, StepBuilder
from errors import UserInputError
from store import Flag, TableStore

MatrixGen = Generator[Step, None, Outcome]


TRANSPOSE_PSEUDOCODE: List[str] = [
    "def transpose(m):",                            # 0
    "    for i in range(n):",                       # 1
    "        for j in range(i + 1, n):",            # 2
    "            swap(m[i][j], m[j][i])",           # 3
]

ROTATE_PSEUDOCODE: List[str] = [
    "def rotate(m):",                               # 0
    "    transpose(m)",                             # 1
    "    for row in m:",                            # 2
    "        row.reverse()",                        # 3
]

MULTIPLY_PSEUDOCODE: List[str] = [
    "def multiply(m):",                             # 0
    "    for i in range(n):",                       # 1
    "        for j in range(n):",                   # 2
    "            c[i][j] ← Σ m[i][k] * m[k][j]",    # 3
]


def check_square(store: TableStore, params: Dict[str, Any]) -> None:
    if store.rows != store.cols:
        raise UserInputError("This operation needs a square matrix")
    if any(not isinstance(v, (int, float)) for v in store.values()):
        raise UserInputError("Matrix entries must be numbers")


def _swap(store: TableStore, sb: StepBuilder, a, b, line: int, text: str) -> Step:
    store.clear_flag_everywhere(Flag.COMPARING)
    store.swap(a, b)
    store.set_flags(a, Flag.COMPARING)
    store.set_flags(b, Flag.COMPARING)
    sb.count("swaps")
    return sb.build("swap", refs=(a, b), line=line, explanation=text)


def _transpose_steps(store: TableStore, sb: StepBuilder) -> Generator[Step, None, None]:
    n = store.rows
    for i in range(n):
        for j in range(i + 1, n):
            yield _swap(store, sb, (i, j), (j, i), line=3,
                        text=f"Swap m[{i}][{j}] and m[{j}][{i}] across the diagonal.")


def _finish(store: TableStore, sb: StepBuilder, line: int, text: str) -> Step:
    store.clear_flag_everywhere(Flag.COMPARING)
    for ref in store.refs():
        store.set_flags(ref, Flag.CALCULATED)
    return sb.build("done", line=line, cost=0, is_final=True, explanation=text)


def transpose(store: TableStore) -> MatrixGen:
    sb = StepBuilder("swaps")
    yield from _transpose_steps(store, sb)
    yield _finish(store, sb, line=3, text="Matrix transposed.")
    return sb.outcome(result=store.matrix(), summary="Matrix transposed.")


def rotate(store: TableStore) -> MatrixGen:
    sb = StepBuilder("swaps")
    yield from _transpose_steps(store, sb)
    n = store.rows
    for i in range(n):
        for j in range(n // 2):
            yield _swap(store, sb, (i, j), (i, n - 1 - j), line=3,
                        text=f"Reverse row {i}: swap columns {j} and {n - 1 - j}.")
    yield _finish(store, sb, line=3, text="Matrix rotated 90° clockwise.")
    return sb.outcome(result=store.matrix(), summary="Matrix rotated 90° clockwise.")


def multiply(store: TableStore) -> MatrixGen:
    sb = StepBuilder("multiplications")
    m = store.matrix()
    n = store.rows
    for i in range(n):
        for j in range(n):
            store.clear_flag_everywhere(Flag.PROCESSING)
            value = sum(m[i][k] * m[k][j] for k in range(n))
            store.set_value((i, j), value)
            store.set_flags((i, j), Flag.PROCESSING)
            sb.count("multiplications", n)
            terms = " + ".join(f"{m[i][k]}·{m[k][j]}" for k in range(n))
            yield sb.build("product", refs=((i, j),), line=3, overlay={"source": m},
                           explanation=f"c[{i}][{j}] = {terms} = {value}.")
    store.clear_flag_everywhere(Flag.PROCESSING)
    yield _finish(store, sb, line=3, text="Matrix squared.")
    return sb.outcome(result=store.matrix(), summary="Matrix multiplied by itself.")
