"""
arrays.py — Array Insert / Delete / Update
===========================================
Single-operation edits on an ArrayStore, each shown as ONE step that
marks the affected index before anything changes.

    insert : value goes in at `index` (0..n), later elements shift right
    delete : element at `index` (0..n-1) is removed
    update : element at `index` gets `value`

Omitted `index` / `value` are drawn from random.Random(seed), values in
[0, 100), as the array page's buttons do.

Insert and delete change the array's length.  The store's shape is
fixed while a run holds the lock, so they return the new values as the
Outcome result and the registry's `commit` hook swaps the container in
with reset() once the store is unlocked.  Update writes in place.
"""

import random
from typing import Any, Dict, Generator, List, Optional

from algorithms.step import Outcome, Step, StepBuilder
from errors import UserInputError
from store import ArrayStore, Flag, VisualStore

ArrayGen = Generator[Step, None, Outcome]

VALUE_HIGH = 100


INSERT_PSEUDOCODE: List[str] = [
    "def insert(a, index, value):",                 # 0
    "    a.splice(index, 0, value)",                # 1
]

DELETE_PSEUDOCODE: List[str] = [
    "def delete(a, index):",                        # 0
    "    a.splice(index, 1)",                       # 1
]

UPDATE_PSEUDOCODE: List[str] = [
    "def update(a, index, value):",                 # 0
    "    a[index] ← value",                         # 1
]


# ---------------------------------------------------------------------------
# Preconditions
# ---------------------------------------------------------------------------
def _check_index(store: ArrayStore, params: Dict[str, Any], upper: int) -> None:
    index = params.get("index")
    if index is None:
        return
    if isinstance(index, bool) or not isinstance(index, int):
        raise UserInputError("'index' must be an integer")
    if not 0 <= index <= upper:
        raise UserInputError(f"'index' must be between 0 and {upper}")


def _check_value(params: Dict[str, Any]) -> None:
    value = params.get("value")
    if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
        raise UserInputError("'value' must be a number")


def check_insert(store: ArrayStore, params: Dict[str, Any]) -> None:
    _check_index(store, params, len(store))
    _check_value(params)


def check_existing(store: ArrayStore, params: Dict[str, Any]) -> None:
    # an empty array short-circuits, so only a given index is checked
    if len(store):
        _check_index(store, params, len(store) - 1)
    _check_value(params)


def commit_values(store: VisualStore, outcome: Outcome) -> None:
    """Swap in the resized container carried by the Outcome."""
    if outcome.result is not None:
        store.reset(list(outcome.result))


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------
def array_insert(store: ArrayStore, index: Optional[int] = None, value: Any = None,
                 seed: Optional[int] = None) -> ArrayGen:
    sb = StepBuilder("writes")
    rng = random.Random(seed)
    n = len(store)
    index = rng.randint(0, n) if index is None else index
    value = rng.randrange(VALUE_HIGH) if value is None else value

    if index < n:
        store.set_flags(index, Flag.PROCESSING)
    sb.count("writes")
    yield sb.build("insert", refs=(index,), line=1, is_final=True,
                   overlay={"index": index, "value": value},
                   explanation=f"Insert {value} at index {index}; {n - index} element(s) shift right.")

    values = store.values()
    values.insert(index, value)
    return sb.outcome(result=values, summary=f"Inserted {value} at index {index}.")


def array_delete(store: ArrayStore, index: Optional[int] = None, seed: Optional[int] = None) -> ArrayGen:
    sb = StepBuilder("writes")
    rng = random.Random(seed)
    n = len(store)
    index = rng.randrange(n) if index is None else index
    removed = store.value(index)

    store.set_flags(index, Flag.PROCESSING)
    sb.count("writes")
    yield sb.build("delete", refs=(index,), line=1, is_final=True,
                   overlay={"index": index, "value": removed},
                   explanation=f"Delete {removed} at index {index}; {n - index - 1} element(s) shift left.")

    values = store.values()
    del values[index]
    return sb.outcome(result=values, summary=f"Deleted {removed} from index {index}.")


def array_update(store: ArrayStore, index: Optional[int] = None, value: Any = None,
                 seed: Optional[int] = None) -> ArrayGen:
    sb = StepBuilder("writes")
    rng = random.Random(seed)
    index = rng.randrange(len(store)) if index is None else index
    value = rng.randrange(VALUE_HIGH) if value is None else value
    old = store.value(index)

    store.set_flags(index, Flag.PROCESSING)
    sb.count("writes")
    yield sb.build("update", refs=(index,), line=1, is_final=True,
                   overlay={"index": index, "value": value},
                   explanation=f"Overwrite a[{index}] = {old} with {value}.")

    store.set_value(index, value)
    store.clear_flags(index, Flag.PROCESSING)
    return sb.outcome(result=store.values(), summary=f"a[{index}] changed from {old} to {value}.")
