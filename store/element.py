"""
element.py — Store Element
==========================
The atomic unit of every Visualization State Store: one logical value
plus the set of display flags the renderer colours it by.

Design decisions:
  - Flags are a set, not a single state: an element can be `visited`
    AND `path` AND `start` at the same time.
  - `ref` is the stable identity the algorithm and the renderer share
    (int index, (row, col) tuple, or node-id string).  It is never
    reused inside one container.
  - `meta` mirrors the old Node pattern: algorithms stash g/h/f scores,
    genes, heights, … there without widening the class.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Hashable, Iterable, Optional


# ---------------------------------------------------------------------------
# Flag Enum — maps 1-to-1 with the visual encoding palette
# ---------------------------------------------------------------------------
class Flag(Enum):
    VISITED    = "visited"      # fully processed
    PROCESSING = "processing"   # the element being worked on RIGHT NOW
    COMPARING  = "comparing"    # one side of the current comparison
    SORTED     = "sorted"       # final resting position proven
    FOUND      = "found"        # search hit
    PATH       = "path"         # on the reconstructed path / backtrack
    WALL       = "wall"         # user-placed obstacle
    START      = "start"
    TARGET     = "target"
    CALCULATED = "calculated"   # DP cell filled in

    @classmethod
    def parse(cls, value) -> "Flag":
        """Accept a Flag or its string value ("visited")."""
        if isinstance(value, cls):
            return value
        return cls(value)


# flags a user places on the structure; they survive clear_run_flags()
STRUCTURAL_FLAGS: FrozenSet[Flag] = frozenset({Flag.WALL, Flag.START, Flag.TARGET})


# ---------------------------------------------------------------------------
# Element
# ---------------------------------------------------------------------------
class Element:
    """
    Attributes:
        ref    : Stable identity (index, (row, col), node id).
        value  : Logical payload: a number, or a symbol on game boards.
        flags  : Set of Flag members currently shown.
        meta   : Dict for algorithm-specific data (g/h/f, genes, height, …).
    """

    __slots__ = ("ref", "value", "flags", "meta")

    def __init__(self, ref: Hashable, value: Any = 0, flags: Optional[Iterable[Flag]] = None):
        self.ref:   Hashable        = ref
        self.value: Any             = value
        self.flags: set             = set(flags or ())
        self.meta:  Dict[str, Any]  = {}

    # ------------------------------------------------------------------
    # Flag helpers
    # ------------------------------------------------------------------
    def has(self, flag: Flag) -> bool:
        return flag in self.flags

    def reset_run_state(self) -> None:
        """Keep walls / start / target, drop run flags and metadata."""
        self.flags &= STRUCTURAL_FLAGS
        self.meta.clear()

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------
    def __repr__(self) -> str:
        flags = ",".join(sorted(f.value for f in self.flags))
        return f"Element(ref={self.ref!r}, value={self.value!r}, flags={{{flags}}})"


def _json_ref(ref: Hashable):
    """Tuples become lists in JSON; keep that conversion in one place."""
    return list(ref) if isinstance(ref, tuple) else ref
