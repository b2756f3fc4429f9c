"""
base.py — Generic Visualization State Store
============================================
Single source of truth for one run's data.  Algorithms and the renderer
both talk to this object, but in different ways:

  1. Algorithms MUTATE it through the mutation protocol
     (apply / set_flags / clear_flags / set_value / swap).
  2. The renderer only ever sees a Snapshot — an immutable copy taken
     between two steps, so it never observes a half-applied step.

Every data-structure family (array, grid, graph, tree, DP table, game
board, population) is a subclass that decides how a container is
loaded and which structural queries it answers.  The flag protocol,
snapshotting and locking live here, once.

Design decisions:
  - Elements stored in a plain dict keyed by ref, in container order,
    for O(1) lookup and deterministic iteration.
  - Unknown refs raise KeyError immediately: an out-of-range reference
    is a programming error, not a user error.
  - `found` implies `visited`, and `sorted` can't be cleared by a
    flag delta.  reset() is the only way to drop `sorted`.
  - The Runner lock()s the store for the duration of a run; structural
    edits (walls, endpoints, nodes, edges) check it and raise
    StructureLocked.
"""

import copy
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Hashable, Iterable, Iterator, List, Optional, Tuple

from errors import StructureLocked
from store.element import Element, Flag, _json_ref


# ---------------------------------------------------------------------------
# Snapshot types — what the presentation layer receives
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ElementView:
    ref:   Hashable
    value: Any
    flags: FrozenSet[Flag] = frozenset()
    meta:  Dict[str, Any]  = field(default_factory=dict)

    def has(self, flag: Flag) -> bool:
        return flag in self.flags

    def to_dict(self) -> dict:
        data = {
            "ref":   _json_ref(self.ref),
            "value": self.value,
            "flags": sorted(f.value for f in self.flags),
        }
        if self.meta:
            data["meta"] = self.meta
        return data


@dataclass(frozen=True)
class Snapshot:
    """
    Attributes:
        family    : Store family name ("array", "grid", "graph", …).
        elements  : ElementView per element, in container order.
        structure : Family-specific shape data (edges, links, labels, …).
    """

    family:    str
    elements:  Tuple[ElementView, ...] = ()
    structure: Dict[str, Any]          = field(default_factory=dict)

    def by_ref(self) -> Dict[Hashable, ElementView]:
        return {e.ref: e for e in self.elements}

    def values(self) -> List[Any]:
        return [e.value for e in self.elements]

    def refs_with(self, flag: Flag) -> List[Hashable]:
        return [e.ref for e in self.elements if flag in e.flags]

    def to_dict(self) -> dict:
        return {
            "family":    self.family,
            "elements":  [e.to_dict() for e in self.elements],
            "structure": self.structure,
        }


# ---------------------------------------------------------------------------
# VisualStore
# ---------------------------------------------------------------------------
class VisualStore:
    """
    Base class.  Subclasses implement `_load(container)` and, where they
    have one, `_structure()` for the snapshot.
    """

    family: str = "abstract"

    def __init__(self, container: Any = None):
        self._elements: Dict[Hashable, Element] = {}
        self._locked:   bool                    = False
        self._load(container)

    # ==================================================================
    # SUBCLASS HOOKS
    # ==================================================================
    def _load(self, container: Any) -> None:
        raise NotImplementedError

    def _structure(self) -> Dict[str, Any]:
        return {}

    def _add(self, ref: Hashable, value: Any = 0, flags: Iterable[Flag] = ()) -> Element:
        el = Element(ref, value, flags)
        self._elements[ref] = el
        return el

    # ==================================================================
    # READ ACCESS
    # ==================================================================
    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, ref: Hashable) -> bool:
        return ref in self._elements

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._elements)

    def element(self, ref: Hashable) -> Element:
        try:
            return self._elements[ref]
        except KeyError:
            raise KeyError(f"{self.family} store has no element {ref!r}") from None

    def refs(self) -> List[Hashable]:
        return list(self._elements)

    def value(self, ref: Hashable) -> Any:
        return self.element(ref).value

    def values(self) -> List[Any]:
        return [el.value for el in self._elements.values()]

    def flags(self, ref: Hashable) -> FrozenSet[Flag]:
        return frozenset(self.element(ref).flags)

    def has_flag(self, ref: Hashable, flag: Flag) -> bool:
        return flag in self.element(ref).flags

    def refs_with(self, flag: Flag) -> List[Hashable]:
        return [ref for ref, el in self._elements.items() if flag in el.flags]

    # ==================================================================
    # MUTATION PROTOCOL  (used by the active algorithm only)
    # ==================================================================
    def apply(self, ref: Hashable, add: Iterable[Flag] = (), remove: Iterable[Flag] = ()) -> None:
        """Merge a flag delta onto one element.  Unmentioned flags stay."""
        el = self.element(ref)
        add    = {Flag.parse(f) for f in add}
        remove = {Flag.parse(f) for f in remove}

        if Flag.SORTED in remove and Flag.SORTED in el.flags:
            raise ValueError(f"'sorted' is monotonic; cannot clear it on {ref!r}")
        if Flag.FOUND in add:
            add.add(Flag.VISITED)
        keeps_found = (Flag.FOUND in el.flags and Flag.FOUND not in remove) or Flag.FOUND in add
        if Flag.VISITED in remove and keeps_found:
            raise ValueError(f"'found' implies 'visited'; cannot clear 'visited' on {ref!r}")

        el.flags -= remove
        el.flags |= add

    def set_flags(self, ref: Hashable, *flags: Flag) -> None:
        self.apply(ref, add=flags)

    def clear_flags(self, ref: Hashable, *flags: Flag) -> None:
        self.apply(ref, remove=flags)

    def clear_flag_everywhere(self, flag: Flag) -> None:
        """Transient highlights (processing / comparing) are wiped in bulk."""
        for ref in self.refs_with(flag):
            self.apply(ref, remove=(flag,))

    def set_value(self, ref: Hashable, value: Any) -> None:
        self.element(ref).value = value

    def swap(self, a: Hashable, b: Hashable) -> None:
        ea, eb = self.element(a), self.element(b)
        ea.value, eb.value = eb.value, ea.value

    # ==================================================================
    # SNAPSHOT
    # ==================================================================
    def snapshot(self) -> Snapshot:
        return Snapshot(
            family=self.family,
            elements=tuple(
                ElementView(
                    ref=el.ref,
                    value=copy.copy(el.value),
                    flags=frozenset(el.flags),
                    meta=copy.deepcopy(el.meta),
                )
                for el in self._elements.values()
            ),
            structure=copy.deepcopy(self._structure()),
        )

    # ==================================================================
    # RESET & LOCKING
    # ==================================================================
    def reset(self, container: Any = None) -> None:
        """
        With a container: replace it wholesale (fresh refs, no flags).
        Without: keep values and user-placed structure (walls, start,
        target), clear every run flag.
        """
        self._check_unlocked("reset")
        if container is not None:
            self._elements = {}
            self._load(container)
        else:
            self.clear_run_flags()

    def clear_run_flags(self) -> None:
        for el in self._elements.values():
            el.reset_run_state()

    def lock(self) -> None:
        self._locked = True

    def unlock(self) -> None:
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def _check_unlocked(self, what: str) -> None:
        if self._locked:
            raise StructureLocked(f"Cannot {what} while a run is active")

    # ==================================================================
    # UTILITY
    # ==================================================================
    def memory_estimate(self) -> int:
        """Approximate bytes held by the container (sys.getsizeof walk)."""
        mem = sys.getsizeof(self._elements)
        for el in self._elements.values():
            mem += sys.getsizeof(el) + sys.getsizeof(el.value) + sys.getsizeof(el.flags)
        return mem

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={len(self)}, locked={self._locked})"


# ---------------------------------------------------------------------------
# Highlight — a transient flag that follows the algorithm's focus
# ---------------------------------------------------------------------------
class Highlight:
    """
    Remembers where it put its flag, so moving it touches only the old
    and new refs instead of scanning the whole store every step.

        hl = Highlight(store, Flag.COMPARING)
        hl.move(j, j + 1)
    """

    def __init__(self, store: VisualStore, flag: Flag):
        self.store: VisualStore     = store
        self.flag:  Flag            = flag
        self.refs:  List[Hashable]  = []

    def move(self, *refs: Hashable) -> None:
        for ref in self.refs:
            if ref in self.store:
                self.store.apply(ref, remove=(self.flag,))
        for ref in refs:
            self.store.apply(ref, add=(self.flag,))
        self.refs = list(refs)

    def clear(self) -> None:
        self.move()
