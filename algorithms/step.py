"""
step.py — Algorithm Step Record
================================
Every algorithm is a generator that yields Step objects and, when it
runs out of work, returns an Outcome.

A Step describes ONE logical operation that has just been applied to
the store:

    • What kind of operation it was ("compare", "swap", "pop", "fill", …)
    • Which element refs it touched
    • Which line of pseudocode is executing right now
    • A plain-English explanation of *why* it happened (Learning Mode)
    • How many operations it adds to the run's counter
    • Whether the Runner should pace it with the inter-step delay

Design decisions:
  - Step is a plain frozen dataclass.  The store holds the data; a Step
    only describes the change, so it stays small even for big tables.
  - `visible=False` steps are suspension points that the Runner does not
    pace (minimax explores thousands of boards per move).
  - `metrics` is the running tally at this step (comparisons, swaps,
    relaxations, …), copied so later steps never alias it.
  - The generator's return value travels on StopIteration.value; the
    Runner picks it up as the run's Outcome.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class Step:
    """
    Attributes:
        step_number     : 0-based index of this step in the run.
        action          : Short verb for the operation ("compare", "swap", "pop", …).
        refs            : Element refs the operation touched.
        pseudocode_line : 0-based index of the pseudocode line executing now.
        explanation     : Human-readable "why" text for Learning Mode.
        cost            : Operations this step adds to Stats.operations.
        visible         : False → the Runner yields to the loop without pacing.
        overlay         : Free-form dict for algo-specific panel data:
                            • "queue" / "stack" – frontier contents
                            • "distances"       – current best g-scores
                            • "score"           – minimax candidate score
                            • "best_fitness"    – genetic search progress
        metrics         : Running tally: comparisons, swaps, relaxations, …
        is_final        : True on the very last step of a run.
    """

    step_number:     int                    = 0
    action:          str                    = ""
    refs:            Tuple[Hashable, ...]   = ()
    pseudocode_line: int                    = 0
    explanation:     str                    = ""
    cost:            int                    = 1
    visible:         bool                   = True
    overlay:         Dict[str, Any]         = field(default_factory=dict)
    metrics:         Dict[str, int]         = field(default_factory=dict)
    is_final:        bool                   = False

    def to_dict(self) -> dict:
        return {
            "step_number":     self.step_number,
            "action":          self.action,
            "refs":            [list(r) if isinstance(r, tuple) else r for r in self.refs],
            "pseudocode_line": self.pseudocode_line,
            "explanation":     self.explanation,
            "cost":            self.cost,
            "visible":         self.visible,
            "overlay":         _jsonable(self.overlay),
            "metrics":         dict(self.metrics),
            "is_final":        self.is_final,
        }


@dataclass(frozen=True)
class Outcome:
    """
    What a finished algorithm hands back to the Runner.

    "Not found" and "no path" are ordinary outcomes with found=False,
    never exceptions.
    """

    found:   bool            = True
    result:  Any             = None
    path:    List[Hashable]  = field(default_factory=list)
    cost:    Optional[float] = None
    summary: str             = ""
    metrics: Dict[str, int]  = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "found":   self.found,
            "result":  _jsonable(self.result),
            "path":    _jsonable(self.path),
            "cost":    self.cost,
            "summary": self.summary,
            "metrics": dict(self.metrics),
        }


# ---------------------------------------------------------------------------
# Convenience builder so algorithms don't have to spell out every kwarg
# ---------------------------------------------------------------------------
class StepBuilder:
    """
    Per-run scratch-pad: numbers the steps and keeps the running tallies.

    Usage inside an algorithm generator:
        sb = StepBuilder("comparisons", "swaps")
        sb.count("comparisons")
        yield sb.build("compare", refs=(j, j + 1), line=3,
                       explanation="Compare a[0] and a[1].")
        ...
        return sb.outcome(result=values)
    """

    def __init__(self, *counters: str):
        self.step_no: int            = 0
        self.metrics: Dict[str, int] = {name: 0 for name in counters}

    def count(self, name: str, n: int = 1) -> None:
        self.metrics[name] = self.metrics.get(name, 0) + n

    def build(
        self,
        action: str,
        refs: Iterable[Hashable] = (),
        line: int = 0,
        explanation: str = "",
        cost: int = 1,
        visible: bool = True,
        overlay: Optional[Dict[str, Any]] = None,
        is_final: bool = False,
    ) -> Step:
        step = Step(
            step_number=self.step_no,
            action=action,
            refs=tuple(refs),
            pseudocode_line=line,
            explanation=explanation,
            cost=cost,
            visible=visible,
            overlay=dict(overlay or {}),
            metrics=dict(self.metrics),
            is_final=is_final,
        )
        self.step_no += 1
        return step

    def outcome(self, found: bool = True, result: Any = None, path: Iterable[Hashable] = (),
                cost: Optional[float] = None, summary: str = "") -> Outcome:
        return Outcome(
            found=found,
            result=result,
            path=list(path),
            cost=cost,
            summary=summary,
            metrics=dict(self.metrics),
        )


def _jsonable(value: Any) -> Any:
    """Tuples (grid refs) become lists; containers are walked."""
    if isinstance(value, tuple):
        return [_jsonable(v) for v in value]
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(_jsonable(k)) if isinstance(k, tuple) else k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, float) and value == float("inf"):
        return None
    return value
