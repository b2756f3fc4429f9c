"""
errors.py — Exception Taxonomy
===============================
Every error the visualizer raises on purpose derives from
VisualizerError, so the web layer can map the whole family with a
couple of error handlers:

    VisualizerError
    ├── UserInputError        – bad request from the caller (400)
    ├── InvalidTransition     – command not valid in the current RunState (409)
    │   └── AlreadyRunning    – start() while a run is active
    ├── StructureLocked       – structural edit while a run is active (409)
    └── RunCancelled          – internal signal raised at a checkpoint

"Not found" / "no path" are NOT errors: algorithms return an Outcome
with found=False for those.
"""


class VisualizerError(Exception):
    """Base class for every deliberate visualizer error."""


class UserInputError(VisualizerError):
    """Missing prerequisites, unknown algorithm, out-of-range speed, …"""


class InvalidTransition(VisualizerError):
    """A Runner command that the current RunState does not allow."""

    def __init__(self, command: str, status: str):
        super().__init__(f"Cannot {command} while {status}")
        self.command = command
        self.status  = status


class AlreadyRunning(InvalidTransition):
    def __init__(self, status: str = "running"):
        super().__init__("start", status)


class StructureLocked(VisualizerError):
    """Walls, endpoints, nodes and edges are frozen while a run is active."""


class RunCancelled(VisualizerError):
    """Raised by the PauseGate at the next checkpoint after cancel()."""


__all__ = [
    "VisualizerError",
    "UserInputError",
    "InvalidTransition",
    "AlreadyRunning",
    "StructureLocked",
    "RunCancelled",
]
