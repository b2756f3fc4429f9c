"""
engine/
-------
Execution layer: the Runner, its clock and pause gate, batch comparison.

    from engine import Runner, RunnerConfig, compare_algorithms
"""

from engine.config   import RunnerConfig, SPEED_PRESETS, COMPARISON_SIZES
from engine.stats    import Stats
from engine.gate     import Clock, InstantClock, PauseGate
from engine.feedback import Feedback, LoggingFeedback
from engine.runner   import Runner, RunState, RunStatus
from engine.timer    import ChallengeTimer, check_duration
from engine.host     import RunnerHost
from engine.recorder import RunMetrics, ComparisonResult, run_batch, compare_algorithms

__all__ = [
    "RunnerConfig",
    "SPEED_PRESETS",
    "COMPARISON_SIZES",
    "Stats",
    "Clock",
    "InstantClock",
    "PauseGate",
    "Feedback",
    "LoggingFeedback",
    "Runner",
    "RunState",
    "RunStatus",
    "ChallengeTimer",
    "check_duration",
    "RunnerHost",
    "RunMetrics",
    "ComparisonResult",
    "run_batch",
    "compare_algorithms",
]
