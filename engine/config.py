"""
config.py — Runner Configuration
=================================
Pacing and comparison constants shared by the Runner, the batch
comparison and the web layer.
"""

from dataclasses import dataclass
from typing import Dict, Tuple


# ---------------------------------------------------------------------------
# Speed presets (milliseconds between visible steps)
# ---------------------------------------------------------------------------
SPEED_PRESETS: Dict[str, int] = {
    "slow":   1000,   # teaching mode
    "medium": 500,
    "fast":   200,    # demo mode
    "turbo":  100,
}

# input sizes for the batch comparison page
COMPARISON_SIZES: Tuple[int, ...] = (10, 50, 100, 500, 1000)


@dataclass(frozen=True)
class RunnerConfig:
    """
    Attributes:
        speed_ms      : Initial delay after each visible step.
        poll_interval : Seconds between Pause Gate polls; also the slice
                        size of the pacing delay, so cancel is observed
                        within one interval.
        min_speed_ms  : Lowest delay set_speed() accepts.
        max_speed_ms  : Highest delay set_speed() accepts.
    """

    speed_ms:      int   = SPEED_PRESETS["medium"]
    poll_interval: float = 0.1
    min_speed_ms:  int   = 100
    max_speed_ms:  int   = 2000
