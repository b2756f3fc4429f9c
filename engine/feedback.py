"""
feedback.py — Step Feedback Hooks
==================================
The audio cue collaborator of the browser UI, reduced to its seam: the
Runner calls on_step() after every visible step and on_success() when a
run completes.  Whatever a Feedback raises is logged by the Runner and
never reaches the run.
"""

import logging

from algorithms.step import Outcome, Step

logger = logging.getLogger(__name__)


class Feedback:
    """No-op base; subclass and override what you need."""

    def on_step(self, step: Step) -> None:
        pass

    def on_success(self, outcome: Outcome) -> None:
        pass


class LoggingFeedback(Feedback):
    """Writes a "click" per visible step and a "success" per run to the log."""

    def __init__(self, level: int = logging.DEBUG):
        self.level = level
        self.clicks = 0

    def on_step(self, step: Step) -> None:
        self.clicks += 1
        logger.log(self.level, "click #%d: %s", step.step_number, step.action)

    def on_success(self, outcome: Outcome) -> None:
        logger.log(self.level, "success: %s", outcome.summary or "run complete")
