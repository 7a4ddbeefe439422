"""Exercise attempt state machine: idle → timing → evaluating → succeeded."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from codecoach.engine.analyzer import Diagnostic, analyze, has_errors
from codecoach.engine.languages import ExerciseRef
from codecoach.engine.scoring import Telemetry, format_elapsed, score

logger = logging.getLogger(__name__)

FAILURE_OUTPUT = "Compilation/Runtime errors detected. Please fix them before running."
DEFAULT_SUCCESS_OUTPUT = "Program executed successfully!"


class SessionState(str, Enum):
    IDLE = "idle"  # nothing typed yet, clock not running
    TIMING = "timing"  # learner is editing, clock running
    EVALUATING = "evaluating"  # analyzer running
    SUCCEEDED = "succeeded"  # accepted, telemetry frozen


@dataclass
class SubmitResult:
    diagnostics: list[Diagnostic] = field(default_factory=list)
    succeeded: bool = False
    score: Optional[int] = None
    output: str = ""


class PracticeSession:
    """One attempt at one exercise.

    ``clock`` returns seconds; it is injectable so tests can drive time.
    """

    def __init__(self, exercise_ref: ExerciseRef, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.reset(exercise_ref)

    def reset(self, exercise_ref: ExerciseRef) -> None:
        """Start over on ``exercise_ref`` regardless of the current state."""
        self.exercise_ref = exercise_ref
        self.state = SessionState.IDLE
        self.telemetry = Telemetry()
        self.diagnostics: list[Diagnostic] = []
        self.last_result: Optional[SubmitResult] = None
        self.completion_recorded = False
        self._started_at: Optional[float] = None

    @property
    def elapsed_display(self) -> str:
        return format_elapsed(self.telemetry.elapsed_seconds)

    def on_edit(self, is_deletion: bool = False) -> None:
        if is_deletion:
            self.telemetry.correction_count += 1
        if self.state is SessionState.IDLE:
            self.state = SessionState.TIMING
            self._started_at = self._clock()

    def on_tick(self) -> None:
        if self.state is SessionState.TIMING:
            self._sample_clock()

    def _sample_clock(self) -> None:
        if self._started_at is not None:
            self.telemetry.elapsed_seconds = max(0, math.floor(self._clock() - self._started_at))

    def submit(self, source: str, expected_output: str = "") -> SubmitResult:
        """Evaluate ``source``; a non-empty diagnostic list is a normal outcome."""
        if self.state is SessionState.SUCCEEDED and self.last_result is not None:
            return self.last_result

        previous = self.state
        self.state = SessionState.EVALUATING
        diagnostics = analyze(source, self.exercise_ref.language)
        self.diagnostics = diagnostics

        if has_errors(diagnostics):
            self.state = previous
            result = SubmitResult(diagnostics=diagnostics, succeeded=False, output=FAILURE_OUTPUT)
            logger.debug("%s: %d diagnostics", self.exercise_ref, len(diagnostics))
        else:
            # final sample, then the clock stops for good
            self._sample_clock()
            self.state = SessionState.SUCCEEDED
            result = SubmitResult(
                diagnostics=[],
                succeeded=True,
                score=score(self.telemetry),
                output=expected_output or DEFAULT_SUCCESS_OUTPUT,
            )
            logger.debug("%s: accepted with score %d", self.exercise_ref, result.score)

        self.last_result = result
        return result

