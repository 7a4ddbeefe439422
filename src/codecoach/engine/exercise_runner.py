"""Drives exercise selection, attempts and completion recording."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from codecoach.catalog.registry import ExerciseCatalog
from codecoach.engine.catalog_loader import Exercise
from codecoach.engine.languages import ROSTER_SIZE, Difficulty, ExerciseRef, Language
from codecoach.engine.session import PracticeSession, SessionState, SubmitResult
from codecoach.state.ledger import ProgressLedger

logger = logging.getLogger(__name__)


class NoSessionError(ValueError):
    """An operation needed an open exercise and none was open."""

    def __init__(self) -> None:
        super().__init__("No exercise open")


@dataclass
class OpenResult:
    available: bool
    ref: Optional[ExerciseRef] = None
    exercise: Optional[Exercise] = None
    is_completed: bool = False


class ExerciseRunner:
    """Owns the active session and writes the ledger when an attempt succeeds."""

    def __init__(
        self,
        catalog: ExerciseCatalog,
        ledger: ProgressLedger,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.catalog = catalog
        self.ledger = ledger
        self._clock = clock
        self.session: Optional[PracticeSession] = None
        self.exercise: Optional[Exercise] = None

    def open(self, language: Language, difficulty: Difficulty, index: int) -> OpenResult:
        """Navigate to an exercise; an uncovered slot leaves no session running."""
        exercise = self.catalog.lookup(language, difficulty, index)
        if exercise is None:
            logger.info("Exercise %s/%s/%d is not available", language.value, difficulty.value, index + 1)
            self.session = None
            self.exercise = None
            return OpenResult(available=False)

        ref = ExerciseRef(language, difficulty, index)
        if self.session is None:
            self.session = PracticeSession(ref, clock=self._clock)
        else:
            self.session.reset(ref)
        self.exercise = exercise

        return OpenResult(
            available=True,
            ref=ref,
            exercise=exercise,
            is_completed=self.ledger.is_completed(language, difficulty, index),
        )

    def advance(self) -> Optional[OpenResult]:
        """Open the following exercise; None at the end of the roster."""
        ref = self._require_session().exercise_ref
        if ref.index >= ROSTER_SIZE - 1:
            return None
        return self.open(ref.language, ref.difficulty, ref.index + 1)

    def go_back(self) -> Optional[OpenResult]:
        """Open the preceding exercise; None at the start of the roster."""
        ref = self._require_session().exercise_ref
        if ref.index <= 0:
            return None
        return self.open(ref.language, ref.difficulty, ref.index - 1)

    def on_edit(self, is_deletion: bool = False) -> None:
        self._require_session().on_edit(is_deletion)

    def on_tick(self) -> None:
        self._require_session().on_tick()

    def submit(self, source: str) -> SubmitResult:
        session = self._require_session()
        expected = self.exercise.expected_output if self.exercise else ""
        result = session.submit(source, expected_output=expected)

        if result.succeeded and not session.completion_recorded:
            ref = session.exercise_ref
            if not self.ledger.is_completed(ref.language, ref.difficulty, ref.index):
                self.ledger.record_completion(ref.language, ref.difficulty, ref.index)
            session.completion_recorded = True

        return result

    @property
    def state(self) -> Optional[SessionState]:
        return self.session.state if self.session else None

    def _require_session(self) -> PracticeSession:
        if self.session is None:
            raise NoSessionError()
        return self.session
