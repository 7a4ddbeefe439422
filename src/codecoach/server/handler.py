"""Server handler: dispatches JSON-lines requests to engine components."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from codecoach.catalog.registry import ExerciseCatalog
from codecoach.config.settings import Settings
from codecoach.engine.analyzer import Diagnostic
from codecoach.engine.exercise_runner import ExerciseRunner, OpenResult
from codecoach.engine.languages import ROSTER_SIZE, Difficulty, Language, language_class
from codecoach.engine.session import PracticeSession, SubmitResult
from codecoach.state.ledger import ProgressLedger

from .protocol import Notification

logger = logging.getLogger(__name__)


def _diagnostic_to_dict(d: Diagnostic) -> dict:
    return {"line": d.line, "message": d.message, "kind": d.kind.value}


def _session_to_dict(session: PracticeSession) -> dict:
    ref = session.exercise_ref
    return {
        "language": ref.language.value,
        "difficulty": ref.difficulty.value,
        "index": ref.index,
        "state": session.state.value,
        "elapsedSeconds": session.telemetry.elapsed_seconds,
        "elapsed": session.elapsed_display,
        "correctionCount": session.telemetry.correction_count,
        "diagnostics": [_diagnostic_to_dict(d) for d in session.diagnostics],
    }


def _open_to_dict(opened: OpenResult, session: Optional[PracticeSession]) -> dict:
    if not opened.available or opened.exercise is None or session is None:
        return {"available": False}
    exercise = opened.exercise
    return {
        "available": True,
        "exercise": {
            "title": exercise.title,
            "description": exercise.description,
            "expectedOutput": exercise.expected_output,
            "testCases": [{"input": t.input, "output": t.output} for t in exercise.test_cases],
        },
        "position": f"{session.exercise_ref.index + 1}/{ROSTER_SIZE}",
        "isCompleted": opened.is_completed,
        "session": _session_to_dict(session),
    }


def _text_param(params: dict, name: str, default: Optional[str] = None) -> str:
    value = params.get(name, default)
    if value is None:
        raise ValueError(f"Missing parameter: {name}")
    if not isinstance(value, str):
        raise ValueError(f"Parameter {name} must be a string")
    return value


def _result_to_dict(result: SubmitResult) -> dict:
    d = {
        "succeeded": result.succeeded,
        "diagnostics": [_diagnostic_to_dict(item) for item in result.diagnostics],
        "output": result.output,
    }
    if result.succeeded:
        d["score"] = result.score
    return d


class ServerHandler:
    """Routes incoming requests to engine methods and returns result dicts."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        write_notification: Optional[Callable[[Notification], None]] = None,
        catalog: Optional[ExerciseCatalog] = None,
        ledger: Optional[ProgressLedger] = None,
    ):
        self.settings = settings or Settings.load()
        self._write_notification = write_notification or (lambda n: None)

        self.catalog = catalog or ExerciseCatalog(self.settings.catalog_dir)
        self.ledger = ledger or ProgressLedger.load(self.settings.progress_db)
        self.runner = ExerciseRunner(self.catalog, self.ledger)

    async def dispatch(self, msg: dict) -> dict:
        """Route a request message to the appropriate handler method."""
        method = msg.get("method", "")
        params = msg.get("params", {})

        handler_map = {
            "listLanguages": self._list_languages,
            "getLanguageProgress": self._get_language_progress,
            "openExercise": self._open_exercise,
            "nextExercise": self._next_exercise,
            "previousExercise": self._previous_exercise,
            "edit": self._edit,
            "tick": self._tick,
            "submit": self._submit,
            "getSession": self._get_session,
            "checkCertificate": self._check_certificate,
        }

        handler = handler_map.get(method)
        if handler is None:
            raise ValueError(f"Unknown method: {method}")

        return await handler(params)

    def _session(self) -> PracticeSession:
        if self.runner.session is None:
            raise ValueError("No exercise open")
        return self.runner.session

    async def _list_languages(self, params: dict) -> dict:
        authored = set(self.catalog.languages())
        return {
            "languages": [
                {
                    "name": lang.value,
                    "class": language_class(lang).value,
                    "available": lang in authored,
                    "percentage": self.ledger.percentage(lang),
                    "complete": self.ledger.is_language_complete(lang),
                }
                for lang in Language
            ]
        }

    async def _get_language_progress(self, params: dict) -> dict:
        language = Language.parse(_text_param(params, "language"))
        return {
            "language": language.value,
            "percentage": self.ledger.percentage(language),
            "complete": self.ledger.is_language_complete(language),
            "difficulties": [
                {
                    "difficulty": d.value,
                    "percentage": self.ledger.percentage_for_difficulty(language, d),
                    "completed": self.ledger.completed_count(language, d),
                    "total": ROSTER_SIZE,
                    "authored": self.catalog.count(language, d),
                }
                for d in Difficulty
            ],
        }

    async def _open_exercise(self, params: dict) -> dict:
        language = Language.parse(_text_param(params, "language"))
        difficulty = Difficulty.parse(_text_param(params, "difficulty"))
        index = int(params.get("index", 0))
        opened = self.runner.open(language, difficulty, index)
        return _open_to_dict(opened, self.runner.session)

    async def _next_exercise(self, params: dict) -> dict:
        opened = self.runner.advance()
        if opened is None:
            return {"atEnd": True}
        return {"atEnd": False, **_open_to_dict(opened, self.runner.session)}

    async def _previous_exercise(self, params: dict) -> dict:
        opened = self.runner.go_back()
        if opened is None:
            return {"atStart": True}
        return {"atStart": False, **_open_to_dict(opened, self.runner.session)}

    async def _edit(self, params: dict) -> dict:
        self.runner.on_edit(is_deletion=bool(params.get("isDeletion", False)))
        return _session_to_dict(self._session())

    async def _tick(self, params: dict) -> dict:
        self.runner.on_tick()
        return _session_to_dict(self._session())

    async def _submit(self, params: dict) -> dict:
        session = self._session()
        code = _text_param(params, "code", "")
        if not code.strip():
            raise ValueError("Nothing to submit")

        ref = session.exercise_ref
        was_complete = self.ledger.is_language_complete(ref.language)
        already_recorded = session.completion_recorded
        result = self.runner.submit(code)

        if result.succeeded and not already_recorded:
            self._write_notification(Notification(
                "exerciseCompleted",
                {"language": ref.language.value, "difficulty": ref.difficulty.value,
                 "index": ref.index, "score": result.score},
            ))
            if not was_complete and self.ledger.is_language_complete(ref.language):
                self._write_notification(Notification(
                    "languageCompleted", {"language": ref.language.value},
                ))

        return {**_result_to_dict(result), "session": _session_to_dict(session)}

    async def _get_session(self, params: dict) -> dict:
        return _session_to_dict(self._session())

    async def _check_certificate(self, params: dict) -> dict:
        language = Language.parse(_text_param(params, "language"))
        return {
            "language": language.value,
            "eligible": self.ledger.is_language_complete(language),
        }
