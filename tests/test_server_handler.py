"""Tests for the ServerHandler dispatch layer."""

from __future__ import annotations

import sqlite3

import pytest

from codecoach.config.settings import Settings
from codecoach.engine.languages import ROSTER_SIZE, Difficulty, Language
from codecoach.server.__main__ import handle_line
from codecoach.server.handler import ServerHandler
from codecoach.server.protocol import Notification


@pytest.fixture
def handler(tmp_path, catalog, ledger, clock):
    """Create a ServerHandler backed by the sample catalog and a tmp ledger."""
    settings = Settings(data_dir=tmp_path / "data")
    notifications: list[Notification] = []

    h = ServerHandler(
        settings=settings,
        write_notification=lambda n: notifications.append(n),
        catalog=catalog,
        ledger=ledger,
    )
    h.runner._clock = clock
    h._notifications = notifications
    return h


async def _open(handler, index=0, language="Python", difficulty="easy"):
    return await handler.dispatch({
        "method": "openExercise",
        "params": {"language": language, "difficulty": difficulty, "index": index},
    })


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_method(self, handler):
        with pytest.raises(ValueError, match="Unknown method"):
            await handler.dispatch({"method": "compile", "params": {}})

    @pytest.mark.asyncio
    async def test_session_methods_need_exercise(self, handler):
        for method in ("edit", "tick", "submit", "getSession", "nextExercise", "previousExercise"):
            with pytest.raises(ValueError, match="No exercise open"):
                await handler.dispatch({"method": method, "params": {"code": "x"}})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method, params", [
        ("getLanguageProgress", {"language": 5}),
        ("checkCertificate", {}),
        ("openExercise", {"language": "Python", "difficulty": ["easy"]}),
        ("submit", {"code": 5}),
    ])
    async def test_bad_params_are_value_errors(self, handler, method, params):
        await _open(handler)
        with pytest.raises(ValueError, match="parameter|Parameter"):
            await handler.dispatch({"method": method, "params": params})
        # handler keeps working
        result = await handler.dispatch({"method": "getSession", "params": {}})
        assert result["state"] == "idle"


class TestLanguages:
    @pytest.mark.asyncio
    async def test_list_languages(self, handler):
        result = await handler.dispatch({"method": "listLanguages", "params": {}})
        by_name = {entry["name"]: entry for entry in result["languages"]}
        assert len(by_name) == len(Language)
        assert by_name["Python"]["available"] is True
        assert by_name["CSS"]["available"] is False
        assert by_name["MySQL"]["class"] == "query"
        assert by_name["Python"]["percentage"] == 0

    @pytest.mark.asyncio
    async def test_language_progress(self, handler):
        handler.ledger.record_completion(Language.PYTHON, Difficulty.EASY, 0)
        result = await handler.dispatch({"method": "getLanguageProgress", "params": {"language": "python"}})
        assert result["language"] == "Python"
        assert result["percentage"] == 1
        easy = result["difficulties"][0]
        assert easy == {
            "difficulty": "easy", "percentage": 5, "completed": 1,
            "total": ROSTER_SIZE, "authored": ROSTER_SIZE,
        }

    @pytest.mark.asyncio
    async def test_unknown_language(self, handler):
        with pytest.raises(ValueError, match="Unknown language"):
            await handler.dispatch({"method": "getLanguageProgress", "params": {"language": "Klingon"}})


class TestOpenExercise:
    @pytest.mark.asyncio
    async def test_open(self, handler):
        result = await _open(handler, index=4)
        assert result["available"] is True
        assert result["exercise"]["title"] == "Easy 5"
        assert result["exercise"]["testCases"] == [{"input": "", "output": "out 5"}]
        assert result["position"] == "5/20"
        assert result["session"]["state"] == "idle"

    @pytest.mark.asyncio
    async def test_unavailable(self, handler):
        result = await _open(handler, language="CSS")
        assert result == {"available": False}

    @pytest.mark.asyncio
    async def test_navigation(self, handler):
        await _open(handler, index=0)
        result = await handler.dispatch({"method": "previousExercise", "params": {}})
        assert result == {"atStart": True}
        result = await handler.dispatch({"method": "nextExercise", "params": {}})
        assert result["atEnd"] is False
        assert result["exercise"]["title"] == "Easy 2"


class TestAttempt:
    @pytest.mark.asyncio
    async def test_edit_and_tick(self, handler, clock):
        await _open(handler)
        await handler.dispatch({"method": "edit", "params": {}})
        result = await handler.dispatch({"method": "edit", "params": {"isDeletion": True}})
        assert result["state"] == "timing"
        assert result["correctionCount"] == 1

        clock.advance(65)
        result = await handler.dispatch({"method": "tick", "params": {}})
        assert result["elapsedSeconds"] == 65
        assert result["elapsed"] == "1:05"

    @pytest.mark.asyncio
    async def test_submit_with_errors(self, handler):
        await _open(handler)
        await handler.dispatch({"method": "edit", "params": {}})
        result = await handler.dispatch({"method": "submit", "params": {"code": "print 'hi'"}})
        assert result["succeeded"] is False
        assert "score" not in result
        assert result["diagnostics"] == [
            {"line": 1, "message": "Python 3 requires parentheses for print()", "kind": "SyntaxError"},
        ]
        assert result["session"]["state"] == "timing"
        assert handler._notifications == []

    @pytest.mark.asyncio
    async def test_submit_success(self, handler):
        await _open(handler, index=2)
        await handler.dispatch({"method": "edit", "params": {}})
        result = await handler.dispatch({"method": "submit", "params": {"code": "print('out 3')"}})
        assert result["succeeded"] is True
        assert result["score"] == 100
        assert result["output"] == "out 3"
        assert result["session"]["state"] == "succeeded"
        assert handler.ledger.is_completed(Language.PYTHON, Difficulty.EASY, 2)
        assert [n.method for n in handler._notifications] == ["exerciseCompleted"]

        await handler.dispatch({"method": "submit", "params": {"code": "print('out 3')"}})
        assert len(handler._notifications) == 1

    @pytest.mark.asyncio
    async def test_blank_submission_refused(self, handler):
        await _open(handler)
        with pytest.raises(ValueError, match="Nothing to submit"):
            await handler.dispatch({"method": "submit", "params": {"code": "   \n"}})

    @pytest.mark.asyncio
    async def test_language_completion_notification(self, handler):
        for difficulty in Difficulty:
            for index in range(ROSTER_SIZE):
                if (difficulty, index) != (Difficulty.EASY, 19):
                    handler.ledger.record_completion(Language.PYTHON, difficulty, index)

        result = await handler.dispatch({"method": "checkCertificate", "params": {"language": "Python"}})
        assert result["eligible"] is False

        await _open(handler, index=19)
        await handler.dispatch({"method": "submit", "params": {"code": "print(20)"}})
        assert [n.method for n in handler._notifications] == ["exerciseCompleted", "languageCompleted"]

        result = await handler.dispatch({"method": "checkCertificate", "params": {"language": "Python"}})
        assert result == {"language": "Python", "eligible": True}


class TestHandleLine:
    @pytest.mark.asyncio
    async def test_error_response_keeps_id(self, handler):
        await _open(handler)
        resp = await handle_line(handler, '{"id": 7, "method": "submit", "params": {"code": 5}}')
        assert resp.id == 7
        assert resp.error == "Parameter code must be a string"

    @pytest.mark.asyncio
    async def test_storage_failure_becomes_error_response(self, handler):
        await _open(handler)

        def unwritable():
            raise sqlite3.OperationalError("disk I/O error")

        handler.ledger._conn = unwritable
        resp = await handle_line(handler, '{"id": 3, "method": "submit", "params": {"code": "print(1)"}}')
        assert resp.id == 3
        assert resp.error == "disk I/O error"
        assert handler._notifications == []

    @pytest.mark.asyncio
    async def test_malformed_line(self, handler):
        resp = await handle_line(handler, "{not json")
        assert resp.id == 0
        assert "Invalid JSON" in resp.error
