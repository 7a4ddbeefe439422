"""Persistent record of completed exercises.

The ledger is a table keyed by ``(language, difficulty)``; each entry is a
fixed list of ``ROSTER_SIZE`` booleans aligned with exercise indices. An entry
only exists once something in its bucket has been completed, so "absent" and
"all false" are different states.

On disk the whole table is one JSON record inside a small SQLite database:
``{"Python": {"easy": [true, false, ...]}}``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Optional

from codecoach.engine.languages import ROSTER_SIZE, Difficulty, Language
from codecoach.engine.scoring import round_half_up

logger = logging.getLogger(__name__)

RECORD_KEY = "progress"
LANGUAGE_TOTAL = ROSTER_SIZE * len(Difficulty)

BucketKey = tuple[Language, Difficulty]


class ProgressLedger:
    def __init__(self, db_path: Optional[Path] = None):
        # db_path=None keeps the ledger in memory only
        self.db_path = db_path
        self._entries: dict[BucketKey, list[bool]] = {}

    # --- lifecycle ---

    @classmethod
    def load(cls, db_path: Path) -> "ProgressLedger":
        """Open the store at ``db_path``; unreadable data yields an empty ledger."""
        ledger = cls(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            ledger._init_db()
            payload = ledger._read_payload()
        except sqlite3.DatabaseError as e:
            logger.warning("Progress store %s is unreadable (%s); starting empty", db_path, e)
            ledger._quarantine()
            ledger._init_db()
            return ledger

        if payload is None:
            return ledger
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning("Progress record in %s is not valid JSON (%s); starting empty", db_path, e)
            return ledger

        ledger._entries = _entries_from_dict(data)
        logger.debug("Loaded %d progress entries from %s", len(ledger._entries), db_path)
        return ledger

    def save(self) -> None:
        """Write the whole table as one record and commit."""
        self._write(self.to_dict())

    def _write(self, data: dict) -> None:
        if self.db_path is None:
            return
        payload = json.dumps(data)
        now = datetime.now().isoformat()
        with closing(self._conn()) as conn, conn:
            conn.execute(
                "INSERT OR REPLACE INTO ledger (key, payload, updated_at) VALUES (?, ?, ?)",
                (RECORD_KEY, payload, now),
            )

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self) -> None:
        with closing(self._conn()) as conn, conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS ledger (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

    def _read_payload(self) -> Optional[str]:
        with closing(self._conn()) as conn:
            row = conn.execute("SELECT payload FROM ledger WHERE key = ?", (RECORD_KEY,)).fetchone()
        return row[0] if row else None

    def _quarantine(self) -> None:
        if self.db_path is None or not self.db_path.exists():
            return
        target = self.db_path.with_name(self.db_path.name + ".corrupt")
        self.db_path.replace(target)
        logger.warning("Moved unreadable progress store to %s", target)

    # --- mutation ---

    def record_completion(self, language: Language, difficulty: Difficulty, index: int) -> bool:
        """Mark one exercise complete and persist before returning.

        Returns False (and writes nothing) when it was already recorded.
        """
        if not 0 <= index < ROSTER_SIZE:
            raise ValueError(f"Exercise index {index} out of range")

        key = (language, difficulty)
        entry = self._entries.get(key)
        if entry is not None and entry[index]:
            return False

        # memory only changes once the write has gone through
        updated = list(entry) if entry is not None else [False] * ROSTER_SIZE
        updated[index] = True
        data = self.to_dict()
        data.setdefault(language.value, {})[difficulty.value] = updated
        self._write(data)
        self._entries[key] = updated
        logger.info("Recorded completion %s/%s/%d", language.value, difficulty.value, index + 1)
        return True

    # --- queries ---

    def entry(self, language: Language, difficulty: Difficulty) -> Optional[tuple[bool, ...]]:
        """The bucket's completion flags, or None if nothing in it was ever completed."""
        entry = self._entries.get((language, difficulty))
        return tuple(entry) if entry is not None else None

    def is_completed(self, language: Language, difficulty: Difficulty, index: int) -> bool:
        entry = self._entries.get((language, difficulty))
        return bool(entry and 0 <= index < ROSTER_SIZE and entry[index])

    def completed_count(self, language: Language, difficulty: Optional[Difficulty] = None) -> int:
        difficulties = [difficulty] if difficulty is not None else list(Difficulty)
        return sum(sum(self._entries.get((language, d), ())) for d in difficulties)

    def is_language_complete(self, language: Language) -> bool:
        for difficulty in Difficulty:
            entry = self._entries.get((language, difficulty))
            if entry is None or not all(entry):
                return False
        return True

    def percentage(self, language: Language) -> int:
        return round_half_up(100 * self.completed_count(language) / LANGUAGE_TOTAL)

    def percentage_for_difficulty(self, language: Language, difficulty: Difficulty) -> int:
        return round_half_up(100 * self.completed_count(language, difficulty) / ROSTER_SIZE)

    def completed_languages(self) -> list[Language]:
        return [lang for lang in Language if self.is_language_complete(lang)]

    # --- serialization ---

    def to_dict(self) -> dict[str, dict[str, list[bool]]]:
        data: dict[str, dict[str, list[bool]]] = {}
        for (language, difficulty), entry in self._entries.items():
            data.setdefault(language.value, {})[difficulty.value] = list(entry)
        return data

    @classmethod
    def from_dict(cls, data, db_path: Optional[Path] = None) -> "ProgressLedger":
        ledger = cls(db_path)
        ledger._entries = _entries_from_dict(data)
        return ledger


def _entries_from_dict(data) -> dict[BucketKey, list[bool]]:
    """Keep the well-formed entries of a decoded record; drop the rest."""
    entries: dict[BucketKey, list[bool]] = {}
    if not isinstance(data, dict):
        logger.warning("Ignoring progress record of type %s", type(data).__name__)
        return entries

    for lang_name, levels in data.items():
        try:
            language = Language(lang_name)
        except ValueError:
            logger.warning("Ignoring progress for unknown language %r", lang_name)
            continue
        if not isinstance(levels, dict):
            logger.warning("Ignoring malformed progress for %s", lang_name)
            continue
        for level_name, flags in levels.items():
            try:
                difficulty = Difficulty(level_name)
            except ValueError:
                logger.warning("Ignoring progress for unknown difficulty %r", level_name)
                continue
            if (
                not isinstance(flags, list)
                or len(flags) != ROSTER_SIZE
                or not all(isinstance(flag, bool) for flag in flags)
            ):
                logger.warning("Ignoring malformed progress entry %s/%s", lang_name, level_name)
                continue
            entries[(language, difficulty)] = list(flags)
    return entries
