"""Exercise discovery and lookup."""

from __future__ import annotations

import logging
from pathlib import Path

from codecoach.engine.catalog_loader import CatalogError, Exercise, load_catalog_file
from codecoach.engine.languages import ROSTER_SIZE, Difficulty, Language

logger = logging.getLogger(__name__)


class ExerciseCatalog:
    """Loads every ``*.yaml`` catalog file in a directory."""

    def __init__(self, catalog_dir: Path | None = None):
        self.catalog_dir = catalog_dir or Path(__file__).parent
        self._exercises: dict[Language, dict[Difficulty, list[Exercise]]] = {}
        self._load()

    def _load(self) -> None:
        if not self.catalog_dir.is_dir():
            logger.warning("Catalog directory %s does not exist", self.catalog_dir)
            return
        for path in sorted(self.catalog_dir.glob("*.yaml")):
            try:
                language, tiers = load_catalog_file(path)
            except (CatalogError, OSError) as e:
                logger.warning("Skipping catalog file %s: %s", path, e)
                continue
            merged = self._exercises.setdefault(language, {})
            for difficulty, exercises in tiers.items():
                merged.setdefault(difficulty, []).extend(exercises)
            logger.debug("Loaded %s from %s", language.value, path.name)

    def languages(self) -> list[Language]:
        """Languages with at least one authored exercise, in enum order."""
        return [
            lang for lang in Language
            if any(self._exercises.get(lang, {}).values())
        ]

    def count(self, language: Language, difficulty: Difficulty) -> int:
        return len(self._exercises.get(language, {}).get(difficulty, []))

    def lookup(self, language: Language, difficulty: Difficulty, index: int) -> Exercise | None:
        """Return the exercise, or None when the roster does not cover it."""
        if not 0 <= index < ROSTER_SIZE:
            return None
        exercises = self._exercises.get(language, {}).get(difficulty, [])
        if index >= len(exercises):
            return None
        return exercises[index]
