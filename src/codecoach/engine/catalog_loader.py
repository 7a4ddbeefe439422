"""YAML exercise catalog parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from codecoach.engine.languages import ROSTER_SIZE, Difficulty, Language


class CatalogError(ValueError):
    """A catalog file could not be understood."""


@dataclass(frozen=True)
class TestCase:
    __test__ = False  # keep pytest from collecting this

    input: str
    output: str


@dataclass(frozen=True)
class Exercise:
    title: str
    description: str
    expected_output: str = ""
    test_cases: list[TestCase] = field(default_factory=list)


def _parse_test_cases(raw) -> list[TestCase]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise CatalogError("test_cases must be a list")
    cases = []
    for item in raw:
        if not isinstance(item, dict):
            raise CatalogError("each test case must be a mapping")
        cases.append(TestCase(input=str(item.get("input", "")), output=str(item.get("output", ""))))
    return cases


def _parse_exercise(raw) -> Exercise:
    if not isinstance(raw, dict):
        raise CatalogError("each exercise must be a mapping")
    try:
        title = raw["title"]
    except KeyError:
        raise CatalogError("exercise is missing a title") from None
    return Exercise(
        title=str(title),
        description=str(raw.get("description", "")),
        expected_output=str(raw.get("expected_output", "")),
        test_cases=_parse_test_cases(raw.get("test_cases")),
    )


def parse_catalog(data) -> tuple[Language, dict[Difficulty, list[Exercise]]]:
    """Turn one decoded catalog document into typed exercises."""
    if not isinstance(data, dict) or "language" not in data:
        raise CatalogError("catalog document needs a 'language' key")
    try:
        language = Language.parse(str(data["language"]))
    except ValueError as e:
        raise CatalogError(str(e)) from None

    tiers = data.get("exercises") or {}
    if not isinstance(tiers, dict):
        raise CatalogError("'exercises' must map difficulty to a list")

    exercises: dict[Difficulty, list[Exercise]] = {}
    for level, raw_list in tiers.items():
        try:
            difficulty = Difficulty.parse(str(level))
        except ValueError as e:
            raise CatalogError(str(e)) from None
        if not isinstance(raw_list, list):
            raise CatalogError(f"exercises for {level} must be a list")
        if len(raw_list) > ROSTER_SIZE:
            raise CatalogError(f"{language.value}/{level} has more than {ROSTER_SIZE} exercises")
        exercises[difficulty] = [_parse_exercise(item) for item in raw_list]

    return language, exercises


def load_catalog_file(path: Path) -> tuple[Language, dict[Difficulty, list[Exercise]]]:
    """Load one ``<language>.yaml`` catalog file."""
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CatalogError(f"{path.name}: {e}") from None
    return parse_catalog(data)
