"""Shared fixtures for codecoach tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from codecoach.catalog.registry import ExerciseCatalog
from codecoach.engine.exercise_runner import ExerciseRunner
from codecoach.engine.languages import ROSTER_SIZE
from codecoach.state.ledger import ProgressLedger


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_catalog_dir(tmp_path):
    """Create a minimal catalog directory for testing."""
    catalog_dir = tmp_path / "catalog"
    catalog_dir.mkdir()

    python_data = {
        "language": "Python",
        "exercises": {
            "easy": [
                {
                    "title": f"Easy {i + 1}",
                    "description": f"Easy exercise {i + 1}",
                    "expected_output": f"out {i + 1}",
                    "test_cases": [{"input": "", "output": f"out {i + 1}"}],
                }
                for i in range(ROSTER_SIZE)
            ],
            "medium": [
                {"title": "Reverse", "description": "Reverse a string"},
            ],
        },
    }
    with open(catalog_dir / "python.yaml", "w") as f:
        yaml.dump(python_data, f)

    js_data = {
        "language": "JavaScript",
        "exercises": {
            "easy": [
                {"title": "Hello", "description": "Log hello", "expected_output": "hello"},
            ],
        },
    }
    with open(catalog_dir / "javascript.yaml", "w") as f:
        yaml.dump(js_data, f)

    return catalog_dir


@pytest.fixture
def catalog(sample_catalog_dir):
    return ExerciseCatalog(sample_catalog_dir)


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "data" / "progress.db"


@pytest.fixture
def ledger(db_path):
    return ProgressLedger.load(db_path)


@pytest.fixture
def runner(catalog, ledger, clock):
    return ExerciseRunner(catalog, ledger, clock=clock)
