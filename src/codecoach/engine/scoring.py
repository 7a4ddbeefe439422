"""Completion score from attempt telemetry."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class Telemetry:
    elapsed_seconds: int = 0
    correction_count: int = 0


def round_half_up(value: float) -> int:
    """Round non-negative values with .5 going up (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))


def score(telemetry: Telemetry) -> int:
    """Map telemetry to a 0-100 score.

    Each backspace costs two points of code quality and every ten seconds
    cost one point of time bonus; the score is the average of the two.
    """
    if telemetry.elapsed_seconds < 0 or telemetry.correction_count < 0:
        raise ValueError("Telemetry values must be non-negative")

    code_quality = max(0, 100 - 2 * telemetry.correction_count)
    time_bonus = max(0.0, 100 - telemetry.elapsed_seconds / 10)
    return min(100, round_half_up((code_quality + time_bonus) / 2))


def format_elapsed(seconds: int) -> str:
    """Render seconds as m:ss."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"
