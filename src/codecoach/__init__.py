"""codecoach: heuristic code practice engine."""

__version__ = "0.1.0"
