"""Configuration model for codecoach."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_DATA_DIR = Path.home() / ".codecoach"


class Settings(BaseModel):
    data_dir: Path = Field(default_factory=lambda: DEFAULT_DATA_DIR)
    catalog_dir: Optional[Path] = None
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def progress_db(self) -> Path:
        return self.data_dir / "progress.db"

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        config_path = config_path or (DEFAULT_DATA_DIR / "config.yaml")
        data: dict = {}
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        env_dir = os.environ.get("CODECOACH_DATA_DIR")
        if env_dir:
            data["data_dir"] = env_dir
        return cls(**data)

    def save(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        config_path = self.data_dir / "config.yaml"
        with open(config_path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)


def configure_logging(level: str = "WARNING") -> None:
    """Send log records to stderr; stdout belongs to the JSON-lines protocol."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
