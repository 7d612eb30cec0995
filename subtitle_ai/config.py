"""
subtitle_ai.config - Settings model and optional YAML config loading.

Settings come from defaults, then an optional YAML file, then CLI options;
later sources win when they are not None.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .backends.registry import DEFAULT_MODEL, resolve_model
from .cache import DEFAULT_CACHE_DIR
from .exceptions import ConfigError


class Settings(BaseModel):
    """Resolved configuration for one run."""

    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    model: str = DEFAULT_MODEL
    language: str = "auto"
    sample_rate: int = Field(default=16000, gt=0)
    keep_temp_files: bool = False
    threads: int | None = Field(default=None, gt=0)
    ffmpeg_path: Path | None = None
    progress_interval: float = Field(default=1.0, gt=0.0)

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        # Aliases are stored as their canonical variant name
        return resolve_model(v).model_id

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("language must not be empty")
        return v


def load_settings(path: Path | None = None, **overrides: Any) -> Settings:
    """Build Settings from an optional YAML file and non-None overrides.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    raw: dict[str, Any] = {}
    if path is not None:
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Invalid config in {path}: root must be a mapping")

    merged = dict(raw)
    for key, value in overrides.items():
        if value is not None:
            merged[key] = value

    try:
        return Settings(**merged)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
