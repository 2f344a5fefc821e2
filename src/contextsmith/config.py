"""Environment-based configuration for the assembly engine."""

from __future__ import annotations

import logging
import re
from datetime import timedelta
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from contextsmith.constants import (
    DEFAULT_MAX_FRAGMENTS,
    DEFAULT_MAX_MEMORY_BYTES,
    DependencyResolution,
)

logger = logging.getLogger(__name__)

_MEMORY_UNITS: dict[str, int] = {
    "": 1,
    "B": 1,
    "KB": 1024,
    "MB": 1024 * 1024,
    "GB": 1024 * 1024 * 1024,
}

_MEMORY_PATTERN = re.compile(r"^\s*(\d+)\s*([KMG]?B?)\s*$", re.IGNORECASE)


def parse_memory_size(value: str) -> int:
    """Parse ``"50MB"``-style sizes into bytes (1024-based units)."""
    m = _MEMORY_PATTERN.match(value)
    if m is None:
        msg = f"Invalid memory size: {value!r} (expected e.g. 512KB, 50MB, 1GB)"
        raise ValueError(msg)
    number, unit = m.group(1), m.group(2).upper()
    if unit in ("K", "M", "G"):
        unit += "B"
    return int(number) * _MEMORY_UNITS[unit]


class Settings(BaseSettings):
    """Reads from .env file and CONTEXTSMITH_* environment variables."""

    # Filtering
    min_relevance_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    context_max_age_seconds: float | None = Field(default=86_400, gt=0)

    # Prioritizing
    reserved_budget_ratio: float = Field(default=0.1, ge=0.0, lt=1.0)
    dependency_resolution: DependencyResolution = (
        DependencyResolution.SINGLE_PASS
    )

    # Metrics
    required_aspects: Annotated[list[str], NoDecode] = []

    # Resource bounds
    max_fragments_per_request: int = Field(
        default=DEFAULT_MAX_FRAGMENTS, gt=0
    )
    max_memory_per_request: Annotated[int, NoDecode] = Field(
        default=DEFAULT_MAX_MEMORY_BYTES, gt=0
    )

    # Source collection
    max_source_concurrency: int = Field(default=8, gt=0)
    source_timeout_seconds: float | None = Field(default=None, gt=0)

    # Logging / tracing
    log_level: str = "INFO"
    trace_enabled: bool = True

    @field_validator("required_aspects", mode="before")
    @classmethod
    def _parse_aspects(cls, v: Any) -> Any:
        """Accept comma-separated string or list."""
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("required_aspects")
    @classmethod
    def _dedupe_aspects(cls, v: list[str]) -> list[str]:
        seen: set[str] = set()
        result: list[str] = []
        for aspect in v:
            if aspect in seen:
                logger.warning(
                    "Duplicate aspect in REQUIRED_ASPECTS: %s", aspect
                )
                continue
            seen.add(aspect)
            result.append(aspect)
        return result

    @field_validator("max_memory_per_request", mode="before")
    @classmethod
    def _parse_memory(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_memory_size(v)
        return v

    @property
    def context_max_age(self) -> timedelta | None:
        """Staleness horizon, or None when staleness filtering is off."""
        if self.context_max_age_seconds is None:
            return None
        return timedelta(seconds=self.context_max_age_seconds)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "CONTEXTSMITH_",
        "extra": "ignore",
    }


def load_settings(path: Path) -> Settings:
    """Load settings from a YAML file.

    Raises ``FileNotFoundError`` if the file doesn't exist and
    ``ValueError`` for unknown keys or a non-mapping document.
    Environment variables are not consulted for keys set in the file.
    """
    if not path.is_file():
        msg = f"Settings file not found: {path}"
        raise FileNotFoundError(msg)

    raw: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return Settings()
    if not isinstance(raw, dict):
        msg = f"Settings file must contain a mapping: {path}"
        raise ValueError(msg)

    data: dict[str, Any] = raw
    unknown = sorted(set(data) - set(Settings.model_fields))
    if unknown:
        msg = f"Unknown settings in {path}: {', '.join(unknown)}"
        raise ValueError(msg)
    return Settings(**data)
