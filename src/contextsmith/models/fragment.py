"""A single unit of collected context."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from contextsmith.constants import ContextType, estimate_tokens


def _new_id() -> str:
    return uuid.uuid4().hex


class Fragment(BaseModel):
    """One piece of context produced by a source.

    Immutable: enrichment goes through :meth:`evolve` /
    :meth:`with_metadata`, which return a new validated fragment.
    ``estimated_size`` defaults to the content's token estimate
    (~4 characters per unit) when not given explicitly. ``metadata`` is
    a read-only mapping.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    source: str
    type: ContextType
    content: str
    aspects: frozenset[str] = frozenset()
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)
    estimated_size: int = Field(default=0, ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    dependencies: tuple[str, ...] = ()
    metadata: Mapping[str, Any] = Field(
        default_factory=lambda: dict[str, Any](), validate_default=True
    )

    @model_validator(mode="before")
    @classmethod
    def _default_size(cls, data: Any) -> Any:
        if (
            isinstance(data, dict)
            and data.get("estimated_size") is None
            and isinstance(data.get("content"), str)
        ):
            data = {**data, "estimated_size": estimate_tokens(data["content"])}
        return data

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, v: datetime) -> datetime:
        # Naive timestamps are taken as UTC so age arithmetic never mixes kinds
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @field_validator("metadata")
    @classmethod
    def _read_only_metadata(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(v))

    @field_serializer("metadata")
    def _dump_metadata(self, v: Mapping[str, Any]) -> dict[str, Any]:
        return dict(v)

    def evolve(self, **changes: Any) -> Fragment:
        """Return a copy with ``changes`` applied and re-validated.

        Changing ``content`` re-estimates the size unless
        ``estimated_size`` is supplied as well.
        """
        data = self.model_dump()
        if "content" in changes and "estimated_size" not in changes:
            data.pop("estimated_size")
        data.update(changes)
        return Fragment.model_validate(data)

    def with_metadata(self, **entries: Any) -> Fragment:
        """Return a copy whose metadata also carries ``entries``."""
        return self.evolve(metadata={**self.metadata, **entries})

    def age_minutes(self, now: datetime) -> int:
        """Whole minutes since creation; future timestamps count as 0."""
        seconds = (now - self.timestamp).total_seconds()
        return max(0, int(seconds // 60))
