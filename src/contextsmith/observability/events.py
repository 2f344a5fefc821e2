"""Typed trace events emitted during context assembly."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

TraceEventType = Literal[
    "assembly_start",
    "assembly_end",
    "stage_end",
    "source_failed",
    "degradation",
    "error",
]

TraceCategory = Literal[
    "assembly",
    "collection",
    "bounds",
]


@dataclass(frozen=True)
class TraceEvent:
    """Immutable trace event emitted during assembly."""

    type: TraceEventType
    trace_id: str
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(UTC)
    )
    category: TraceCategory = "assembly"
    data: dict[str, Any] = field(
        default_factory=lambda: dict[str, Any]()
    )
