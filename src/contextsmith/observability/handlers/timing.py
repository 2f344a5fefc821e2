"""Stage timing handler -- accumulates per-trace stage durations."""

from __future__ import annotations

from dataclasses import dataclass, field

from contextsmith.observability.events import TraceEvent


@dataclass
class TraceTiming:
    """Accumulated timings for a single trace."""

    stages: dict[str, float] = field(
        default_factory=lambda: dict[str, float]()
    )
    total_ms: float = 0.0
    failed_sources: int = 0


class StageTimingHandler:
    """Tracks stage durations and source failures per trace_id."""

    def __init__(self) -> None:
        self._timings: dict[str, TraceTiming] = {}

    @property
    def name(self) -> str:
        return "stage_timing"

    async def handle(self, event: TraceEvent) -> None:
        match event.type:
            case "stage_end":
                timing = self._timings.setdefault(
                    event.trace_id, TraceTiming()
                )
                stage = str(event.data.get("stage", "unknown"))
                timing.stages[stage] = float(
                    event.data.get("duration_ms", 0.0)
                )
            case "source_failed":
                timing = self._timings.setdefault(
                    event.trace_id, TraceTiming()
                )
                timing.failed_sources += 1
            case "assembly_end":
                timing = self._timings.setdefault(
                    event.trace_id, TraceTiming()
                )
                timing.total_ms = float(event.data.get("duration_ms", 0.0))
            case _:
                pass

    def get_timing(self, trace_id: str) -> TraceTiming:
        return self._timings.get(trace_id, TraceTiming())

    def all_timings(self) -> dict[str, TraceTiming]:
        return dict(self._timings)

    def pop(self, trace_id: str) -> TraceTiming | None:
        """Remove and return the timings for ``trace_id``, if any."""
        return self._timings.pop(trace_id, None)
