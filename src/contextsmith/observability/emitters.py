"""Typed convenience functions for emitting trace events."""

from __future__ import annotations

from contextsmith.observability.dispatcher import TraceDispatcher
from contextsmith.observability.events import TraceEvent


async def emit_assembly_start(
    dispatcher: TraceDispatcher,
    trace_id: str,
    task_type: str,
    token_budget: int,
) -> None:
    await dispatcher.emit(
        TraceEvent(
            type="assembly_start",
            trace_id=trace_id,
            data={"task_type": task_type, "token_budget": token_budget},
        )
    )


async def emit_assembly_end(
    dispatcher: TraceDispatcher,
    trace_id: str,
    duration_ms: float,
    status: str,
    fragment_count: int,
) -> None:
    await dispatcher.emit(
        TraceEvent(
            type="assembly_end",
            trace_id=trace_id,
            data={
                "duration_ms": duration_ms,
                "status": status,
                "fragment_count": fragment_count,
            },
        )
    )


async def emit_stage_end(
    dispatcher: TraceDispatcher,
    trace_id: str,
    stage: str,
    duration_ms: float,
    count: int,
) -> None:
    await dispatcher.emit(
        TraceEvent(
            type="stage_end",
            trace_id=trace_id,
            data={
                "stage": stage,
                "duration_ms": duration_ms,
                "count": count,
            },
        )
    )


async def emit_source_failed(
    dispatcher: TraceDispatcher,
    trace_id: str,
    source: str,
    error_class: str,
    message: str,
) -> None:
    await dispatcher.emit(
        TraceEvent(
            type="source_failed",
            trace_id=trace_id,
            category="collection",
            data={
                "source": source,
                "error_class": error_class,
                "message": message,
            },
        )
    )


async def emit_degradation(
    dispatcher: TraceDispatcher,
    trace_id: str,
    before: int,
    after: int,
) -> None:
    await dispatcher.emit(
        TraceEvent(
            type="degradation",
            trace_id=trace_id,
            category="bounds",
            data={"before": before, "after": after},
        )
    )


async def emit_error(
    dispatcher: TraceDispatcher,
    trace_id: str,
    stage: str,
    message: str,
) -> None:
    await dispatcher.emit(
        TraceEvent(
            type="error",
            trace_id=trace_id,
            data={
                "stage": stage,
                "message": message,
            },
        )
    )
