"""Observability layer -- event dispatcher + pluggable handlers."""

from __future__ import annotations

from contextsmith.config import Settings
from contextsmith.observability.dispatcher import TraceDispatcher
from contextsmith.observability.events import (
    TraceCategory,
    TraceEvent,
    TraceEventType,
)
from contextsmith.observability.handlers.console import (
    ConsoleTraceHandler,
)

__all__ = [
    "TraceCategory",
    "TraceDispatcher",
    "TraceEvent",
    "TraceEventType",
    "initialize_tracing",
]


def initialize_tracing(settings: Settings) -> TraceDispatcher:
    """Create dispatcher and register handlers based on settings."""
    dispatcher = TraceDispatcher()

    if not settings.trace_enabled:
        return dispatcher

    dispatcher.register(ConsoleTraceHandler())
    return dispatcher
