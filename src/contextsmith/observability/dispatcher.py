"""Fan-out dispatcher for trace events."""

from __future__ import annotations

import logging

from contextsmith.observability.events import TraceEvent
from contextsmith.observability.handlers import TraceHandler

logger = logging.getLogger(__name__)


class TraceDispatcher:
    """Delivers each assembly event to every registered handler.

    Best-effort: a handler that raises is logged and skipped, so
    tracing can never fail an assembly. A dispatcher with no handlers
    is a valid no-op (tracing disabled).
    """

    def __init__(self) -> None:
        self._handlers: list[TraceHandler] = []

    def register(self, handler: TraceHandler) -> None:
        """Register a handler. A second handler with the same name is ignored."""
        if any(h.name == handler.name for h in self._handlers):
            logger.debug(
                "event=trace_handler_duplicate handler=%s", handler.name
            )
            return
        self._handlers.append(handler)

    def unregister(self, name: str) -> bool:
        before = len(self._handlers)
        self._handlers = [h for h in self._handlers if h.name != name]
        return len(self._handlers) < before

    async def emit(self, event: TraceEvent) -> None:
        for handler in self._handlers:
            try:
                await handler.handle(event)
            except Exception:
                logger.warning(
                    "event=trace_handler_error handler=%s trace_type=%s",
                    handler.name,
                    event.type,
                    exc_info=True,
                )

    @property
    def handler_count(self) -> int:
        return len(self._handlers)
