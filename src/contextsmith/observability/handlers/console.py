"""Console trace handler -- key=value log output."""

from __future__ import annotations

import logging

from contextsmith.observability.events import TraceEvent

logger = logging.getLogger(__name__)


class ConsoleTraceHandler:
    """Logs trace events as key=value messages.

    Failures and degradation go out at WARNING, everything else at
    DEBUG so a healthy request stays quiet at the default level.
    """

    @property
    def name(self) -> str:
        return "console"

    async def handle(self, event: TraceEvent) -> None:
        parts = [
            f"trace_type={event.type}",
            f"trace_id={event.trace_id}",
            f"category={event.category}",
        ]
        for k, v in event.data.items():
            parts.append(f"{k}={v}")
        level = (
            logging.WARNING
            if event.type in ("source_failed", "degradation", "error")
            else logging.DEBUG
        )
        logger.log(level, " ".join(parts))
