"""Thread-safe registry of context sources."""

from __future__ import annotations

import logging
import threading

from contextsmith.sources.base import ContextSource, source_name

logger = logging.getLogger(__name__)


class SourceRegistry:
    """Ordered list of sources, safe for concurrent mutation.

    Readers take a point-in-time :meth:`snapshot`; sources registered
    or removed afterwards do not affect an in-flight request.
    """

    def __init__(self, sources: list[ContextSource] | None = None) -> None:
        self._lock = threading.Lock()
        self._sources: list[ContextSource] = []
        for source in sources or []:
            self.register(source)

    def register(self, source: ContextSource) -> None:
        """Append a source. The same instance may be registered once."""
        if source is None:
            msg = "Source cannot be None"
            raise ValueError(msg)
        with self._lock:
            if any(s is source for s in self._sources):
                logger.debug(
                    "event=source_already_registered source=%s",
                    source_name(source),
                )
                return
            self._sources.append(source)
        logger.info("event=source_registered source=%s", source_name(source))

    def unregister(self, source: ContextSource) -> bool:
        """Remove a source; returns False if it was not registered."""
        with self._lock:
            for i, s in enumerate(self._sources):
                if s is source:
                    del self._sources[i]
                    break
            else:
                return False
        logger.info(
            "event=source_unregistered source=%s", source_name(source)
        )
        return True

    def snapshot(self) -> tuple[ContextSource, ...]:
        with self._lock:
            return tuple(self._sources)

    def clear(self) -> None:
        with self._lock:
            self._sources.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)

    def __contains__(self, source: object) -> bool:
        with self._lock:
            return any(s is source for s in self._sources)
