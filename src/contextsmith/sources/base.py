"""Protocol-based source interface.

Sources satisfy :class:`ContextSource` structurally (no inheritance
required). :class:`BaseSource` is an optional convenience base that
supplies the default priority, cost and metadata.
"""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from contextsmith.constants import (
    DEFAULT_SOURCE_COST,
    DEFAULT_SOURCE_PRIORITY,
    DEFAULT_SOURCE_VERSION,
    SourceKind,
)
from contextsmith.models import ContextRequest, Fragment


@dataclass(frozen=True)
class SourceMetadata:
    """Descriptive information about a source."""

    name: str
    description: str
    version: str = DEFAULT_SOURCE_VERSION
    kind: SourceKind = SourceKind.STATIC


@runtime_checkable
class ContextSource(Protocol):
    """Pluggable producer of at most one fragment per request.

    ``collect`` may be a plain function (run in a worker thread) or a
    coroutine function (awaited on the event loop). Returning None, or
    raising, means "no contribution".
    """

    def is_applicable(self, request: ContextRequest) -> bool: ...

    def collect(
        self, request: ContextRequest
    ) -> Fragment | None | Awaitable[Fragment | None]: ...

    def priority(self) -> int: ...

    def estimated_cost(self) -> int: ...

    def metadata(self) -> SourceMetadata: ...


class BaseSource:
    """Defaults for the optional parts of the source contract."""

    description: str = ""
    kind: SourceKind = SourceKind.STATIC
    version: str = DEFAULT_SOURCE_VERSION

    def is_applicable(self, request: ContextRequest) -> bool:
        return True

    def priority(self) -> int:
        return DEFAULT_SOURCE_PRIORITY

    def estimated_cost(self) -> int:
        return DEFAULT_SOURCE_COST

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=type(self).__name__,
            description=self.description,
            version=self.version,
            kind=self.kind,
        )


def source_name(source: object) -> str:
    """Best-effort display name; never raises."""
    try:
        return source.metadata().name  # type: ignore[attr-defined]
    except Exception:  # noqa: BLE001
        return type(source).__name__
