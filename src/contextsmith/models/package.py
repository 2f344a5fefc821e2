"""The assembled deliverable and its quality summary."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from contextsmith.constants import (
    METRIC_PRECISION,
    AssemblyState,
    ContextType,
    PackageStatus,
)
from contextsmith.models.fragment import Fragment
from contextsmith.models.request import ContextRequest


@dataclass(frozen=True)
class ContextSection:
    """Rendered group of fragments sharing one type."""

    type: ContextType
    content: str
    fragments: tuple[Fragment, ...] = ()


@dataclass(frozen=True)
class ContextPackage:
    """Bundle of sections and selected fragments for one request.

    Callers distinguish "nothing applied", "pipeline failed" and
    "trimmed under pressure" through ``metadata`` only:
    ``status`` is one of :class:`PackageStatus`, degraded runs carry
    ``degraded=True``.
    """

    request: ContextRequest
    sections: tuple[ContextSection, ...] = ()
    fragments: tuple[Fragment, ...] = ()
    metadata: Mapping[str, Any] = field(
        default_factory=lambda: dict[str, Any]()
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "metadata", MappingProxyType(dict(self.metadata))
        )

    @property
    def estimated_size(self) -> int:
        return sum(f.estimated_size for f in self.fragments)

    @property
    def status(self) -> PackageStatus:
        return PackageStatus(self.metadata.get("status", PackageStatus.OK))

    @property
    def is_error(self) -> bool:
        return self.status == PackageStatus.ERROR

    @property
    def is_empty(self) -> bool:
        return not self.fragments

    def render(self, template: str | None = None) -> str:
        """Render as a Markdown-like document.

        Without a template: ``# Context for: <task>`` followed by every
        section. A template may use ``{task}``, ``{task_type}`` and
        ``{sections}``; other braces are left untouched.
        """
        if template is None:
            parts = [f"# Context for: {self.request.task_description}\n\n"]
            parts.extend(f"{s.content}\n" for s in self.sections)
            return "".join(parts)

        return (
            template.replace("{task}", self.request.task_description)
            .replace("{task_type}", self.request.task_type.value)
            .replace(
                "{sections}", "".join(s.content for s in self.sections)
            )
        )


def _check_precision(value: float, field_name: str) -> None:
    rounded = round(value, METRIC_PRECISION)
    if abs(value - rounded) > 0.001:
        msg = (
            f"{field_name} must have 0.1 precision, got: {value}."
            f" Use: {rounded}"
        )
        raise ValueError(msg)


@dataclass(frozen=True)
class ContextMetrics:
    """Quality summary over a package.

    ``relevance`` is the mean fragment relevance; ``coverage`` the
    fraction of required aspects present in at least one fragment.
    The plain constructor accepts any float; :meth:`strict` enforces
    one-decimal precision.
    """

    total_size: int = 0
    fragment_count: int = 0
    relevance: float = 0.0
    coverage: float = 0.0

    @classmethod
    def strict(
        cls,
        total_size: int = 0,
        fragment_count: int = 0,
        relevance: float = 0.0,
        coverage: float = 0.0,
    ) -> ContextMetrics:
        _check_precision(relevance, "relevance")
        _check_precision(coverage, "coverage")
        return cls(
            total_size=total_size,
            fragment_count=fragment_count,
            relevance=relevance,
            coverage=coverage,
        )

    def __str__(self) -> str:
        return (
            f"ContextMetrics(size={self.total_size},"
            f" fragments={self.fragment_count},"
            f" relevance={self.relevance:.1f},"
            f" coverage={self.coverage:.1f})"
        )


@dataclass(frozen=True)
class AssemblyResult:
    """What :meth:`ContextEngine.assemble` hands back."""

    package: ContextPackage
    metrics: ContextMetrics
    state: AssemblyState
    trace_id: str
