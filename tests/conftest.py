"""Shared test fixtures: fragment factory, fake sources, isolated env."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any, TypeAlias

import pytest

from contextsmith.constants import ContextType
from contextsmith.models import ContextRequest, Fragment
from contextsmith.sources.base import BaseSource, SourceMetadata

FragmentFactory: TypeAlias = Callable[..., Fragment]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CONTEXTSMITH_* variables from the shell out of Settings()."""
    for key in list(os.environ):
        if key.startswith("CONTEXTSMITH_"):
            monkeypatch.delenv(key)


@pytest.fixture
def make_fragment() -> FragmentFactory:
    """Factory with sensible defaults; override any field by keyword."""

    def _make(**overrides: Any) -> Fragment:
        fields: dict[str, Any] = {
            "source": "test",
            "type": ContextType.CODE_IMPLEMENTATION,
            "content": "def f(): pass",
            "relevance_score": 0.5,
        }
        fields.update(overrides)
        return Fragment(**fields)

    return _make


@pytest.fixture
def request_factory() -> Callable[..., ContextRequest]:
    def _make(**overrides: Any) -> ContextRequest:
        fields: dict[str, Any] = {"task_description": "Implement a parser"}
        fields.update(overrides)
        return ContextRequest(**fields)

    return _make


class StaticSource(BaseSource):
    """Returns a fixed fragment (or None) for every request."""

    def __init__(
        self,
        fragment: Fragment | None,
        *,
        name: str | None = None,
        priority: int = 50,
        cost: int = 100,
        applicable: bool = True,
    ) -> None:
        self._fragment = fragment
        self._name = name
        self._priority = priority
        self._cost = cost
        self._applicable = applicable
        self.calls = 0

    def is_applicable(self, request: ContextRequest) -> bool:
        return self._applicable

    def collect(self, request: ContextRequest) -> Fragment | None:
        self.calls += 1
        return self._fragment

    def priority(self) -> int:
        return self._priority

    def estimated_cost(self) -> int:
        return self._cost

    def metadata(self) -> SourceMetadata:
        return SourceMetadata(
            name=self._name or type(self).__name__,
            description="fixed fragment",
        )


class FailingSource(BaseSource):
    """Raises from ``collect``."""

    def __init__(self, error: Exception | None = None) -> None:
        self._error = error or RuntimeError("collector exploded")

    def collect(self, request: ContextRequest) -> Fragment | None:
        raise self._error


class BrokenApplicabilitySource(BaseSource):
    """Raises from ``is_applicable``."""

    def __init__(self) -> None:
        self.collected = False

    def is_applicable(self, request: ContextRequest) -> bool:
        msg = "cannot decide"
        raise RuntimeError(msg)

    def collect(self, request: ContextRequest) -> Fragment | None:
        self.collected = True
        return None


@pytest.fixture
def static_source() -> type[StaticSource]:
    return StaticSource


@pytest.fixture
def failing_source() -> type[FailingSource]:
    return FailingSource


@pytest.fixture
def broken_applicability_source() -> type[BrokenApplicabilitySource]:
    return BrokenApplicabilitySource
