"""Tests for ContextRequest."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from contextsmith.constants import (
    DEFAULT_TOKEN_BUDGET,
    ContextScope,
    ContextType,
    TaskType,
)
from contextsmith.models import ContextRequest


def test_defaults() -> None:
    r = ContextRequest(task_description="Explain the cache")
    assert r.task_type == TaskType.GENERAL
    assert r.token_budget == DEFAULT_TOKEN_BUDGET
    assert r.scope == ContextScope.LOCAL
    assert r.focus_areas == frozenset()
    assert r.parameters == {}


def test_task_description_required() -> None:
    with pytest.raises(ValidationError):
        ContextRequest()  # type: ignore[call-arg]


def test_negative_budget_rejected() -> None:
    with pytest.raises(ValidationError):
        ContextRequest(task_description="x", token_budget=-1)


def test_zero_budget_accepted() -> None:
    assert ContextRequest(task_description="x", token_budget=0).token_budget == 0


def test_string_enums_coerced() -> None:
    r = ContextRequest(
        task_description="x",
        task_type="bug_fixing",  # type: ignore[arg-type]
        preferred_types={"runtime_errors"},  # type: ignore[arg-type]
        scope="project",  # type: ignore[arg-type]
    )
    assert r.task_type == TaskType.BUG_FIXING
    assert r.preferred_types == frozenset({ContextType.RUNTIME_ERRORS})
    assert r.scope == ContextScope.PROJECT


def test_parameter_lookup() -> None:
    r = ContextRequest(task_description="x", parameters={"file_path": "a.py"})
    assert r.parameter("file_path") == "a.py"
    assert r.parameter("missing") is None
    assert r.parameter("missing", "fallback") == "fallback"


def test_immutable() -> None:
    r = ContextRequest(task_description="x")
    with pytest.raises(ValidationError):
        r.token_budget = 5  # type: ignore[misc]


def test_parameters_read_only() -> None:
    r = ContextRequest(task_description="x", parameters={"file_path": "a.py"})
    with pytest.raises(TypeError):
        r.parameters["file_path"] = "b.py"  # type: ignore[index]
    assert r.parameter("file_path") == "a.py"
