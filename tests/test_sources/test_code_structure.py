"""Tests for the tree-sitter signature outline source."""

from __future__ import annotations

from pathlib import Path

import pytest

from contextsmith.constants import ContextType, TaskType
from contextsmith.models import ContextRequest
from contextsmith.sources.code_structure import CodeStructureSource

MODULE = '''\
import os


@decorator
class Greeter(Base):
    """Says hello."""

    greeting = "hi"

    def hello(self, name: str) -> str:
        return f"{self.greeting} {name}"

    async def wait(self) -> None:
        pass


def top(a, b=1):
    def inner():
        pass
    return inner
'''


def _request(path: Path | None, **overrides: object) -> ContextRequest:
    fields: dict[str, object] = {
        "task_description": "Refactor greeter",
        "task_type": TaskType.CODE_REFACTORING,
        "parameters": {"file_path": str(path)} if path else {},
    }
    fields.update(overrides)
    return ContextRequest(**fields)  # type: ignore[arg-type]


@pytest.fixture
def module_file(tmp_path: Path) -> Path:
    path = tmp_path / "greeter.py"
    path.write_text(MODULE, encoding="utf-8")
    return path


class TestApplicability:
    @pytest.mark.parametrize(
        "task_type",
        [
            TaskType.CODE_GENERATION,
            TaskType.CODE_REVIEW,
            TaskType.DOCUMENTATION,
            TaskType.TEST_GENERATION,
            TaskType.ARCHITECTURE_REVIEW,
        ],
    )
    def test_applicable(self, task_type: TaskType) -> None:
        assert CodeStructureSource().is_applicable(
            _request(None, task_type=task_type)
        )

    @pytest.mark.parametrize(
        "task_type", [TaskType.BUG_FIXING, TaskType.GENERAL]
    )
    def test_not_applicable(self, task_type: TaskType) -> None:
        assert not CodeStructureSource().is_applicable(
            _request(None, task_type=task_type)
        )


class TestCollect:
    def test_outlines_classes_and_functions(self, module_file: Path) -> None:
        frag = CodeStructureSource().collect(_request(module_file))
        assert frag is not None
        assert frag.type == ContextType.CODE_STRUCTURE
        assert frag.content == (
            "File: greeter.py\n"
            "class Greeter(Base)\n"
            "    def hello(self, name: str) -> str\n"
            "    async def wait(self) -> None\n"
            "def top(a, b=1)"
        )
        assert frag.metadata == {"file": "greeter.py", "symbols": 4}
        assert frag.relevance_score == 0.8
        assert frag.source == "CodeStructureSource"

    def test_nested_functions_not_listed(self, module_file: Path) -> None:
        frag = CodeStructureSource().collect(_request(module_file))
        assert frag is not None
        assert "inner" not in frag.content

    def test_multiline_signature_collapsed(self, tmp_path: Path) -> None:
        path = tmp_path / "wide.py"
        path.write_text(
            "def wide(\n    first,\n    second,\n):\n    pass\n",
            encoding="utf-8",
        )
        frag = CodeStructureSource().collect(_request(path))
        assert frag is not None
        assert frag.content.splitlines()[1] == "def wide( first, second, )"

    def test_non_ascii_source(self, tmp_path: Path) -> None:
        path = tmp_path / "uni.py"
        path.write_text(
            '"""Größe."""\n\ndef größe(x):\n    return x\n', encoding="utf-8"
        )
        frag = CodeStructureSource().collect(_request(path))
        assert frag is not None
        assert frag.content.endswith("def größe(x)")

    def test_no_definitions(self, tmp_path: Path) -> None:
        path = tmp_path / "consts.py"
        path.write_text("X = 1\n", encoding="utf-8")
        assert CodeStructureSource().collect(_request(path)) is None

    def test_unsupported_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("def looks_like_python(): pass\n", encoding="utf-8")
        assert CodeStructureSource().collect(_request(path)) is None

    def test_missing_file(self, tmp_path: Path) -> None:
        assert (
            CodeStructureSource().collect(_request(tmp_path / "gone.py"))
            is None
        )

    def test_no_file_parameter(self) -> None:
        assert CodeStructureSource().collect(_request(None)) is None
