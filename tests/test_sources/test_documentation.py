"""Tests for the project documentation source."""

from __future__ import annotations

from pathlib import Path

import pytest

from contextsmith.constants import ContextType, TaskType
from contextsmith.models import ContextRequest
from contextsmith.sources.documentation import (
    MAX_FILES,
    TRUNCATION_MARKER,
    DocumentationSource,
    find_documentation_files,
    is_documentation_file,
)


def _request(root: Path | None, **overrides: object) -> ContextRequest:
    fields: dict[str, object] = {
        "task_description": "Document the API",
        "task_type": TaskType.DOCUMENTATION,
        "parameters": {"project_path": str(root)} if root else {},
    }
    fields.update(overrides)
    return ContextRequest(**fields)  # type: ignore[arg-type]


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture
def project(tmp_path: Path) -> Path:
    _write(tmp_path / "README.md", "# Project\n")
    _write(tmp_path / "CHANGELOG.md", "## 1.0\n")
    _write(tmp_path / "setup.py", "print('not docs')\n")
    _write(tmp_path / "docs" / "guide.md", "Guide\n")
    _write(tmp_path / "docs" / "api" / "ref.rst", "Reference\n")
    _write(tmp_path / "docs" / "api" / "deep" / "too_deep.md", "Hidden\n")
    _write(tmp_path / "docs" / "private.md", "Secret\n")
    _write(tmp_path / ".gitignore", "docs/private.md\n")
    return tmp_path


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("README", True),
        ("readme.rst", True),
        ("Contributing", True),
        ("notes.txt", True),
        ("index.html", True),
        ("main.py", False),
        (".gitignore", False),
    ],
)
def test_is_documentation_file(name: str, expected: bool) -> None:
    assert is_documentation_file(Path(name)) is expected


class TestFindDocumentationFiles:
    def test_top_level_then_docs_dir(self, project: Path) -> None:
        found = [
            p.relative_to(project).as_posix()
            for p in find_documentation_files(project)
        ]
        assert found == [
            "CHANGELOG.md",
            "README.md",
            "docs/api/ref.rst",
            "docs/guide.md",
        ]

    def test_capped_at_max_files(self, tmp_path: Path) -> None:
        for i in range(MAX_FILES + 5):
            _write(tmp_path / f"note{i:02d}.md", f"note {i}\n")
        assert len(find_documentation_files(tmp_path)) == MAX_FILES

    def test_ignored_docs_dir(self, tmp_path: Path) -> None:
        _write(tmp_path / "README.md", "hi\n")
        _write(tmp_path / "docs" / "guide.md", "Guide\n")
        _write(tmp_path / ".gitignore", "docs/\n")
        found = find_documentation_files(tmp_path)
        assert [p.name for p in found] == ["README.md"]


class TestCollect:
    def test_concatenates_with_headers(self, project: Path) -> None:
        frag = DocumentationSource().collect(_request(project))
        assert frag is not None
        assert frag.type == ContextType.PROJECT_DOCUMENTATION
        assert frag.content.startswith("## CHANGELOG.md\n\n## 1.0\n")
        assert "## docs/guide.md\n\nGuide\n" in frag.content
        assert "Secret" not in frag.content
        assert "Hidden" not in frag.content
        assert frag.metadata["files_scanned"] == 4
        assert frag.metadata["source_path"] == str(project)

    def test_lines_per_file_capped(self, tmp_path: Path) -> None:
        _write(
            tmp_path / "README.md",
            "".join(f"line {i}\n" for i in range(600)),
        )
        frag = DocumentationSource().collect(_request(tmp_path))
        assert frag is not None
        assert "line 499\n" in frag.content
        assert "line 500" not in frag.content

    def test_total_size_truncated(self, tmp_path: Path) -> None:
        chunk = ("x" * 99 + "\n") * 200
        for name in ("a.md", "b.md", "c.md", "d.md", "e.md"):
            _write(tmp_path / name, chunk)
        frag = DocumentationSource().collect(_request(tmp_path))
        assert frag is not None
        assert frag.content.endswith(TRUNCATION_MARKER)
        assert "## d.md" not in frag.content

    def test_blank_docs_give_nothing(self, tmp_path: Path) -> None:
        _write(tmp_path / "README.md", "   \n")
        assert DocumentationSource().collect(_request(tmp_path)) is None

    def test_missing_project(self, tmp_path: Path) -> None:
        assert DocumentationSource().collect(_request(tmp_path / "nope")) is None
        assert DocumentationSource().collect(_request(None)) is None

    def test_applicability(self) -> None:
        source = DocumentationSource()
        assert source.is_applicable(_request(None))
        assert source.is_applicable(
            _request(None, task_type=TaskType.CODE_GENERATION)
        )
        assert not source.is_applicable(
            _request(None, task_type=TaskType.BUG_FIXING)
        )
