"""README, changelog and docs/ contents of the project."""

from __future__ import annotations

import logging
from pathlib import Path

from contextsmith.constants import ContextType, SourceKind, TaskType
from contextsmith.models import ContextRequest, Fragment
from contextsmith.sources._files import (
    load_gitignore,
    read_text,
    resolve_param_path,
    walk_files,
)
from contextsmith.sources.base import BaseSource

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 50 * 1024
MAX_FILES = 20
MAX_LINES_PER_FILE = 500
DOCS_MAX_DEPTH = 2
TRUNCATION_MARKER = "\n\n[Content truncated due to size limit]"

_DOC_PREFIXES = ("readme", "changelog", "contributing")
_DOC_EXTENSIONS = frozenset({".md", ".txt", ".rst", ".adoc", ".html"})
_DOCS_DIRS = ("docs", "documentation")

_APPLICABLE_TASKS = frozenset({
    TaskType.DOCUMENTATION,
    TaskType.EXPLANATION,
    TaskType.CODE_GENERATION,
})


def is_documentation_file(path: Path) -> bool:
    name = path.name.lower()
    return name.startswith(_DOC_PREFIXES) or path.suffix.lower() in (
        _DOC_EXTENSIONS
    )


class DocumentationSource(BaseSource):
    """Concatenated project docs under ``parameters["project_path"]``.

    Top-level documentation files come first, then ``docs/`` up to two
    levels deep, all honoring ``.gitignore``. Reading stops at
    :data:`MAX_FILES` files; each file is cut at
    :data:`MAX_LINES_PER_FILE` lines and the whole at
    :data:`MAX_CONTENT_CHARS` with a truncation marker.
    """

    description = "Project README, changelog and docs/ contents"
    kind = SourceKind.STATIC

    def is_applicable(self, request: ContextRequest) -> bool:
        return request.task_type in _APPLICABLE_TASKS

    def priority(self) -> int:
        return 60

    def estimated_cost(self) -> int:
        return 200

    def collect(self, request: ContextRequest) -> Fragment | None:
        root = resolve_param_path(request.parameter("project_path"))
        if root is None or not root.is_dir():
            logger.debug("event=docs_no_project path=%s", root)
            return None

        files = find_documentation_files(root)
        content = self._concatenate(root, files)
        if not content.strip():
            return None

        return Fragment(
            source=self.metadata().name,
            type=ContextType.PROJECT_DOCUMENTATION,
            content=content,
            aspects=frozenset({"documentation", "comments", "readme"}),
            relevance_score=0.6,
            metadata={
                "files_scanned": len(files),
                "source_path": str(root),
            },
        )

    def _concatenate(self, root: Path, files: list[Path]) -> str:
        parts: list[str] = []
        total = 0
        for path in files:
            if total >= MAX_CONTENT_CHARS:
                parts.append(TRUNCATION_MARKER)
                break
            text = read_text(path, max_lines=MAX_LINES_PER_FILE)
            if text is None or not text.strip():
                continue
            block = f"## {path.relative_to(root).as_posix()}\n\n{text}\n\n---\n\n"
            parts.append(block)
            total += len(block)
        return "".join(parts)


def find_documentation_files(root: Path) -> list[Path]:
    """Top-level doc files, then files under ``docs/``; capped at MAX_FILES."""
    ignore = load_gitignore(root)
    found = [
        p
        for p in walk_files(root, max_depth=0, ignore=ignore)
        if is_documentation_file(p)
    ]
    for dirname in _DOCS_DIRS:
        docs_dir = root / dirname
        if not docs_dir.is_dir():
            continue
        if ignore.match_file(f"{dirname}/"):
            continue
        found.extend(
            p
            for p in walk_files(docs_dir, max_depth=DOCS_MAX_DEPTH - 1)
            if is_documentation_file(p)
            and not ignore.match_file(p.relative_to(root).as_posix())
        )
    return found[:MAX_FILES]
