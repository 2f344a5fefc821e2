"""Outline of classes and functions in the file under work."""

from __future__ import annotations

import logging
from pathlib import Path

import tree_sitter

from contextsmith.constants import ContextType, SourceKind, TaskType
from contextsmith.models import ContextRequest, Fragment
from contextsmith.sources._files import (
    get_parser,
    language_for,
    read_text,
    resolve_param_path,
)
from contextsmith.sources.base import BaseSource

logger = logging.getLogger(__name__)

_APPLICABLE_TASKS = frozenset({
    TaskType.DOCUMENTATION,
    TaskType.EXPLANATION,
    TaskType.TEST_GENERATION,
    TaskType.DESIGN,
    TaskType.ARCHITECTURE_REVIEW,
})

# Node types that open an outline entry, per language.
_OUTLINE_NODE_TYPES: dict[str, dict[str, str]] = {
    "python": {
        "function_definition": "def",
        "class_definition": "class",
    },
}


class CodeStructureSource(BaseSource):
    """Signature outline of ``parameters["file_path"]`` via tree-sitter."""

    description = "Class and function signatures of the target file"
    kind = SourceKind.STATIC

    def is_applicable(self, request: ContextRequest) -> bool:
        return (
            request.task_type.is_code_task
            or request.task_type in _APPLICABLE_TASKS
        )

    def priority(self) -> int:
        return 80

    def collect(self, request: ContextRequest) -> Fragment | None:
        path = resolve_param_path(request.parameter("file_path"))
        if path is None or not path.is_file():
            return None

        language = language_for(path)
        parser = get_parser(language) if language else None
        if language is None or parser is None:
            logger.debug("event=outline_unsupported path=%s", path)
            return None

        source = read_text(path)
        if source is None:
            return None

        tree = parser.parse(source.encode("utf-8"))
        entries = _outline(tree.root_node, _OUTLINE_NODE_TYPES[language])
        if not entries:
            return None

        return Fragment(
            source=self.metadata().name,
            type=ContextType.CODE_STRUCTURE,
            content=_render(path, entries),
            aspects=frozenset({"structure", "api", "code"}),
            relevance_score=0.8,
            metadata={"file": path.name, "symbols": len(entries)},
        )


def _outline(
    node: tree_sitter.Node, node_types: dict[str, str], depth: int = 0
) -> list[tuple[int, str]]:
    """(depth, signature) pairs in source order, nested classes indented."""
    entries: list[tuple[int, str]] = []
    for child in node.children:
        target = child
        if child.type == "decorated_definition":
            target = child.child_by_field_name("definition") or child
        if target.type in node_types:
            entries.append((depth, _signature(target)))
            body = target.child_by_field_name("body")
            if body is not None and target.type == "class_definition":
                entries.extend(_outline(body, node_types, depth + 1))
    return entries


def _signature(node: tree_sitter.Node) -> str:
    """Declaration header up to (not including) the body."""
    raw = node.text or b""
    body = node.child_by_field_name("body")
    if body is not None:
        raw = raw[: body.start_byte - node.start_byte]
    header = " ".join(raw.decode("utf-8", errors="replace").split())
    return header.rstrip(":").rstrip()


def _render(path: Path, entries: list[tuple[int, str]]) -> str:
    lines = [f"File: {path.name}"]
    lines.extend(f"{'    ' * depth}{sig}" for depth, sig in entries)
    return "\n".join(lines)
