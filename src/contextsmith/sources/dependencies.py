"""Imports of the file under work, grouped by origin."""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass, field

import tree_sitter

from contextsmith.constants import ContextScope, ContextType, SourceKind
from contextsmith.models import ContextRequest, Fragment
from contextsmith.sources._files import (
    get_parser,
    language_for,
    read_text,
    resolve_param_path,
)
from contextsmith.sources.base import BaseSource

logger = logging.getLogger(__name__)

_IMPORT_NODE_TYPES: dict[str, set[str]] = {
    "python": {"import_statement", "import_from_statement"},
}

_FROM_IMPORT = re.compile(r"from\s+([\w.]+)\s+import\s+(.+)", re.DOTALL)
_PLAIN_IMPORT = re.compile(r"import\s+(.+)", re.DOTALL)


@dataclass
class ImportedModule:
    """One imported module and the names pulled from it."""

    module: str
    symbols: list[str] = field(default_factory=lambda: list[str]())

    @property
    def origin(self) -> str:
        if self.module.startswith("."):
            return "local"
        top = self.module.split(".")[0]
        return "stdlib" if top in sys.stdlib_module_names else "third_party"


class DependencySource(BaseSource):
    """Import statements of ``parameters["file_path"]``."""

    description = "Modules imported by the target file"
    kind = SourceKind.STATIC

    def is_applicable(self, request: ContextRequest) -> bool:
        return request.scope.at_least(ContextScope.LOCAL)

    def priority(self) -> int:
        return 70

    def collect(self, request: ContextRequest) -> Fragment | None:
        path = resolve_param_path(request.parameter("file_path"))
        if path is None or not path.is_file():
            return None

        language = language_for(path)
        parser = get_parser(language) if language else None
        if language is None or parser is None:
            return None

        source = read_text(path)
        if source is None:
            return None

        tree = parser.parse(source.encode("utf-8"))
        imports: list[ImportedModule] = []
        _walk_imports(tree.root_node, _IMPORT_NODE_TYPES[language], imports)
        if not imports:
            return None

        return Fragment(
            source=self.metadata().name,
            type=ContextType.CODE_DEPENDENCIES,
            content=_render(imports),
            aspects=frozenset({"dependencies", "imports"}),
            relevance_score=0.7,
            metadata={"file": path.name, "imports": len(imports)},
        )


def _walk_imports(
    node: tree_sitter.Node,
    import_types: set[str],
    imports: list[ImportedModule],
) -> None:
    """Recursively walk the AST collecting imports."""
    if node.type in import_types:
        text = node.text.decode("utf-8") if node.text else ""
        imports.extend(parse_python_import(text))
        return
    for child in node.children:
        _walk_imports(child, import_types, imports)


def parse_python_import(text: str) -> list[ImportedModule]:
    """Parse one ``import``/``from ... import`` statement."""
    text = " ".join(text.split())

    m = _FROM_IMPORT.match(text)
    if m:
        names = m.group(2).strip().strip("()")
        symbols = [
            s.strip().split(" as ")[0]
            for s in names.split(",")
            if s.strip()
        ]
        return [ImportedModule(module=m.group(1), symbols=symbols)]

    m = _PLAIN_IMPORT.match(text)
    if m:
        return [
            ImportedModule(module=mod.strip().split(" as ")[0])
            for mod in m.group(1).split(",")
            if mod.strip()
        ]
    return []


def _render(imports: list[ImportedModule]) -> str:
    lines: list[str] = []
    for origin in ("stdlib", "third_party", "local"):
        group = [i for i in imports if i.origin == origin]
        if not group:
            continue
        lines.append(f"{origin}:")
        for imp in group:
            suffix = f" ({', '.join(imp.symbols)})" if imp.symbols else ""
            lines.append(f"  {imp.module}{suffix}")
    return "\n".join(lines)
