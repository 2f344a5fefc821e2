"""Filesystem and parser helpers shared by the file-reading sources."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path

import pathspec
import tree_sitter

from contextsmith.constants import EXTENSION_MAP, GRAMMAR_MODULES, SKIP_DIRS

logger = logging.getLogger(__name__)


def read_text(path: Path, max_lines: int | None = None) -> str | None:
    """Read a file as UTF-8 text, returning None on failure."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            if max_lines is None:
                return f.read()
            lines: list[str] = []
            for i, line in enumerate(f):
                if i >= max_lines:
                    break
                lines.append(line)
            return "".join(lines)
    except OSError:
        logger.debug("event=read_failed path=%s", path)
        return None


def resolve_param_path(value: object) -> Path | None:
    """Turn a request parameter into a path, or None if unusable."""
    if not isinstance(value, (str, Path)) or not str(value).strip():
        return None
    return Path(value)


def language_for(path: Path) -> str | None:
    return EXTENSION_MAP.get(path.suffix.lower())


_parser_cache: dict[str, tree_sitter.Parser] = {}


def get_parser(language: str) -> tree_sitter.Parser | None:
    """Get or create a cached tree-sitter parser for the language."""
    if language in _parser_cache:
        return _parser_cache[language]

    module_name = GRAMMAR_MODULES.get(language)
    if module_name is None:
        return None

    try:
        mod = importlib.import_module(module_name)
        capsule: object = mod.language()
        lang = tree_sitter.Language(capsule)
        parser = tree_sitter.Parser(lang)
        _parser_cache[language] = parser
        return parser
    except (ImportError, AttributeError):
        logger.warning("event=grammar_unavailable language=%s", language)
        return None


def load_gitignore(root: Path) -> pathspec.PathSpec:
    """Load .gitignore patterns using pathspec."""
    gitignore = root / ".gitignore"
    if not gitignore.exists():
        return pathspec.PathSpec.from_lines("gitignore", [])
    try:
        with open(gitignore, encoding="utf-8") as f:
            return pathspec.PathSpec.from_lines("gitignore", f)
    except OSError:
        return pathspec.PathSpec.from_lines("gitignore", [])


def walk_files(
    root: Path,
    max_depth: int | None = None,
    ignore: pathspec.PathSpec | None = None,
) -> list[Path]:
    """Sorted walk of ``root`` honoring .gitignore and skip dirs.

    Hidden directories are skipped, as are symlinks resolving outside
    ``root``. ``max_depth`` counts directory levels below ``root``.
    """
    spec = ignore if ignore is not None else load_gitignore(root)
    resolved_root = root.resolve()
    files: list[Path] = []

    def _walk(current: Path, depth: int) -> None:
        try:
            entries = sorted(current.iterdir())
        except OSError:
            return
        for item in entries:
            if item.is_symlink():
                if not item.resolve().is_relative_to(resolved_root):
                    continue
            rel = item.relative_to(root).as_posix()
            if item.is_dir():
                if item.name.startswith(".") or item.name in SKIP_DIRS:
                    continue
                if max_depth is not None and depth >= max_depth:
                    continue
                if spec.match_file(rel + "/"):
                    continue
                _walk(item, depth + 1)
            elif item.is_file() and not spec.match_file(rel):
                files.append(item)

    _walk(root, 0)
    return files
