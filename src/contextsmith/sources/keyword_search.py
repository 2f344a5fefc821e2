"""Project files whose lines mention the task's keywords."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from contextsmith.constants import ContextScope, ContextType, SourceKind
from contextsmith.models import ContextRequest, Fragment
from contextsmith.sources._files import (
    language_for,
    read_text,
    resolve_param_path,
    walk_files,
)
from contextsmith.sources.base import BaseSource

logger = logging.getLogger(__name__)

MAX_FILES_SCANNED = 500
MAX_MATCHES = 20
MAX_FILE_BYTES = 256 * 1024

_STOP_WORDS = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "in", "on", "at",
    "to", "for", "of", "and", "or", "not", "with", "this", "that",
    "from", "by", "it", "what", "how", "does", "do", "can", "where",
    "which", "who", "when", "add", "fix", "make", "use", "into",
})


def extract_keywords(text: str) -> list[str]:
    """Meaningful words (>2 chars, not stop words), lowercased, first-seen order."""
    seen: dict[str, None] = {}
    for raw in text.split():
        word = raw.strip(".,;:!?()[]{}\"'`").lower()
        if len(word) > 2 and word not in _STOP_WORDS:
            seen.setdefault(word, None)
    return list(seen)


@dataclass(frozen=True)
class Match:
    path: str
    line_no: int
    line: str
    hits: int


class KeywordSearchSource(BaseSource):
    """Scan source files under ``parameters["project_path"]``.

    Lines are ranked by how many distinct task keywords they contain;
    relevance is the fraction of keywords found anywhere in the
    project, floored at 0.3 once anything matches.
    """

    description = "Keyword scan of project sources for the task description"
    kind = SourceKind.HYBRID

    def is_applicable(self, request: ContextRequest) -> bool:
        return request.scope.at_least(ContextScope.PROJECT)

    def priority(self) -> int:
        return 65

    def estimated_cost(self) -> int:
        return 300

    def collect(self, request: ContextRequest) -> Fragment | None:
        root = resolve_param_path(request.parameter("project_path"))
        if root is None or not root.is_dir():
            return None
        keywords = extract_keywords(request.task_description)
        if not keywords:
            return None

        matches, found = _scan(root, keywords)
        if not matches:
            return None

        matches.sort(key=lambda m: -m.hits)
        top = matches[:MAX_MATCHES]
        lines = [f"Matches for: {', '.join(keywords)}"]
        lines.extend(f"{m.path}:{m.line_no}: {m.line}" for m in top)
        relevance = max(0.3, round(len(found) / len(keywords), 2))

        return Fragment(
            source=self.metadata().name,
            type=ContextType.DOMAIN_EXAMPLES,
            content="\n".join(lines),
            aspects=frozenset({"examples", "patterns", "similar_code"}),
            relevance_score=min(1.0, relevance),
            metadata={
                "query": " ".join(keywords),
                "matches": len(matches),
            },
        )


def _scan(root: Path, keywords: list[str]) -> tuple[list[Match], set[str]]:
    matches: list[Match] = []
    found: set[str] = set()
    scanned = 0
    for path in walk_files(root):
        if language_for(path) is None:
            continue
        try:
            if path.stat().st_size > MAX_FILE_BYTES:
                continue
        except OSError:
            continue
        if scanned >= MAX_FILES_SCANNED:
            logger.debug("event=search_file_cap root=%s", root)
            break
        scanned += 1
        text = read_text(path)
        if text is None:
            continue
        rel = path.relative_to(root).as_posix()
        for i, line in enumerate(text.splitlines(), start=1):
            lower = line.lower()
            hit = {k for k in keywords if k in lower}
            if hit:
                found |= hit
                matches.append(Match(rel, i, line.strip(), len(hit)))
    return matches, found
