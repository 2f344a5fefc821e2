"""Prior experience notes from an external knowledge store."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import UTC, datetime
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from contextsmith.constants import ContextType, SourceKind
from contextsmith.models import ContextRequest, Fragment
from contextsmith.sources.base import BaseSource
from contextsmith.sources.keyword_search import extract_keywords

logger = logging.getLogger(__name__)

MAX_EXPERIENCES = 5


class Experience(BaseModel):
    """A recorded lesson: what was tried, and how it turned out."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str
    description: str = ""
    approach: str = ""
    outcome: str = ""
    lessons_learned: tuple[str, ...] = ()
    tags: frozenset[str] = frozenset()
    recommended: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def matches(self, terms: set[str]) -> int:
        """Number of ``terms`` found in tags, title or description."""
        tags = {t.lower() for t in self.tags}
        text = f"{self.title} {self.description}".lower()
        return sum(1 for t in terms if t in tags or t in text)


class ExperienceStore(Protocol):
    """Read side of the experience/knowledge store collaborator."""

    def search(self, terms: set[str]) -> list[Experience]: ...


class InMemoryExperienceStore:
    """Dict-backed store for tests and embedding."""

    def __init__(self, experiences: list[Experience] | None = None) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, Experience] = {}
        for exp in experiences or []:
            self.add(exp)

    def add(self, experience: Experience) -> None:
        with self._lock:
            self._items[experience.id] = experience

    def search(self, terms: set[str]) -> list[Experience]:
        """Matching experiences: recommended first, then by match count."""
        with self._lock:
            items = list(self._items.values())
        hits = [(e, e.matches(terms)) for e in items]
        ranked = sorted(
            ((e, n) for e, n in hits if n > 0),
            key=lambda pair: (not pair[0].recommended, -pair[1]),
        )
        return [e for e, _ in ranked]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class ExperienceSource(BaseSource):
    """Looks up notes related to the request's focus areas and wording."""

    description = "Prior lessons recorded in the experience store"
    kind = SourceKind.EXTERNAL

    def __init__(
        self, store: ExperienceStore, max_results: int = MAX_EXPERIENCES
    ) -> None:
        self._store = store
        self._max_results = max_results

    def priority(self) -> int:
        return 55

    def collect(self, request: ContextRequest) -> Fragment | None:
        terms = {a.lower() for a in request.focus_areas}
        terms.update(extract_keywords(request.task_description))
        terms.add(request.task_type.value)
        if not terms:
            return None

        found = self._store.search(terms)[: self._max_results]
        if not found:
            return None

        blocks = [_render(e) for e in found]
        aspects = {"experience"} | {t for e in found for t in e.tags}
        return Fragment(
            source=self.metadata().name,
            type=ContextType.DOMAIN_BEST_PRACTICES,
            content="\n\n".join(blocks),
            aspects=frozenset(aspects),
            relevance_score=0.75 if any(e.recommended for e in found) else 0.6,
            metadata={"experiences": len(found)},
        )


def _render(experience: Experience) -> str:
    marker = " (recommended)" if experience.recommended else ""
    lines = [f"- {experience.title}{marker}"]
    if experience.description:
        lines.append(f"  {experience.description}")
    if experience.approach:
        lines.append(f"  Approach: {experience.approach}")
    if experience.outcome:
        lines.append(f"  Outcome: {experience.outcome}")
    lines.extend(f"  Lesson: {lesson}" for lesson in experience.lessons_learned)
    return "\n".join(lines)
