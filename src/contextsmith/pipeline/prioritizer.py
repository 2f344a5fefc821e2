"""Score fragments and select a subset that fits the token budget."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from contextsmith.config import Settings
from contextsmith.constants import (
    MIN_FRAGMENT_COST,
    RECENCY_DECAY_MINUTES,
    DependencyResolution,
    ScoreWeight,
)
from contextsmith.models import ContextRequest, Fragment

logger = logging.getLogger(__name__)


def score_fragment(
    fragment: Fragment, request: ContextRequest, now: datetime
) -> float:
    """Weighted priority score in [0, 1].

    0.4 x relevance + 0.3 x preferred-type bonus
    + 0.2 x focus-area overlap + 0.1 x recency, where recency decays
    as ``1 / (1 + age_minutes / 60)``.
    """
    score = fragment.relevance_score * ScoreWeight.RELEVANCE

    if fragment.type in request.preferred_types:
        score += ScoreWeight.PREFERRED_TYPE

    matches = len(fragment.aspects & request.focus_areas)
    score += (
        matches / max(1, len(request.focus_areas))
    ) * ScoreWeight.FOCUS_MATCH

    recency = 1.0 / (
        1.0 + fragment.age_minutes(now) / RECENCY_DECAY_MINUTES
    )
    score += recency * ScoreWeight.RECENCY

    return score


@dataclass
class Selection:
    """Outcome of the budget walk, in acceptance order."""

    fragments: list[Fragment] = field(
        default_factory=lambda: list[Fragment]()
    )
    used: int = 0
    reserved_admissions: int = 0
    skipped_dependencies: int = 0


class ContextPrioritizer:
    """Budget-constrained greedy selection with dependency gating.

    Fragments are walked once in descending score order (stable, so
    collection order breaks ties) and admitted while the running total
    stays within the budget. ``reserved_ratio`` of the budget is the
    reserved slice; admissions that reach into it are counted in
    :attr:`Selection.reserved_admissions`. The total never exceeds the
    budget.

    With :attr:`DependencyResolution.SINGLE_PASS` a fragment whose
    dependency has not been selected *yet* is skipped for good, even
    if that dependency appears later in score order. ``TOPOLOGICAL``
    first moves dependencies ahead of their dependents.
    """

    def __init__(
        self,
        reserved_ratio: float = 0.1,
        resolution: DependencyResolution = DependencyResolution.SINGLE_PASS,
    ) -> None:
        self._reserved_ratio = reserved_ratio
        self._resolution = resolution

    @classmethod
    def from_settings(cls, settings: Settings) -> ContextPrioritizer:
        return cls(
            reserved_ratio=settings.reserved_budget_ratio,
            resolution=settings.dependency_resolution,
        )

    def prioritize(
        self,
        fragments: Sequence[Fragment],
        request: ContextRequest,
        now: datetime | None = None,
    ) -> list[Fragment]:
        return self.select(fragments, request, now).fragments

    def select(
        self,
        fragments: Sequence[Fragment],
        request: ContextRequest,
        now: datetime | None = None,
    ) -> Selection:
        """Score, order and walk ``fragments`` against the budget."""
        now = now or datetime.now(UTC)
        if not fragments:
            return Selection()

        scores: list[float] = []
        for fragment in fragments:
            try:
                scores.append(score_fragment(fragment, request, now))
            except Exception:
                logger.warning(
                    "event=score_failed fragment=%s action=score_zero",
                    getattr(fragment, "id", "?"),
                    exc_info=True,
                )
                scores.append(0.0)

        order = sorted(range(len(fragments)), key=lambda i: -scores[i])
        if self._resolution == DependencyResolution.TOPOLOGICAL:
            order = _dependencies_first(order, fragments)

        selection = self._walk(order, fragments, scores, request.token_budget)
        logger.debug(
            "event=prioritized candidates=%d selected=%d used=%d budget=%d"
            " reserved_admissions=%d",
            len(fragments),
            len(selection.fragments),
            selection.used,
            request.token_budget,
            selection.reserved_admissions,
        )
        return selection

    def _walk(
        self,
        order: list[int],
        fragments: Sequence[Fragment],
        scores: list[float],
        budget: int,
    ) -> Selection:
        reserved = int(budget * self._reserved_ratio)
        available = budget - reserved
        selection = Selection()
        selected_ids: set[str] = set()

        for i in order:
            fragment = fragments[i]
            try:
                if not all(d in selected_ids for d in fragment.dependencies):
                    selection.skipped_dependencies += 1
                    continue

                cost = max(MIN_FRAGMENT_COST, fragment.estimated_size)
                projected = selection.used + cost
                if projected > budget:
                    # The reserved slice never lifts the total past budget
                    continue
                if projected > available:
                    selection.reserved_admissions += 1

                selection.fragments.append(fragment)
                selected_ids.add(fragment.id)
                selection.used = projected
            except Exception:
                logger.warning(
                    "event=budget_walk_failed fragment=%s action=skip",
                    getattr(fragment, "id", "?"),
                    exc_info=True,
                )
                continue

            if selection.used >= budget:
                break

        return selection


def _dependencies_first(
    order: list[int], fragments: Sequence[Fragment]
) -> list[int]:
    """Reorder so in-list dependencies precede dependents.

    Depth-first over score order: before emitting a fragment, emit its
    not-yet-emitted dependencies (recursively). Cycles are broken at the
    point of re-entry; dependencies outside the list are ignored here
    and still gate selection in the walk.
    """
    index_by_id = {f.id: i for i, f in enumerate(fragments)}
    emitted: set[int] = set()
    visiting: set[int] = set()
    result: list[int] = []

    def visit(i: int) -> None:
        if i in emitted or i in visiting:
            return
        visiting.add(i)
        for dep in fragments[i].dependencies:
            j = index_by_id.get(dep)
            if j is not None:
                visit(j)
        visiting.discard(i)
        emitted.add(i)
        result.append(i)

    for i in order:
        visit(i)
    return result
