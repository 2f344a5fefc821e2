"""Drop fragments that are excluded, weak, duplicated, stale or vetoed."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import TypeAlias

from contextsmith.config import Settings
from contextsmith.models import ContextRequest, Fragment

logger = logging.getLogger(__name__)

FilterRule: TypeAlias = Callable[[Fragment, ContextRequest], bool]
"""Custom predicate: return False to drop the fragment."""


class ContextFilter:
    """Pipeline of independent predicates, short-circuiting per fragment.

    Evaluation order per fragment:

    1. type in ``request.excluded_types`` → drop
    2. relevance below the configured threshold → drop
    3. content already seen earlier in this batch → drop (first wins)
    4. older than the configured max age → drop
    5. any custom rule returns False → drop

    Only fragments that reach step 3 register their content, so a
    fragment dropped for its type never shadows a later duplicate.
    An exception while evaluating one fragment drops that fragment
    and processing continues.
    """

    def __init__(
        self,
        min_relevance: float = 0.3,
        max_age: timedelta | None = None,
        rules: Sequence[FilterRule] = (),
    ) -> None:
        self._min_relevance = min_relevance
        self._max_age = max_age
        self._rules = tuple(rules)

    @classmethod
    def from_settings(
        cls, settings: Settings, rules: Sequence[FilterRule] = ()
    ) -> ContextFilter:
        return cls(
            min_relevance=settings.min_relevance_threshold,
            max_age=settings.context_max_age,
            rules=rules,
        )

    def filter(
        self,
        fragments: Sequence[Fragment],
        request: ContextRequest,
        now: datetime | None = None,
    ) -> list[Fragment]:
        """Return the surviving fragments in their original order."""
        now = now or datetime.now(UTC)
        seen: set[str] = set()
        kept: list[Fragment] = []

        for fragment in fragments:
            try:
                if self._accept(fragment, request, seen, now):
                    kept.append(fragment)
            except Exception:
                logger.warning(
                    "event=filter_fragment_failed fragment=%s action=drop",
                    getattr(fragment, "id", "?"),
                    exc_info=True,
                )

        logger.debug(
            "event=filtered before=%d after=%d", len(fragments), len(kept)
        )
        return kept

    def _accept(
        self,
        fragment: Fragment,
        request: ContextRequest,
        seen: set[str],
        now: datetime,
    ) -> bool:
        if fragment.type in request.excluded_types:
            return False
        if fragment.relevance_score < self._min_relevance:
            return False
        if fragment.content in seen:
            return False
        seen.add(fragment.content)
        if self._is_stale(fragment, now):
            return False
        return all(rule(fragment, request) for rule in self._rules)

    def _is_stale(self, fragment: Fragment, now: datetime) -> bool:
        if self._max_age is None:
            return False
        return now - fragment.timestamp > self._max_age
