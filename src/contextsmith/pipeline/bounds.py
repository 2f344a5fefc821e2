"""Per-request fragment-count and memory ceilings."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from contextsmith.constants import (
    BYTES_PER_ASPECT,
    BYTES_PER_CHAR,
    BYTES_PER_FRAGMENT_OVERHEAD,
    BYTES_PER_METADATA_ENTRY,
    DEFAULT_MAX_FRAGMENTS,
    DEFAULT_MAX_MEMORY_BYTES,
)
from contextsmith.models import Fragment

logger = logging.getLogger(__name__)


def estimate_fragment_memory(fragment: Fragment) -> int:
    return (
        len(fragment.content) * BYTES_PER_CHAR
        + len(fragment.metadata) * BYTES_PER_METADATA_ENTRY
        + len(fragment.aspects) * BYTES_PER_ASPECT
        + BYTES_PER_FRAGMENT_OVERHEAD
    )


def estimate_memory(fragments: Sequence[Fragment]) -> int:
    """Approximate in-memory footprint of a fragment batch, in bytes."""
    return sum(estimate_fragment_memory(f) for f in fragments)


@dataclass(frozen=True)
class ResourceBounds:
    """Ceilings applied between collection and filtering.

    When either ceiling is exceeded the batch is trimmed to the top
    ``max_fragments // 2`` by relevance. The trim is lossy and only
    happens under pressure.
    """

    max_fragments: int = DEFAULT_MAX_FRAGMENTS
    max_memory_bytes: int = DEFAULT_MAX_MEMORY_BYTES

    def exceeded(self, fragments: Sequence[Fragment]) -> bool:
        if len(fragments) > self.max_fragments:
            return True
        return estimate_memory(fragments) > self.max_memory_bytes

    def emergency_trim(self, fragments: Sequence[Fragment]) -> list[Fragment]:
        """Keep the most relevant half of the ceiling.

        ``sorted`` is stable, so equal relevance keeps collection order
        and the result is deterministic for a given input order.
        """
        keep = self.max_fragments // 2
        ranked = sorted(fragments, key=lambda f: f.relevance_score, reverse=True)
        trimmed = ranked[:keep]
        logger.warning(
            "event=emergency_trim before=%d after=%d max_fragments=%d"
            " max_memory_bytes=%d",
            len(fragments),
            len(trimmed),
            self.max_fragments,
            self.max_memory_bytes,
        )
        return trimmed
