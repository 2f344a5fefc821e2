"""Quality metrics over an assembled package."""

from __future__ import annotations

from collections.abc import Sequence

from contextsmith.constants import METRIC_PRECISION
from contextsmith.models import ContextMetrics, ContextPackage


def mean_relevance(package: ContextPackage) -> float:
    if not package.fragments:
        return 0.0
    total = sum(f.relevance_score for f in package.fragments)
    return total / len(package.fragments)


def aspect_coverage(
    package: ContextPackage, required_aspects: Sequence[str]
) -> float:
    """Fraction of ``required_aspects`` present in any selected fragment.

    With nothing required, coverage is trivially complete (1.0).
    """
    required = set(required_aspects)
    if not required:
        return 1.0
    covered: set[str] = set()
    for fragment in package.fragments:
        covered |= fragment.aspects
    return len(required & covered) / len(required)


def compute_metrics(
    package: ContextPackage, required_aspects: Sequence[str] = ()
) -> ContextMetrics:
    """Summarize ``package``; ratios are rounded to one decimal."""
    return ContextMetrics.strict(
        total_size=package.estimated_size,
        fragment_count=len(package.fragments),
        relevance=round(mean_relevance(package), METRIC_PRECISION),
        coverage=round(
            aspect_coverage(package, required_aspects), METRIC_PRECISION
        ),
    )
