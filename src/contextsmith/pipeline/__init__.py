"""Assembly pipeline stages and the engine that drives them."""

from contextsmith.pipeline.bounds import ResourceBounds, estimate_memory
from contextsmith.pipeline.collector import CollectionOutcome, SourceCollector
from contextsmith.pipeline.engine import ContextEngine
from contextsmith.pipeline.filter import ContextFilter, FilterRule
from contextsmith.pipeline.formatter import TYPE_ORDER, ContextFormatter
from contextsmith.pipeline.metrics import compute_metrics
from contextsmith.pipeline.prioritizer import (
    ContextPrioritizer,
    Selection,
    score_fragment,
)

__all__ = [
    "TYPE_ORDER",
    "CollectionOutcome",
    "ContextEngine",
    "ContextFilter",
    "ContextFormatter",
    "ContextPrioritizer",
    "FilterRule",
    "ResourceBounds",
    "Selection",
    "SourceCollector",
    "compute_metrics",
    "estimate_memory",
    "score_fragment",
]
