"""Bounded, relevance-ranked context assembly from pluggable sources."""

from contextsmith.config import Settings, load_settings
from contextsmith.constants import ContextScope, ContextType, TaskType
from contextsmith.models import (
    AssemblyResult,
    ContextMetrics,
    ContextPackage,
    ContextRequest,
    Fragment,
)
from contextsmith.pipeline import ContextEngine
from contextsmith.sources import BaseSource, ContextSource

__version__ = "0.1.0"

__all__ = [
    "AssemblyResult",
    "BaseSource",
    "ContextEngine",
    "ContextMetrics",
    "ContextPackage",
    "ContextRequest",
    "ContextScope",
    "ContextSource",
    "ContextType",
    "Fragment",
    "Settings",
    "TaskType",
    "load_settings",
]
