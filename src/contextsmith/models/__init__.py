"""Data entities flowing through the assembly pipeline."""

from contextsmith.models.fragment import Fragment
from contextsmith.models.package import (
    AssemblyResult,
    ContextMetrics,
    ContextPackage,
    ContextSection,
)
from contextsmith.models.request import ContextRequest

__all__ = [
    "AssemblyResult",
    "ContextMetrics",
    "ContextPackage",
    "ContextRequest",
    "ContextSection",
    "Fragment",
]
