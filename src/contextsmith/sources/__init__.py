"""Context sources: the plugin contract, registry and built-ins."""

from contextsmith.sources.base import (
    BaseSource,
    ContextSource,
    SourceMetadata,
    source_name,
)
from contextsmith.sources.code_structure import CodeStructureSource
from contextsmith.sources.dependencies import DependencySource
from contextsmith.sources.documentation import DocumentationSource
from contextsmith.sources.experience import (
    Experience,
    ExperienceSource,
    ExperienceStore,
    InMemoryExperienceStore,
)
from contextsmith.sources.keyword_search import KeywordSearchSource
from contextsmith.sources.registry import SourceRegistry
from contextsmith.sources.runtime_errors import RuntimeErrorSource
from contextsmith.sources.vcs_history import VCSHistorySource

__all__ = [
    "BaseSource",
    "CodeStructureSource",
    "ContextSource",
    "DependencySource",
    "DocumentationSource",
    "Experience",
    "ExperienceSource",
    "ExperienceStore",
    "InMemoryExperienceStore",
    "KeywordSearchSource",
    "RuntimeErrorSource",
    "SourceMetadata",
    "SourceRegistry",
    "VCSHistorySource",
    "default_sources",
    "source_name",
]


def default_sources() -> list[ContextSource]:
    """The file- and log-reading built-ins, ready to register."""
    return [
        RuntimeErrorSource(),
        CodeStructureSource(),
        DependencySource(),
        KeywordSearchSource(),
        DocumentationSource(),
        VCSHistorySource(),
    ]
