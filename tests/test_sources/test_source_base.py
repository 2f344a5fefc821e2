"""Tests for the source contract and its defaults."""

from __future__ import annotations

from contextsmith.constants import (
    DEFAULT_SOURCE_COST,
    DEFAULT_SOURCE_PRIORITY,
    DEFAULT_SOURCE_VERSION,
    SourceKind,
)
from contextsmith.models import ContextRequest, Fragment
from contextsmith.sources import (
    CodeStructureSource,
    DependencySource,
    DocumentationSource,
    KeywordSearchSource,
    RuntimeErrorSource,
    VCSHistorySource,
    default_sources,
)
from contextsmith.sources.base import BaseSource, ContextSource, source_name


class Minimal(BaseSource):
    description = "does nothing"

    def collect(self, request: ContextRequest) -> Fragment | None:
        return None


class Duck:
    """Satisfies the protocol without inheriting from BaseSource."""

    def is_applicable(self, request: ContextRequest) -> bool:
        return True

    def collect(self, request: ContextRequest) -> Fragment | None:
        return None

    def priority(self) -> int:
        return 1

    def estimated_cost(self) -> int:
        return 1

    def metadata(self) -> object:
        raise RuntimeError("no metadata")


class TestBaseSource:
    def test_defaults(self) -> None:
        source = Minimal()
        assert source.is_applicable(ContextRequest(task_description="x"))
        assert source.priority() == DEFAULT_SOURCE_PRIORITY
        assert source.estimated_cost() == DEFAULT_SOURCE_COST

    def test_metadata_uses_class_attributes(self) -> None:
        meta = Minimal().metadata()
        assert meta.name == "Minimal"
        assert meta.description == "does nothing"
        assert meta.version == DEFAULT_SOURCE_VERSION
        assert meta.kind == SourceKind.STATIC

    def test_satisfies_protocol(self) -> None:
        assert isinstance(Minimal(), ContextSource)


class TestSourceName:
    def test_from_metadata(self) -> None:
        assert source_name(Minimal()) == "Minimal"

    def test_falls_back_to_class_name(self) -> None:
        duck = Duck()
        assert isinstance(duck, ContextSource)
        assert source_name(duck) == "Duck"


def test_default_sources() -> None:
    sources = default_sources()
    assert [type(s) for s in sources] == [
        RuntimeErrorSource,
        CodeStructureSource,
        DependencySource,
        KeywordSearchSource,
        DocumentationSource,
        VCSHistorySource,
    ]
    assert all(isinstance(s, ContextSource) for s in sources)
    names = [s.metadata().name for s in sources]
    assert len(set(names)) == len(names)
