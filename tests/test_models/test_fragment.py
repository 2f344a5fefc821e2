"""Tests for the Fragment entity."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from contextsmith.constants import ContextType
from contextsmith.models import Fragment


class TestConstruction:
    def test_id_generated_when_absent(self) -> None:
        a = Fragment(source="s", type=ContextType.CODE_STRUCTURE, content="x")
        b = Fragment(source="s", type=ContextType.CODE_STRUCTURE, content="x")
        assert a.id
        assert a.id != b.id

    def test_size_estimated_from_content(self) -> None:
        f = Fragment(
            source="s", type=ContextType.CODE_STRUCTURE, content="a" * 40
        )
        assert f.estimated_size == 10

    def test_explicit_size_kept(self) -> None:
        f = Fragment(
            source="s",
            type=ContextType.CODE_STRUCTURE,
            content="a" * 40,
            estimated_size=3,
        )
        assert f.estimated_size == 3

    @pytest.mark.parametrize("score", [-0.1, 1.01])
    def test_relevance_out_of_range_rejected(self, score: float) -> None:
        with pytest.raises(ValidationError):
            Fragment(
                source="s",
                type=ContextType.CODE_STRUCTURE,
                content="x",
                relevance_score=score,
            )

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Fragment(
                source="s",
                type=ContextType.CODE_STRUCTURE,
                content="x",
                estimated_size=-1,
            )

    def test_content_required(self) -> None:
        with pytest.raises(ValidationError):
            Fragment(source="s", type=ContextType.CODE_STRUCTURE)  # type: ignore[call-arg]

    def test_naive_timestamp_treated_as_utc(self) -> None:
        naive = datetime(2024, 1, 1, 12, 0)
        f = Fragment(
            source="s",
            type=ContextType.CODE_STRUCTURE,
            content="x",
            timestamp=naive,
        )
        assert f.timestamp.tzinfo is UTC


class TestImmutability:
    def test_assignment_rejected(
        self, make_fragment: Callable[..., Fragment]
    ) -> None:
        f = make_fragment()
        with pytest.raises(ValidationError):
            f.content = "changed"  # type: ignore[misc]

    def test_evolve_returns_new_fragment(
        self, make_fragment: Callable[..., Fragment]
    ) -> None:
        f = make_fragment(relevance_score=0.4)
        g = f.evolve(relevance_score=0.9)
        assert f.relevance_score == 0.4
        assert g.relevance_score == 0.9
        assert g.id == f.id

    def test_evolve_content_reestimates_size(
        self, make_fragment: Callable[..., Fragment]
    ) -> None:
        f = make_fragment(content="a" * 8)
        g = f.evolve(content="b" * 80)
        assert g.estimated_size == 20

    def test_evolve_validates(
        self, make_fragment: Callable[..., Fragment]
    ) -> None:
        with pytest.raises(ValidationError):
            make_fragment().evolve(relevance_score=2.0)

    def test_with_metadata_merges(
        self, make_fragment: Callable[..., Fragment]
    ) -> None:
        f = make_fragment(metadata={"a": 1})
        g = f.with_metadata(dedup="kept")
        assert g.metadata == {"a": 1, "dedup": "kept"}
        assert f.metadata == {"a": 1}

    def test_metadata_read_only(
        self, make_fragment: Callable[..., Fragment]
    ) -> None:
        source = {"a": 1}
        f = make_fragment(metadata=source)
        with pytest.raises(TypeError):
            f.metadata["a"] = 2  # type: ignore[index]
        source["a"] = 3
        assert f.metadata == {"a": 1}

    def test_default_metadata_read_only(
        self, make_fragment: Callable[..., Fragment]
    ) -> None:
        with pytest.raises(TypeError):
            make_fragment().metadata["k"] = "v"  # type: ignore[index]

    def test_dump_gives_plain_metadata(
        self, make_fragment: Callable[..., Fragment]
    ) -> None:
        dumped = make_fragment(metadata={"a": 1}).model_dump()
        assert type(dumped["metadata"]) is dict
        assert dumped["metadata"] == {"a": 1}


class TestAge:
    def test_age_in_whole_minutes(
        self, make_fragment: Callable[..., Fragment]
    ) -> None:
        now = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        f = make_fragment(timestamp=now - timedelta(minutes=90, seconds=30))
        assert f.age_minutes(now) == 90

    def test_future_timestamp_is_zero_age(
        self, make_fragment: Callable[..., Fragment]
    ) -> None:
        now = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        f = make_fragment(timestamp=now + timedelta(hours=1))
        assert f.age_minutes(now) == 0
