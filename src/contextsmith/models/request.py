"""What the caller wants context for."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)

from contextsmith.constants import (
    DEFAULT_TOKEN_BUDGET,
    ContextScope,
    ContextType,
    TaskType,
)


class ContextRequest(BaseModel):
    """An immutable description of one assembly request.

    ``parameters`` carries source-specific inputs such as
    ``file_path``, ``project_path`` or ``error_log``.
    A zero ``token_budget`` is accepted and yields an empty selection.
    """

    model_config = ConfigDict(frozen=True)

    task_description: str
    task_type: TaskType = TaskType.GENERAL
    focus_areas: frozenset[str] = frozenset()
    token_budget: int = Field(default=DEFAULT_TOKEN_BUDGET, ge=0)
    preferred_types: frozenset[ContextType] = frozenset()
    excluded_types: frozenset[ContextType] = frozenset()
    scope: ContextScope = ContextScope.LOCAL
    parameters: Mapping[str, Any] = Field(
        default_factory=lambda: dict[str, Any](), validate_default=True
    )

    @field_validator("parameters")
    @classmethod
    def _read_only_parameters(
        cls, v: Mapping[str, Any]
    ) -> Mapping[str, Any]:
        return MappingProxyType(dict(v))

    @field_serializer("parameters")
    def _dump_parameters(self, v: Mapping[str, Any]) -> dict[str, Any]:
        return dict(v)

    def parameter(self, key: str, default: Any = None) -> Any:
        return self.parameters.get(key, default)
