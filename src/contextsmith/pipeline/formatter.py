"""Group selected fragments into ordered, rendered sections."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from contextsmith.constants import (
    AssemblyState,
    ContextType,
    PackageStatus,
    TaskType,
)
from contextsmith.models import (
    ContextPackage,
    ContextRequest,
    ContextSection,
    Fragment,
)

logger = logging.getLogger(__name__)

_CODE_WRITING_ORDER = (
    ContextType.TASK_DESCRIPTION,
    ContextType.CODE_STRUCTURE,
    ContextType.DOMAIN_PATTERNS,
    ContextType.CODE_DEPENDENCIES,
    ContextType.DOMAIN_EXAMPLES,
    ContextType.PROJECT_CONFIGURATION,
)
_DEBUGGING_ORDER = (
    ContextType.RUNTIME_ERRORS,
    ContextType.CODE_IMPLEMENTATION,
    ContextType.RUNTIME_LOGS,
    ContextType.CODE_DEPENDENCIES,
    ContextType.RUNTIME_STATE,
)
_REVIEW_ORDER = (
    ContextType.CODE_IMPLEMENTATION,
    ContextType.DOMAIN_BEST_PRACTICES,
    ContextType.CODE_STRUCTURE,
    ContextType.CODE_DEPENDENCIES,
    ContextType.VCS_DIFF,
)
_EXPLAINING_ORDER = (
    ContextType.CODE_STRUCTURE,
    ContextType.CODE_IMPLEMENTATION,
    ContextType.CODE_COMMENTS,
    ContextType.PROJECT_DOCUMENTATION,
)

DEFAULT_TYPE_ORDER: tuple[ContextType, ...] = (
    ContextType.TASK_DESCRIPTION,
    ContextType.CODE_STRUCTURE,
    ContextType.CODE_IMPLEMENTATION,
)

TYPE_ORDER: Mapping[TaskType, tuple[ContextType, ...]] = {
    TaskType.CODE_GENERATION: _CODE_WRITING_ORDER,
    TaskType.CODE_COMPLETION: _CODE_WRITING_ORDER,
    TaskType.CODE_REFACTORING: (
        ContextType.CODE_IMPLEMENTATION,
        ContextType.CODE_STRUCTURE,
        ContextType.DOMAIN_BEST_PRACTICES,
        ContextType.CODE_DEPENDENCIES,
        ContextType.VCS_HISTORY,
    ),
    TaskType.BUG_FIXING: _DEBUGGING_ORDER,
    TaskType.ERROR_DIAGNOSIS: _DEBUGGING_ORDER,
    TaskType.CODE_REVIEW: _REVIEW_ORDER,
    TaskType.SECURITY_ANALYSIS: _REVIEW_ORDER,
    TaskType.TEST_GENERATION: (
        ContextType.CODE_IMPLEMENTATION,
        ContextType.CODE_STRUCTURE,
        ContextType.DOMAIN_EXAMPLES,
        ContextType.DOMAIN_BEST_PRACTICES,
    ),
    TaskType.DOCUMENTATION: _EXPLAINING_ORDER,
    TaskType.EXPLANATION: _EXPLAINING_ORDER,
}
"""Preferred section order per task type; unlisted tasks use the default."""


def type_order_for(task_type: TaskType) -> tuple[ContextType, ...]:
    return TYPE_ORDER.get(task_type, DEFAULT_TYPE_ORDER)


def render_fragment(fragment: Fragment) -> str:
    """``#### <source>``, optional metadata line, then raw content."""
    if fragment.content is None:
        msg = f"Fragment {fragment.id} has no content"
        raise ValueError(msg)
    parts = [f"#### {fragment.source}\n"]
    if fragment.metadata:
        pairs = ", ".join(f"{k}={v}" for k, v in fragment.metadata.items())
        parts.append(f"*Metadata: {pairs}*\n")
    parts.append(f"{fragment.content}\n\n")
    return "".join(parts)


class ContextFormatter:
    """Render fragments into a :class:`ContextPackage`.

    Sections follow :data:`TYPE_ORDER` for the request's task type;
    types missing from the table follow in first-appearance order.
    A fragment or section that fails to render is skipped. Any other
    failure yields an error-flagged package with no sections.
    """

    def format(
        self, fragments: Sequence[Fragment], request: ContextRequest
    ) -> ContextPackage:
        try:
            return self._format(fragments, request)
        except Exception as exc:
            logger.error(
                "event=format_failed fragments=%d error=%s",
                len(fragments),
                exc,
                exc_info=True,
            )
            return ContextPackage(
                request=request,
                metadata={
                    "status": PackageStatus.ERROR,
                    "error": f"Formatting failed: {exc}",
                    "failed_state": AssemblyState.FORMATTING,
                },
            )

    def _format(
        self, fragments: Sequence[Fragment], request: ContextRequest
    ) -> ContextPackage:
        groups: dict[ContextType, list[Fragment]] = {}
        for fragment in fragments:
            groups.setdefault(fragment.type, []).append(fragment)

        preferred = type_order_for(request.task_type)
        ordered = [t for t in preferred if t in groups]
        ordered.extend(t for t in groups if t not in preferred)

        sections: list[ContextSection] = []
        for context_type in ordered:
            try:
                section = self._build_section(context_type, groups[context_type])
            except Exception:
                logger.warning(
                    "event=section_failed type=%s action=skip",
                    context_type,
                    exc_info=True,
                )
                continue
            if section is not None:
                sections.append(section)

        # Only fragments that made it into a section count toward the package
        rendered = {id(f) for s in sections for f in s.fragments}
        included = tuple(f for f in fragments if id(f) in rendered)
        logger.debug(
            "event=formatted fragments=%d included=%d sections=%d",
            len(fragments),
            len(included),
            len(sections),
        )
        return ContextPackage(
            request=request,
            sections=tuple(sections),
            fragments=included,
            metadata={"status": PackageStatus.OK},
        )

    def _build_section(
        self, context_type: ContextType, fragments: list[Fragment]
    ) -> ContextSection | None:
        rendered: list[str] = []
        included: list[Fragment] = []
        for fragment in fragments:
            try:
                rendered.append(render_fragment(fragment))
            except Exception:
                logger.warning(
                    "event=fragment_render_failed fragment=%s action=skip",
                    getattr(fragment, "id", "?"),
                    exc_info=True,
                )
                continue
            included.append(fragment)

        if not included:
            return None
        content = f"### {context_type.heading}\n\n" + "".join(rendered)
        return ContextSection(
            type=context_type, content=content, fragments=tuple(included)
        )
