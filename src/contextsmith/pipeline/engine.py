"""Assembly orchestrator: collect, bound, filter, prioritize, format.

Each call to :meth:`ContextEngine.assemble` walks one request through

    received -> collecting -> bounding -> filtering -> prioritizing
             -> formatting -> done

with ``failed`` reachable from any state. Nothing raised below the
engine reaches the caller: every outcome is a well-formed package
whose ``metadata["status"]`` says whether it is ok, empty or an error.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from contextsmith.config import Settings
from contextsmith.constants import (
    DEFAULT_SOURCE_PRIORITY,
    ERROR_TRUNCATION_CHARS,
    AssemblyState,
    CollectionStatus,
    PackageStatus,
)
from contextsmith.models import (
    AssemblyResult,
    ContextMetrics,
    ContextPackage,
    ContextRequest,
    Fragment,
)
from contextsmith.observability import TraceDispatcher, initialize_tracing
from contextsmith.observability.emitters import (
    emit_assembly_end,
    emit_assembly_start,
    emit_degradation,
    emit_error,
    emit_source_failed,
    emit_stage_end,
)
from contextsmith.pipeline.bounds import ResourceBounds
from contextsmith.pipeline.collector import SourceCollector
from contextsmith.pipeline.filter import ContextFilter, FilterRule
from contextsmith.pipeline.formatter import ContextFormatter
from contextsmith.pipeline.metrics import compute_metrics
from contextsmith.pipeline.prioritizer import ContextPrioritizer
from contextsmith.sources.base import ContextSource, source_name
from contextsmith.sources.registry import SourceRegistry

logger = logging.getLogger(__name__)


class ContextEngine:
    """Owns the source registry and the pipeline stages.

    All configuration is fixed at construction time. Engines share no
    state with each other, and concurrent ``assemble`` calls on one
    engine only share the registry (read through a snapshot).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        filter_rules: Sequence[FilterRule] = (),
        sources: Sequence[ContextSource] = (),
        dispatcher: TraceDispatcher | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.registry = SourceRegistry(list(sources))
        self._filter = ContextFilter.from_settings(self.settings, filter_rules)
        self._prioritizer = ContextPrioritizer.from_settings(self.settings)
        self._formatter = ContextFormatter()
        self._bounds = ResourceBounds(
            max_fragments=self.settings.max_fragments_per_request,
            max_memory_bytes=self.settings.max_memory_per_request,
        )
        self._collector = SourceCollector(
            max_concurrency=self.settings.max_source_concurrency,
            timeout=self.settings.source_timeout_seconds,
        )
        self._dispatcher = (
            dispatcher
            if dispatcher is not None
            else initialize_tracing(self.settings)
        )

    # ── Registry ─────────────────────────────────────────

    def register_source(self, source: ContextSource) -> None:
        self.registry.register(source)

    def unregister_source(self, source: ContextSource) -> bool:
        return self.registry.unregister(source)

    def sources(self) -> tuple[ContextSource, ...]:
        return self.registry.snapshot()

    # ── Assembly ─────────────────────────────────────────

    async def assemble(self, request: ContextRequest | None) -> AssemblyResult:
        """Build a context package for ``request``. Never raises."""
        trace_id = uuid.uuid4().hex
        started = time.monotonic()

        if request is None:
            logger.warning("event=assembly_rejected reason=no_request")
            package = _empty_package(
                ContextRequest(task_description=""), trace_id
            )
            return self._result(package, AssemblyState.DONE, trace_id)

        state = AssemblyState.RECEIVED
        try:
            await emit_assembly_start(
                self._dispatcher,
                trace_id,
                request.task_type.value,
                request.token_budget,
            )
            logger.info(
                "event=assembly_start trace_id=%s task_type=%s budget=%d",
                trace_id,
                request.task_type,
                request.token_budget,
            )

            state = AssemblyState.COLLECTING
            stage_start = time.monotonic()
            applicable = self._applicable_sources(request)
            if not applicable:
                logger.warning(
                    "event=no_applicable_sources trace_id=%s task=%s",
                    trace_id,
                    request.task_description[:ERROR_TRUNCATION_CHARS],
                )
                package = _empty_package(request, trace_id)
                result = self._result(package, AssemblyState.DONE, trace_id)
                await self._finish(result, started)
                return result

            fragments, failed = await self._collect(
                applicable, request, trace_id
            )
            await self._stage_done(trace_id, state, stage_start, len(fragments))

            state = AssemblyState.BOUNDING
            stage_start = time.monotonic()
            trimmed_from: int | None = None
            if self._bounds.exceeded(fragments):
                trimmed_from = len(fragments)
                fragments = self._bounds.emergency_trim(fragments)
                await emit_degradation(
                    self._dispatcher, trace_id, trimmed_from, len(fragments)
                )
            await self._stage_done(trace_id, state, stage_start, len(fragments))

            # One clock reading per request keeps the later stages
            # deterministic for a given fragment list.
            now = datetime.now(UTC)

            state = AssemblyState.FILTERING
            stage_start = time.monotonic()
            fragments = self._filter.filter(fragments, request, now)
            await self._stage_done(trace_id, state, stage_start, len(fragments))

            state = AssemblyState.PRIORITIZING
            stage_start = time.monotonic()
            selection = self._prioritizer.select(fragments, request, now)
            await self._stage_done(
                trace_id, state, stage_start, len(selection.fragments)
            )

            state = AssemblyState.FORMATTING
            stage_start = time.monotonic()
            package = self._formatter.format(selection.fragments, request)
            await self._stage_done(
                trace_id, state, stage_start, len(package.sections)
            )

            extra: dict[str, Any] = {
                "trace_id": trace_id,
                "sources_run": len(applicable),
                "sources_failed": failed,
                "reserved_admissions": selection.reserved_admissions,
            }
            if trimmed_from is not None:
                extra["degraded"] = True
                extra["trimmed_from"] = trimmed_from
            if not package.is_error and package.is_empty:
                extra["status"] = PackageStatus.EMPTY
            package = replace(package, metadata={**package.metadata, **extra})

            final_state = (
                AssemblyState.FAILED if package.is_error else AssemblyState.DONE
            )
            result = self._result(package, final_state, trace_id)
        except Exception as exc:
            logger.error(
                "event=assembly_failed trace_id=%s state=%s error=%s",
                trace_id,
                state,
                exc,
                exc_info=True,
            )
            await emit_error(
                self._dispatcher,
                trace_id,
                state.value,
                str(exc)[:ERROR_TRUNCATION_CHARS],
            )
            package = _error_package(request, trace_id, state, exc)
            result = self._result(package, AssemblyState.FAILED, trace_id)

        await self._finish(result, started)
        return result

    def assemble_sync(self, request: ContextRequest | None) -> AssemblyResult:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self.assemble(request))

    def analyze(self, package: ContextPackage) -> ContextMetrics:
        """Metrics for ``package`` against the configured required aspects."""
        return compute_metrics(package, self.settings.required_aspects)

    # ── Internals ────────────────────────────────────────

    def _applicable_sources(
        self, request: ContextRequest
    ) -> list[ContextSource]:
        """Snapshot, keep applicable and affordable sources, order by priority."""
        applicable: list[ContextSource] = []
        for source in self.registry.snapshot():
            name = source_name(source)
            try:
                if not source.is_applicable(request):
                    continue
                cost = source.estimated_cost()
            except Exception:
                logger.warning(
                    "event=applicability_check_failed source=%s"
                    " action=treat_as_not_applicable",
                    name,
                    exc_info=True,
                )
                continue
            if cost > request.token_budget:
                logger.info(
                    "event=source_skipped source=%s reason=cost"
                    " cost=%d budget=%d",
                    name,
                    cost,
                    request.token_budget,
                )
                continue
            applicable.append(source)

        # sorted() is stable: equal priority keeps registration order
        return sorted(applicable, key=lambda s: -_safe_priority(s))

    async def _collect(
        self,
        sources: list[ContextSource],
        request: ContextRequest,
        trace_id: str,
    ) -> tuple[list[Fragment], int]:
        outcomes = await self._collector.collect_all(sources, request)
        fragments: list[Fragment] = []
        failed = 0
        for outcome in outcomes:
            if outcome.fragment is not None:
                fragments.append(outcome.fragment)
                continue
            if outcome.status in (
                CollectionStatus.FAILED,
                CollectionStatus.TIMED_OUT,
            ):
                failed += 1
                await emit_source_failed(
                    self._dispatcher,
                    trace_id,
                    outcome.source,
                    outcome.error_class.value
                    if outcome.error_class
                    else "unknown",
                    outcome.error or "",
                )
        return fragments, failed

    async def _stage_done(
        self,
        trace_id: str,
        state: AssemblyState,
        stage_start: float,
        count: int,
    ) -> None:
        elapsed = (time.monotonic() - stage_start) * 1000
        logger.debug(
            "event=stage_end trace_id=%s stage=%s duration_ms=%.1f count=%d",
            trace_id,
            state,
            elapsed,
            count,
        )
        await emit_stage_end(
            self._dispatcher, trace_id, state.value, elapsed, count
        )

    def _result(
        self, package: ContextPackage, state: AssemblyState, trace_id: str
    ) -> AssemblyResult:
        try:
            metrics = self.analyze(package)
        except Exception:
            logger.warning(
                "event=metrics_failed trace_id=%s", trace_id, exc_info=True
            )
            metrics = ContextMetrics()
        return AssemblyResult(
            package=package, metrics=metrics, state=state, trace_id=trace_id
        )

    async def _finish(self, result: AssemblyResult, started: float) -> None:
        elapsed = (time.monotonic() - started) * 1000
        package = result.package
        logger.info(
            "event=assembly_end trace_id=%s status=%s fragments=%d"
            " size=%d duration_ms=%.1f",
            result.trace_id,
            package.status,
            len(package.fragments),
            package.estimated_size,
            elapsed,
        )
        await emit_assembly_end(
            self._dispatcher,
            result.trace_id,
            elapsed,
            package.status.value,
            len(package.fragments),
        )


def _safe_priority(source: ContextSource) -> int:
    try:
        return int(source.priority())
    except Exception:
        logger.warning(
            "event=priority_failed source=%s action=use_default",
            source_name(source),
        )
        return DEFAULT_SOURCE_PRIORITY


def _empty_package(request: ContextRequest, trace_id: str) -> ContextPackage:
    return ContextPackage(
        request=request,
        metadata={"status": PackageStatus.EMPTY, "trace_id": trace_id},
    )


def _error_package(
    request: ContextRequest,
    trace_id: str,
    state: AssemblyState,
    exc: Exception,
) -> ContextPackage:
    return ContextPackage(
        request=request,
        metadata={
            "status": PackageStatus.ERROR,
            "error": str(exc)[:ERROR_TRUNCATION_CHARS] or type(exc).__name__,
            "failed_state": state,
            "trace_id": trace_id,
        },
    )
