"""Concurrent, fault-isolated source collection."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass

from contextsmith.constants import ERROR_TRUNCATION_CHARS, CollectionStatus
from contextsmith.models import ContextRequest, Fragment
from contextsmith.resilience.errors import (
    ErrorClass,
    classify_error,
    is_environmental,
)
from contextsmith.sources.base import ContextSource, source_name

logger = logging.getLogger(__name__)


@dataclass
class CollectionOutcome:
    """What one source contributed to a request."""

    source: str
    fragment: Fragment | None
    duration_ms: float
    status: CollectionStatus
    error: str | None = None
    error_class: ErrorClass | None = None


class SourceCollector:
    """Run sources concurrently; one failing source never affects another.

    Plain ``collect`` methods run in worker threads, coroutine ones on
    the event loop. At most ``max_concurrency`` sources run at once.
    Every launched source is awaited; with ``timeout`` set, a source
    still running at its deadline is reported as timed out (a worker
    thread cannot be interrupted and finishes in the background).
    Outcomes come back in the order the sources were given.
    """

    def __init__(
        self,
        max_concurrency: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self.max_concurrency = max_concurrency
        self.timeout = timeout

    async def collect_all(
        self, sources: Sequence[ContextSource], request: ContextRequest
    ) -> list[CollectionOutcome]:
        if not sources:
            return []

        semaphore = (
            asyncio.Semaphore(self.max_concurrency)
            if self.max_concurrency
            else None
        )

        async def _guarded(source: ContextSource) -> CollectionOutcome:
            if semaphore:
                async with semaphore:
                    return await self._run_one(source, request)
            return await self._run_one(source, request)

        return list(await asyncio.gather(*(_guarded(s) for s in sources)))

    async def _run_one(
        self, source: ContextSource, request: ContextRequest
    ) -> CollectionOutcome:
        name = source_name(source)
        start = time.monotonic()
        try:
            if self.timeout is not None:
                result = await asyncio.wait_for(
                    _invoke(source, request), timeout=self.timeout
                )
            else:
                result = await _invoke(source, request)
        except TimeoutError as exc:
            elapsed = (time.monotonic() - start) * 1000
            logger.warning(
                "event=source_timeout source=%s timeout_s=%.1f",
                name,
                self.timeout,
            )
            return CollectionOutcome(
                source=name,
                fragment=None,
                duration_ms=elapsed,
                status=CollectionStatus.TIMED_OUT,
                error=f"timed out after {self.timeout}s",
                error_class=classify_error(exc),
            )
        except Exception as exc:
            elapsed = (time.monotonic() - start) * 1000
            error_class = classify_error(exc)
            logger.warning(
                "event=source_failed source=%s error_class=%s error=%s",
                name,
                error_class.value,
                str(exc)[:ERROR_TRUNCATION_CHARS],
                # Environmental failures log without a traceback
                exc_info=not is_environmental(exc),
            )
            return CollectionOutcome(
                source=name,
                fragment=None,
                duration_ms=elapsed,
                status=CollectionStatus.FAILED,
                error=str(exc)[:ERROR_TRUNCATION_CHARS],
                error_class=error_class,
            )

        elapsed = (time.monotonic() - start) * 1000
        if result is None:
            return CollectionOutcome(
                source=name,
                fragment=None,
                duration_ms=elapsed,
                status=CollectionStatus.EMPTY,
            )
        if not isinstance(result, Fragment):
            logger.warning(
                "event=source_bad_result source=%s result_type=%s",
                name,
                type(result).__name__,
            )
            return CollectionOutcome(
                source=name,
                fragment=None,
                duration_ms=elapsed,
                status=CollectionStatus.FAILED,
                error=f"expected Fragment, got {type(result).__name__}",
                error_class=ErrorClass.PROGRAMMING,
            )

        logger.debug(
            "event=source_collected source=%s duration_ms=%.1f size=%d",
            name,
            elapsed,
            result.estimated_size,
        )
        return CollectionOutcome(
            source=name,
            fragment=result,
            duration_ms=elapsed,
            status=CollectionStatus.COLLECTED,
        )


async def _invoke(source: ContextSource, request: ContextRequest) -> object:
    if inspect.iscoroutinefunction(source.collect):
        return await source.collect(request)
    result = await asyncio.to_thread(source.collect, request)
    if inspect.isawaitable(result):
        return await result
    return result
