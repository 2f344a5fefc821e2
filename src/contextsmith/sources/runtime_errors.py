"""Structured summary of an error log passed with the request."""

from __future__ import annotations

import re
from dataclasses import dataclass

from contextsmith.constants import ContextType, SourceKind, TaskType
from contextsmith.models import ContextRequest, Fragment
from contextsmith.sources.base import BaseSource

_APPLICABLE_TASKS = frozenset({
    TaskType.BUG_FIXING,
    TaskType.ERROR_DIAGNOSIS,
    TaskType.TEST_DEBUGGING,
})

MAX_TAIL_LINES = 50

_ERROR_WORD = re.compile(r"Error|Exception")
# "ValueError: bad input", "java.lang.IllegalStateException: closed"
_EXCEPTION_LINE = re.compile(
    r"^\s*(?:Caused by:\s*)?([A-Za-z_][\w.]*(?:Error|Exception))(?::\s*(.*))?$"
)
# Python traceback frame: File "app/main.py", line 12, in handler
_PY_FRAME = re.compile(r'^\s*File "([^"]+)", line (\d+)(?:, in (\S+))?')
# JVM frame: at com.acme.Service.run(Service.java:42)
_JVM_FRAME = re.compile(r"^\s*at\s+([\w.$<>]+)\(([^:()]+):(\d+)\)")


@dataclass(frozen=True)
class ParsedErrorLog:
    exceptions: tuple[str, ...]
    frames: tuple[str, ...]
    error_count: int


def count_errors(log: str) -> int:
    """Occurrences of "Error" or "Exception" anywhere in the log."""
    return len(_ERROR_WORD.findall(log))


def parse_error_log(log: str) -> ParsedErrorLog:
    exceptions: list[str] = []
    frames: list[str] = []
    for line in log.splitlines():
        if m := _PY_FRAME.match(line):
            location = f"{m.group(1)}:{m.group(2)}"
            frames.append(f"{location} in {m.group(3)}" if m.group(3) else location)
        elif m := _JVM_FRAME.match(line):
            frames.append(f"{m.group(2)}:{m.group(3)} in {m.group(1)}")
        elif m := _EXCEPTION_LINE.match(line):
            message = (m.group(2) or "").strip()
            entry = f"{m.group(1)}: {message}" if message else m.group(1)
            if entry not in exceptions:
                exceptions.append(entry)
    return ParsedErrorLog(
        exceptions=tuple(exceptions),
        frames=tuple(frames),
        error_count=count_errors(log),
    )


class RuntimeErrorSource(BaseSource):
    """Exceptions and stack frames from ``parameters["error_log"]``."""

    description = "Parses runtime errors and stack traces"
    kind = SourceKind.DYNAMIC

    def is_applicable(self, request: ContextRequest) -> bool:
        return request.task_type in _APPLICABLE_TASKS

    def priority(self) -> int:
        return 95

    def collect(self, request: ContextRequest) -> Fragment | None:
        log = request.parameter("error_log")
        if not isinstance(log, str) or not log.strip():
            return None

        parsed = parse_error_log(log)
        return Fragment(
            source=self.metadata().name,
            type=ContextType.RUNTIME_ERRORS,
            content=_render(parsed, log),
            aspects=frozenset({"errors", "exceptions", "stack_trace"}),
            relevance_score=0.95,
            metadata={"error_count": parsed.error_count},
        )


def _render(parsed: ParsedErrorLog, log: str) -> str:
    lines = ["Parsed errors:"]
    if parsed.exceptions:
        lines.append(f"Exceptions ({len(parsed.exceptions)}):")
        lines.extend(f"- {e}" for e in parsed.exceptions)
    if parsed.frames:
        lines.append("Frames (outermost first):")
        lines.extend(f"- {f}" for f in parsed.frames)
    tail = log.strip().splitlines()[-MAX_TAIL_LINES:]
    lines.append("Log tail:")
    lines.extend(tail)
    return "\n".join(lines)
