"""Recent git commits touching the file under work."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path

from contextsmith.constants import (
    ERROR_TRUNCATION_CHARS,
    GIT_LOG_MAX_COMMITS,
    GIT_LOG_TIMEOUT,
    ContextScope,
    ContextType,
    SourceKind,
    TaskType,
)
from contextsmith.models import ContextRequest, Fragment
from contextsmith.sources._files import resolve_param_path
from contextsmith.sources.base import BaseSource

logger = logging.getLogger(__name__)

_APPLICABLE_TASKS = frozenset({
    TaskType.CODE_REFACTORING,
    TaskType.CODE_REVIEW,
    TaskType.BUG_FIXING,
})

_FIELD_SEP = "\x1f"
_LOG_FORMAT = _FIELD_SEP.join(("%h", "%ad", "%an", "%s"))


@dataclass(frozen=True)
class Commit:
    sha: str
    date: str
    author: str
    subject: str


def parse_git_log(output: str) -> list[Commit]:
    """Parse ``git log`` output produced with the unit-separated format."""
    commits: list[Commit] = []
    for line in output.splitlines():
        parts = line.split(_FIELD_SEP)
        if len(parts) != 4:
            continue
        commits.append(Commit(*(p.strip() for p in parts)))
    return commits


class VCSHistorySource(BaseSource):
    """``git log`` for ``parameters["file_path"]``.

    Runs git as a subprocess; a repository-less path, a non-zero exit
    or a timeout all mean "no contribution".
    """

    description = "Recent git history of the target file"
    kind = SourceKind.EXTERNAL

    def __init__(
        self,
        max_commits: int = GIT_LOG_MAX_COMMITS,
        timeout: float = GIT_LOG_TIMEOUT,
    ) -> None:
        self.max_commits = max_commits
        self.timeout = timeout

    def is_applicable(self, request: ContextRequest) -> bool:
        return (
            request.scope.at_least(ContextScope.MODULE)
            and request.task_type in _APPLICABLE_TASKS
        )

    def estimated_cost(self) -> int:
        return 200

    async def collect(self, request: ContextRequest) -> Fragment | None:
        path = resolve_param_path(request.parameter("file_path"))
        if path is None or not path.exists():
            return None

        output = await self._git_log(path)
        if output is None:
            return None
        commits = parse_git_log(output)
        if not commits:
            return None

        lines = [f"Recent commits for {path.name}:"]
        lines.extend(
            f"{c.sha} {c.date} {c.author}: {c.subject}" for c in commits
        )
        return Fragment(
            source=self.metadata().name,
            type=ContextType.VCS_HISTORY,
            content="\n".join(lines),
            aspects=frozenset({"history", "git", "blame"}),
            relevance_score=0.5,
            metadata={"file": str(path), "commits": len(commits)},
        )

    async def _git_log(self, path: Path) -> str | None:
        workdir = path if path.is_dir() else path.parent
        proc = await asyncio.create_subprocess_exec(
            "git",
            "-C",
            str(workdir),
            "log",
            f"-n{self.max_commits}",
            "--date=short",
            f"--pretty=format:{_LOG_FORMAT}",
            "--",
            path.name if path.is_file() else ".",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self.timeout
            )
        except TimeoutError:
            logger.warning(
                "event=git_log_timeout path=%s timeout_s=%.1f",
                path,
                self.timeout,
            )
            return None
        finally:
            # Reached on our own timeout and on outside cancellation
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()
        if proc.returncode != 0:
            logger.debug(
                "event=git_log_failed path=%s rc=%s stderr=%s",
                path,
                proc.returncode,
                stderr.decode(errors="replace").strip()[:ERROR_TRUNCATION_CHARS],
            )
            return None
        return stdout.decode(errors="replace")
