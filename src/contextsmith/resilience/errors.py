"""Error classification for structured failure logging.

Source and stage failures are swallowed at the engine boundary, so the
only trace they leave is a log line. Classifying them lets operators
tell a flaky filesystem from a buggy source at a glance:
- TIMEOUT / IO: environmental, likely to succeed on a later request
- DATA: the source choked on its input (bad parameter, malformed file)
- PROGRAMMING: a defect in the source itself
"""

from __future__ import annotations

import asyncio
from enum import Enum

from pydantic import ValidationError


class ErrorClass(Enum):
    TIMEOUT = "timeout"  # deadline exceeded
    IO = "io"  # filesystem, subprocess, network
    DATA = "data"  # invalid input or output values
    PROGRAMMING = "programming"  # attribute/type/name errors in source code
    UNKNOWN = "unknown"  # unclassified


def classify_error(error: BaseException) -> ErrorClass:
    """Classify an error to annotate failure logs.

    Checks exception types first, falls back to string matching
    for untyped exceptions.
    """
    # 1. Timeouts (asyncio.TimeoutError is TimeoutError on 3.11+)
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorClass.TIMEOUT

    # 2. Environmental failures
    if isinstance(error, (OSError, ConnectionError)):
        return ErrorClass.IO

    # 3. Bad values: ValidationError must precede the generic ValueError
    if isinstance(error, (ValidationError, ValueError, KeyError, UnicodeError)):
        return ErrorClass.DATA

    if isinstance(error, (AttributeError, TypeError, NameError, NotImplementedError)):
        return ErrorClass.PROGRAMMING

    # 4. Fall back to string matching for untyped exceptions
    msg = str(error).lower()

    if "timeout" in msg or "timed out" in msg:
        return ErrorClass.TIMEOUT
    if "connection" in msg or "no such file" in msg or "permission" in msg:
        return ErrorClass.IO
    if "invalid" in msg or "malformed" in msg:
        return ErrorClass.DATA

    return ErrorClass.UNKNOWN


_ENVIRONMENTAL = frozenset({
    ErrorClass.TIMEOUT,
    ErrorClass.IO,
})


def is_environmental(error: BaseException) -> bool:
    """Return True if the error stems from the environment, not the source."""
    return classify_error(error) in _ENVIRONMENTAL
