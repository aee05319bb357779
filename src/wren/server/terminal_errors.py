"""Diagnostic log lines for handled failures.

Every failure the reporter handles produces one line on the
``wren.server`` logger::

    500 GET /sync-test [handler_fault] boom

When the failure carries an exception, the ``WREN_TRACEBACK`` environment
variable picks how much of it is shown:

- ``minimal`` (default): exception type and raise site appended to the line
- ``compact``: application frames only, on following lines
- ``full``: the complete traceback via ``logger.exception``-style exc_info
"""

from __future__ import annotations

import logging
import os
import traceback as _traceback
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wren.failure import Failure
    from wren.http.request import Request

logger = logging.getLogger("wren.server")


def _is_app_frame(filename: str) -> bool:
    """True if the frame is from the application (not stdlib/site-packages/wren)."""
    if "site-packages" in filename or filename.startswith("<"):
        return False
    stdlib_prefix = os.path.dirname(os.__file__)
    wren_prefix = os.path.dirname(os.path.dirname(__file__))
    return not (filename.startswith(stdlib_prefix) or filename.startswith(wren_prefix))


def format_compact_traceback(exc: BaseException) -> str:
    """Exception summary followed by at most five application frames."""
    tb = exc.__traceback__
    frames = _traceback.extract_tb(tb) if tb else []
    app_frames = [f for f in frames if _is_app_frame(f.filename)]
    display_frames = app_frames if app_frames else frames[-3:]

    parts = [f"{type(exc).__name__}: {exc}"]
    if display_frames:
        parts.append("  Trace (app frames):")
        for frame in display_frames[-5:]:
            parts.append(f"    {frame.filename}:{frame.lineno} in {frame.name}")
            if frame.line:
                parts.append(f"      {frame.line.strip()}")
    return "\n".join(parts)


def format_minimal_error(exc: BaseException) -> str:
    """One-line summary: type and the innermost raise site."""
    tb = exc.__traceback__
    frames = _traceback.extract_tb(tb) if tb else []
    last = frames[-1] if frames else None
    location = f" at {last.filename}:{last.lineno}" if last else ""
    return f"{type(exc).__name__}{location}"


def format_failure_line(failure: Failure, request: Request) -> str:
    kind = failure.kind.value if failure.kind is not None else "unclassified"
    return f"{failure.http_status} {request.method} {request.path} [{kind}] {failure.message}"


def log_failure(failure: Failure, request: Request) -> None:
    """Emit the diagnostic line for a failure the reporter is handling.

    4xx failures log at WARNING, everything else at ERROR.
    """
    level = logging.WARNING if 400 <= failure.http_status < 500 else logging.ERROR
    line = format_failure_line(failure, request)
    exc = failure.exc

    if exc is None or level == logging.WARNING:
        logger.log(level, "%s", line)
        return

    style = os.environ.get("WREN_TRACEBACK", "minimal").lower()
    if style == "full":
        logger.log(level, "%s", line, exc_info=exc)
    elif style == "compact":
        logger.log(level, "%s\n%s", line, format_compact_traceback(exc))
    else:
        logger.log(level, "%s (%s)", line, format_minimal_error(exc))
