"""Suspension adapter — bridges a deferred handler's outcome to the reporter.

A failure raised after an ``await`` is not seen by whoever called the
handler the way a synchronous raise is: once the dispatcher has handed the
operation to the event loop, an exception inside it only ends the task.
``await_and_report`` is the task. It owns the outcome of the operation and
turns it into the cycle's single terminal write, so a handler that simply
awaits something that fails still produces an error response.

Every deferred route is wrapped; there is no unwrapped path.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any

import anyio

from wren.failure import Failure, FailureKind
from wren.server.errors import FALLBACK_RESPONSE

if TYPE_CHECKING:
    from wren.server.cycle import DispatchCycle
    from wren.server.errors import ErrorReporter

logger = logging.getLogger("wren.server")


async def await_and_report(
    operation: Awaitable[Any],
    cycle: DispatchCycle,
    reporter: ErrorReporter,
    *,
    timeout: float,
) -> None:
    """Await *operation* for at most *timeout* seconds and settle *cycle*.

    - Success: the returned value becomes the response.
    - Failure: reported as ``DEFERRED_FAULT``; nothing after the failing
      ``await`` inside the handler runs. A ``CancelledError`` the operation
      raises on its own (an awaited future was cancelled) counts as failure.
    - Deadline: the operation is cancelled and ``SUSPENSION_TIMEOUT`` is
      reported.
    - Cancellation of this task (shutdown): ``SHUTDOWN`` is reported, then
      the cancellation propagates.

    If settling the cycle raises anyway, the fixed fallback response is
    written so the request is still answered.
    """
    try:
        await _await_and_settle(operation, cycle, reporter, timeout)
    except Exception as exc:
        request = cycle.request
        logger.error(
            "500 %s %s [%s] deferred outcome could not be reported",
            request.method,
            request.path,
            FailureKind.REPORTER_FAULT,
            exc_info=exc,
        )
        if not cycle.done:
            cycle.commit(FALLBACK_RESPONSE, failed=True)


async def _await_and_settle(
    operation: Awaitable[Any],
    cycle: DispatchCycle,
    reporter: ErrorReporter,
    timeout: float,
) -> None:
    try:
        with anyio.move_on_after(timeout) as scope:
            result = await operation
    except asyncio.CancelledError as exc:
        task = asyncio.current_task()
        if task is None or not task.cancelling():
            reporter.report(Failure.from_exception(exc, FailureKind.DEFERRED_FAULT), cycle)
            return
        if not cycle.done:
            reporter.report(Failure("server shutting down", FailureKind.SHUTDOWN), cycle)
        raise
    except Exception as exc:
        reporter.report(Failure.from_exception(exc, FailureKind.DEFERRED_FAULT), cycle)
        return

    if scope.cancel_called:
        # Answered from elsewhere (e.g. another thread) before the deadline
        if cycle.done:
            return
        failure = Failure(
            f"handler did not finish within {timeout:g}s",
            FailureKind.SUSPENSION_TIMEOUT,
        )
        reporter.report(failure, cycle)
        return

    cycle.settle(result, kind=FailureKind.DEFERRED_FAULT)
