"""Dispatch cycle — the lifetime of one request.

A cycle is created when a request arrives and ends when exactly one
response has been written to its slot, either by a handler (``RESPONDED``)
or by the error reporter (``FAILED_REPORTED``). The slot is write-once:
the first writer wins, every later write is logged and discarded.

State machine::

    PENDING -> HANDLING_SYNC  -> RESPONDED | FAILED_REPORTED
    PENDING -> HANDLING_ASYNC -> RESPONDED | FAILED_REPORTED
    PENDING ----------------------------> FAILED_REPORTED   (no route)
"""

from __future__ import annotations

import asyncio
import logging
import threading
from enum import Enum
from typing import TYPE_CHECKING, Any

from wren.errors import DoubleWriteFault
from wren.failure import Failure, FailureKind
from wren.http.request import Request
from wren.http.response import Response
from wren.server.negotiation import negotiate

if TYPE_CHECKING:
    from wren.server.errors import ErrorReporter

logger = logging.getLogger("wren.server")


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class CycleState(Enum):
    PENDING = "pending"
    HANDLING_SYNC = "handling_sync"
    HANDLING_ASYNC = "handling_async"
    RESPONDED = "responded"
    FAILED_REPORTED = "failed_reported"


TERMINAL_STATES = frozenset({CycleState.RESPONDED, CycleState.FAILED_REPORTED})


class DispatchCycle:
    """One request's trip through the pipeline.

    Handlers may accept a ``cycle`` parameter to write the response
    themselves (``cycle.respond(...)``) or to forward a caught error to the
    reporter (``cycle.fail(exc)``). Neither is required: returning a value
    or raising does the same thing.

    Thread safety:
        The response slot is guarded by a per-cycle lock so a timeout and a
        late success racing from different threads still produce one write.
        Completion is signalled on the event loop that created the cycle.
    """

    __slots__ = (
        "_done",
        "_lock",
        "_loop",
        "_reporter",
        "_response",
        "_state",
        "request",
        "writes",
    )

    def __init__(self, request: Request, reporter: ErrorReporter) -> None:
        self.request = request
        self.writes: int = 0
        self._reporter = reporter
        self._state = CycleState.PENDING
        self._response: Response | None = None
        self._lock = threading.Lock()
        self._done = asyncio.Event()
        self._loop = _running_loop()

    def __repr__(self) -> str:
        return f"<DispatchCycle {self.request.method} {self.request.path} {self._state.value}>"

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def done(self) -> bool:
        """True once the response slot has been written."""
        return self._state in TERMINAL_STATES

    @property
    def response(self) -> Response | None:
        return self._response

    def begin(self, state: CycleState) -> None:
        """Move from PENDING into a handling state. Called by the dispatcher."""
        if state not in (CycleState.HANDLING_SYNC, CycleState.HANDLING_ASYNC):
            msg = f"{state} is not a handling state"
            raise ValueError(msg)
        with self._lock:
            if self._state is not CycleState.PENDING:
                msg = f"cannot begin {state.value} from {self._state.value}"
                raise RuntimeError(msg)
            self._state = state

    def commit(self, response: Response, *, failed: bool = False) -> bool:
        """Write *response* to the slot if it is still empty.

        Returns False (and logs a double-write) when the cycle already
        finished; the earlier response stands.
        """
        target = CycleState.FAILED_REPORTED if failed else CycleState.RESPONDED
        with self._lock:
            previous = self._state
            if previous not in TERMINAL_STATES:
                self._state = target
                self._response = response
                self.writes += 1
        if previous in TERMINAL_STATES:
            logger.error(
                "%s %s [%s] second response write discarded (cycle already %s)",
                self.request.method,
                self.request.path,
                FailureKind.DOUBLE_WRITE,
                previous.value,
            )
            return False
        self._signal_done()
        return True

    def respond(self, value: Any) -> None:
        """Write the success response.

        Accepts anything a handler may return (``Response``, ``dict``,
        ``str``, ...).

        Raises:
            DoubleWriteFault: If the cycle already has a response.
        """
        if not self.commit(negotiate(value)):
            msg = f"response already written for {self.request.method} {self.request.path}"
            raise DoubleWriteFault(msg)

    def fail(self, error: BaseException | str | Failure, kind: FailureKind | None = None) -> None:
        """Forward a failure to the error reporter.

        Without an explicit *kind* the failure is classified by where the
        cycle is: a deferred handler forwards a ``DEFERRED_FAULT``, a direct
        one a ``HANDLER_FAULT``.
        """
        if kind is None:
            kind = (
                FailureKind.DEFERRED_FAULT
                if self._state is CycleState.HANDLING_ASYNC
                else FailureKind.HANDLER_FAULT
            )
        self._reporter.report(Failure.coerce(error, kind), self)

    def settle(self, result: Any, *, kind: FailureKind) -> None:
        """Turn a handler's return value into the cycle's terminal write.

        ``None`` is only acceptable when the handler already wrote or
        forwarded something; otherwise the cycle would never end, so it is
        reported as a fault of *kind*.
        """
        if result is None:
            if not self.done:
                self.fail(Failure("handler returned without a response", kind))
            return
        try:
            response = negotiate(result)
        except Exception as exc:
            self.fail(exc, kind)
            return
        self.commit(response)

    def _signal_done(self) -> None:
        loop = self._loop
        if loop is None or _running_loop() is loop:
            self._done.set()
        else:
            # asyncio.Event is not thread-safe; wake its own loop instead
            loop.call_soon_threadsafe(self._done.set)

    async def wait(self) -> Response:
        """Suspend until the cycle reaches a terminal state."""
        await self._done.wait()
        assert self._response is not None
        return self._response
