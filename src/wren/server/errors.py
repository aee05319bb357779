"""Error reporter — the terminal stage of the pipeline.

Consumes one ``Failure`` per dispatch cycle and writes the outward failure
response. It is the only component that decides an error status or body.
Custom ``@app.error()`` handlers are consulted here and nowhere else.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeAlias

from wren.errors import ConfigurationError
from wren.failure import Failure, FailureKind, status_phrase
from wren.http.request import Request
from wren.http.response import Response
from wren.server.negotiation import json_response, negotiate
from wren.server.terminal_errors import log_failure

if TYPE_CHECKING:
    from wren.server.cycle import DispatchCycle

logger = logging.getLogger("wren.server")

ErrorKey: TypeAlias = "int | FailureKind | type[BaseException]"

# Sent when turning a failure into a response itself fails
FALLBACK_RESPONSE = Response(
    body="Internal Server Error",
    status=500,
    content_type="text/plain; charset=utf-8",
)


def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    failure: Failure,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, failure)
    args. They must be synchronous so a report completes without yielding.
    """
    params = list(inspect.signature(handler).parameters.values())

    if len(params) >= 2:
        result = handler(request, failure)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()

    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        msg = f"Error handler {handler!r} returned an awaitable; error handlers must be synchronous."
        raise ConfigurationError(msg)

    return negotiate(result)


class ErrorReporter:
    """Writes exactly one failure response per dispatch cycle.

    Usage::

        reporter = ErrorReporter({404: not_found_page})
        reporter.report(Failure("boom"), cycle)

    A second report for a cycle that already finished is suppressed and
    logged, so a bug upstream can never double-send.
    """

    __slots__ = ("_handlers", "expose_errors")

    def __init__(
        self,
        handlers: Mapping[ErrorKey, Callable[..., Any]] | None = None,
        *,
        expose_errors: bool = True,
    ) -> None:
        self._handlers: dict[ErrorKey, Callable[..., Any]] = dict(handlers or {})
        self.expose_errors = expose_errors

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def register(self, key: ErrorKey, handler: Callable[..., Any]) -> None:
        """Use *handler* to render failures matching *key*."""
        self._handlers[key] = handler

    def report(self, failure: Failure, cycle: DispatchCycle) -> None:
        """Log *failure* and write its response to *cycle*."""
        request = cycle.request
        if cycle.done:
            logger.error(
                "%s %s [%s] duplicate failure report suppressed: %s",
                request.method,
                request.path,
                failure.kind or "unclassified",
                failure.message,
            )
            return

        try:
            log_failure(failure, request)
            response = self.render(failure, request)
        except Exception as exc:
            logger.error(
                "500 %s %s [%s] could not report %s failure",
                request.method,
                request.path,
                FailureKind.REPORTER_FAULT,
                failure.kind or "unclassified",
                exc_info=exc,
            )
            response = FALLBACK_RESPONSE
        cycle.commit(response, failed=True)

    def render(self, failure: Failure, request: Request) -> Response:
        """Build the response for *failure* without writing it anywhere."""
        handler = self._lookup(failure)
        if handler is not None:
            response = call_error_handler(handler, request, failure)
            # Keep the failure's status unless the handler chose its own
            if response.status == 200:
                response = response.with_status(failure.http_status)
            return response
        return self.default_response(failure)

    def default_response(self, failure: Failure) -> Response:
        """``{"error": <message>}`` with the failure's status."""
        status = failure.http_status
        if failure.is_opaque or (not self.expose_errors and status >= 500):
            message = status_phrase(status)
        else:
            message = failure.message
        response = json_response({"error": message}, status)
        for name, value in failure.headers:
            response = response.with_header(name, value)
        return response

    def _lookup(self, failure: Failure) -> Callable[..., Any] | None:
        # Exact exception type, then classification, then status code
        if failure.exc is not None and type(failure.exc) in self._handlers:
            return self._handlers[type(failure.exc)]
        if failure.kind is not None and failure.kind in self._handlers:
            return self._handlers[failure.kind]
        return self._handlers.get(failure.http_status)
