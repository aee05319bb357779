"""The normalized failure value consumed by the error reporter.

Every fault in the pipeline (a direct handler raising, a deferred operation
failing, an unmatched route, an exceeded suspension bound) is converted into
a single ``Failure`` before it reaches ``ErrorReporter.report()``. Nothing
else is ever handed to the reporter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from http import HTTPStatus

from wren.errors import DoubleWriteFault, HTTPError


class FailureKind(StrEnum):
    """Classification tag carried by a Failure."""

    HANDLER_FAULT = "handler_fault"
    DEFERRED_FAULT = "deferred_fault"
    ROUTE_NOT_FOUND = "route_not_found"
    SUSPENSION_TIMEOUT = "suspension_timeout"
    DOUBLE_WRITE = "double_write"
    REPORTER_FAULT = "reporter_fault"
    SHUTDOWN = "shutdown"


# Kinds not listed here are unclassified for status purposes -> 500
STATUS_BY_KIND: dict[FailureKind, int] = {
    FailureKind.ROUTE_NOT_FOUND: 404,
    FailureKind.SUSPENSION_TIMEOUT: 504,
    FailureKind.SHUTDOWN: 503,
}

# Kinds whose message is never shown to the client
OPAQUE_KINDS: frozenset[FailureKind] = frozenset(
    {FailureKind.DOUBLE_WRITE, FailureKind.REPORTER_FAULT}
)


@dataclass(frozen=True, slots=True)
class Failure:
    """A human-readable message plus an optional classification.

    ``status`` is an explicit override (set from ``HTTPError``); when it is
    ``None`` the status comes from ``kind``, defaulting to 500.
    """

    message: str
    kind: FailureKind | None = None
    status: int | None = None
    headers: tuple[tuple[str, str], ...] = ()
    exc: BaseException | None = field(default=None, repr=False, compare=False)

    @property
    def http_status(self) -> int:
        """The status code the reporter will send for this failure."""
        if self.status is not None:
            return self.status
        if self.kind is None:
            return 500
        return STATUS_BY_KIND.get(self.kind, 500)

    @property
    def is_opaque(self) -> bool:
        """True if the message must not reach the client verbatim."""
        return self.kind in OPAQUE_KINDS

    @classmethod
    def from_exception(cls, exc: BaseException, kind: FailureKind | None = None) -> Failure:
        """Normalize an exception into a Failure.

        ``HTTPError`` keeps its status, detail, and headers. A
        ``DoubleWriteFault`` is always classified as ``DOUBLE_WRITE``
        regardless of where it was caught.
        """
        if isinstance(exc, DoubleWriteFault):
            return cls(describe(exc), FailureKind.DOUBLE_WRITE, exc=exc)
        if isinstance(exc, HTTPError):
            message = exc.detail or status_phrase(exc.status)
            return cls(message, kind, status=exc.status, headers=exc.headers, exc=exc)
        return cls(describe(exc), kind, exc=exc)

    @classmethod
    def coerce(cls, error: BaseException | str | Failure, kind: FailureKind | None = None) -> Failure:
        """Accept whatever a handler forwards and return a Failure."""
        if isinstance(error, Failure):
            return error
        if isinstance(error, BaseException):
            return cls.from_exception(error, kind)
        return cls(str(error), kind)


def describe(exc: BaseException) -> str:
    """``str(exc)``, or the type name when that is empty or raises."""
    try:
        message = str(exc)
    except Exception:
        message = ""
    return message or type(exc).__name__


def status_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return f"Error {status}"
