"""Wren exception hierarchy.

Shared across Router, Dispatcher, handlers, and the error reporter so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when app configuration or route registration is invalid.

    Always surfaces at registration or build time, never per request.
    """


class DoubleWriteFault(WrenError):  # noqa: N818
    """Raised when a dispatch cycle's response slot is written twice.

    A programming defect, not a request condition. The first response
    stands; the second write is discarded.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(WrenError):
    """An error that maps directly to an HTTP status code.

    Raised by the router or by handlers. The dispatcher normalizes it into
    a ``Failure`` whose explicit status wins over the classification default.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request."""

    def __init__(self, detail: str = "not found") -> None:
        super().__init__(status=404, detail=detail)
