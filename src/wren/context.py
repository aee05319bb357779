"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: the ``Request`` being dispatched.
- ``cycle_var``: the ``DispatchCycle`` that owns it.

Both are set by the dispatcher for the duration of one cycle. Deferred
handlers run in a task created while they are set, so the values are
visible there too (tasks copy the current context).

Thread safety:
    ``ContextVar`` is task-local under asyncio. No locks needed.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wren.http.request import Request
    from wren.server.cycle import DispatchCycle

request_var: ContextVar[Request] = ContextVar("wren_request")
"""The current request. Set by the dispatcher before invoking a handler."""

cycle_var: ContextVar[DispatchCycle] = ContextVar("wren_cycle")
"""The current dispatch cycle."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a dispatch cycle.
    """
    return request_var.get()


def get_cycle() -> DispatchCycle:
    """Return the current dispatch cycle.

    Raises ``LookupError`` if called outside a dispatch cycle.
    """
    return cycle_var.get()
