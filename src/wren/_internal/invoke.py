"""Handler invocation helpers.

Wren handlers come in two variants and the dispatcher must tell them apart
before calling them:

- *direct*: a plain ``def`` that returns a value or raises.
- *deferred*: an ``async def`` (or any callable registered with
  ``deferred=True``) whose call returns an awaitable.

Handlers declare what they need by parameter name or annotation::

    @app.route("/a")
    def a(request: Request): ...

    @app.route("/b")
    async def b(cycle: DispatchCycle): ...
"""

import functools
import inspect
from typing import Any

from wren.http.request import Request
from wren.server.cycle import DispatchCycle


def is_deferred(handler: Any) -> bool:
    """True if calling *handler* starts a suspended operation."""
    while isinstance(handler, functools.partial):
        handler = handler.func
    if inspect.iscoroutinefunction(handler):
        return True
    call = getattr(handler, "__call__", None)  # noqa: B004
    return call is not None and inspect.iscoroutinefunction(call)


def build_handler_kwargs(handler: Any, cycle: DispatchCycle) -> dict[str, Any]:
    """Inspect the handler signature and inject ``request`` / ``cycle``.

    Resolution, per parameter:
    1. ``request`` by name or ``Request`` annotation
    2. ``cycle`` by name or ``DispatchCycle`` annotation

    Anything else must have a default.
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = cycle.request
        elif name == "cycle" or param.annotation is DispatchCycle:
            kwargs[name] = cycle

    return kwargs
