"""Wren — a small HTTP dispatch pipeline with one exit for every failure.

Direct and deferred handlers share a single error channel: a raise in a
plain ``def``, a failure after an ``await`` in an ``async def``, an unmatched
route, and an exceeded suspension bound all end in the same error reporter,
exactly once per request.

Basic usage::

    from wren import App

    app = App()

    @app.route("/")
    def index():
        return {"hello": "world"}

    @app.route("/slow", timeout=2.0)
    async def slow():
        await fetch_something()
        return {"done": True}

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "DispatchCycle",
    "Dispatcher",
    "DoubleWriteFault",
    "ErrorReporter",
    "Failure",
    "FailureKind",
    "HTTPError",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "WrenError",
    "get_cycle",
    "get_request",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wren.app import App

        return App

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from wren.http import response as _resp

        return getattr(_resp, name)

    if name == "DispatchCycle":
        from wren.server.cycle import DispatchCycle

        return DispatchCycle

    if name == "Dispatcher":
        from wren.server.dispatcher import Dispatcher

        return Dispatcher

    if name == "ErrorReporter":
        from wren.server.errors import ErrorReporter

        return ErrorReporter

    if name in ("Failure", "FailureKind"):
        from wren import failure as _failure

        return getattr(_failure, name)

    if name in ("get_cycle", "get_request"):
        from wren import context as _ctx

        return getattr(_ctx, name)

    if name in ("ConfigurationError", "DoubleWriteFault", "HTTPError", "NotFound", "WrenError"):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
