"""Wren application class.

Mutable during setup (route registration, error handlers, lifecycle hooks).
Frozen by ``build()``, which returns the ``Dispatcher`` that serves requests.
``run()`` and the ASGI entry point build implicitly.
"""

import inspect
import threading
from collections.abc import Callable
from typing import Any

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.types import ErrorHandler, Handler
from wren.config import AppConfig
from wren.errors import ConfigurationError
from wren.failure import FailureKind
from wren.http.request import Request
from wren.http.response import Response
from wren.server.dispatcher import Dispatcher
from wren.server.errors import ErrorReporter
from wren.server.sender import send_response


class App:
    """The wren application.

    Lifecycle is ``build -> serve -> shutdown``; there is no process-wide
    instance. Each App owns exactly one Dispatcher.

    Thread safety:
        Setup is single-threaded (decorators at import time). ``build()``
        uses a Lock + double-check so exactly one thread freezes the app
        even if several ASGI workers call ``__call__()`` on first request.
    """

    __slots__ = (
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._dispatcher = Dispatcher(
            self.config,
            ErrorReporter(expose_errors=self.config.expose_errors),
        )

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        timeout: float | None = None,
        deferred: bool | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: Exact URL path.
            methods: HTTP methods. Defaults to ``["GET"]``.
            timeout: Maximum suspension in seconds for a deferred handler.
                Defaults to ``AppConfig.deferred_timeout``.
            deferred: Override variant detection. ``async def`` handlers
                are deferred automatically.
            name: Optional route name.
        """

        def decorator(func: Handler) -> Handler:
            for method in methods or ["GET"]:
                self.register(method, path, func, timeout=timeout, deferred=deferred, name=name)
            return func

        return decorator

    def register(
        self,
        method: str,
        path: str,
        handler: Handler,
        *,
        timeout: float | None = None,
        deferred: bool | None = None,
        name: str | None = None,
    ) -> None:
        """Register *handler* for one method and path.

        Raises:
            ConfigurationError: If the route is invalid or already taken.
            RuntimeError: If the app has been built.
        """
        self._check_not_frozen()
        self._dispatcher.register(
            method, path, handler, timeout=timeout, deferred=deferred, name=name
        )

    # -- Error handlers --

    def error(
        self,
        key: int | FailureKind | type[BaseException],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator.

        *key* is a status code, a ``FailureKind``, or an exception type.
        The handler runs inside the error reporter and must be synchronous.
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            if inspect.iscoroutinefunction(func):
                msg = f"Error handler {func.__name__!r} must be synchronous."
                raise ConfigurationError(msg)
            self._dispatcher.reporter.register(key, func)
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator.

        Hooks run after in-flight deferred cycles have been drained.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Build / serve / shutdown --

    def build(self) -> Dispatcher:
        """Freeze the app and return its Dispatcher.

        Safe to call repeatedly; the same Dispatcher is returned.
        """
        if not self._frozen:
            with self._freeze_lock:
                if not self._frozen:
                    self._dispatcher.freeze()
                    self._frozen = True
        return self._dispatcher

    async def dispatch(self, request: Request) -> Response:
        """Build if needed and dispatch one request."""
        return await self.build().dispatch(request)

    async def startup(self) -> None:
        """Build, then run startup hooks."""
        self.build()
        await _run_hooks(self._startup_hooks)

    async def shutdown(self) -> None:
        """Drain in-flight deferred cycles, then run shutdown hooks."""
        await self.build().shutdown()
        await _run_hooks(self._shutdown_hooks)

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Build and serve with pounce until interrupted."""
        from wren.server.dev import run_server

        self.build()
        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        request = Request.from_asgi(scope, receive)
        response = await self.dispatch(request)
        await send_response(response, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Startup failures are reported back to the server, which refuses
        to serve.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has been built. "
                "Register routes, error handlers, and hooks before serving."
            )
            raise RuntimeError(msg)


async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
    for hook in hooks:
        result = hook()
        if inspect.isawaitable(result):
            await result
