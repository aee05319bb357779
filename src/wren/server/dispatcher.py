"""Dispatcher — one request in, exactly one response out.

Owns the route table, starts a ``DispatchCycle`` per request, and decides
how each handler runs:

- direct handlers are called inline; a raise is caught here and reported.
- deferred handlers are handed to the suspension adapter as a task; the
  dispatcher then only waits for the cycle to finish and never sees the
  deferred outcome itself.

Whatever happens, ``dispatch()`` returns the single response the cycle
ended with and never raises a handler's exception.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Callable
from typing import Any

from wren._internal.invoke import build_handler_kwargs, is_deferred
from wren.config import AppConfig
from wren.context import cycle_var, request_var
from wren.errors import ConfigurationError, NotFound
from wren.failure import Failure, FailureKind
from wren.http.request import Request
from wren.http.response import Response
from wren.routing.route import Route
from wren.routing.router import Router
from wren.server.cycle import CycleState, DispatchCycle
from wren.server.errors import ErrorReporter
from wren.server.suspension import await_and_report

logger = logging.getLogger("wren.server")
access_logger = logging.getLogger("wren.access")


class Dispatcher:
    """Routes requests to handlers and funnels every failure to one reporter.

    Lifecycle is ``register* -> freeze -> dispatch* -> shutdown``. The route
    table is read-only once frozen, so serving needs no locks.

    Usage::

        dispatcher = Dispatcher(AppConfig(), ErrorReporter())
        dispatcher.register("GET", "/", index)
        dispatcher.freeze()
        response = await dispatcher.dispatch(Request.build("GET", "/"))
    """

    __slots__ = ("_closing", "_in_flight", "config", "reporter", "router")

    def __init__(self, config: AppConfig | None = None, reporter: ErrorReporter | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self.reporter: ErrorReporter = reporter or ErrorReporter(
            expose_errors=self.config.expose_errors
        )
        self.router = Router()
        self._in_flight: set[asyncio.Task[None]] = set()
        self._closing = False

    # -- Registration --

    def register(
        self,
        method: str,
        path: str,
        handler: Callable[..., Any],
        *,
        timeout: float | None = None,
        deferred: bool | None = None,
        name: str | None = None,
    ) -> Route:
        """Bind *handler* to ``(method, path)``.

        Coroutine functions are deferred automatically; pass ``deferred=True``
        for other callables that return an awaitable. Every deferred route
        gets a suspension bound: *timeout*, else ``config.deferred_timeout``.

        Raises:
            ConfigurationError: For a non-positive bound, a bound on a direct
                handler, or a duplicate route.
        """
        if deferred is None:
            deferred = is_deferred(handler)
        if deferred:
            bound = self.config.deferred_timeout if timeout is None else timeout
            if bound <= 0:
                msg = f"Deferred route {method} {path} needs a positive timeout, got {bound!r}."
                raise ConfigurationError(msg)
        else:
            if timeout is not None:
                msg = f"Route {method} {path} has a direct handler; timeout only applies to deferred handlers."
                raise ConfigurationError(msg)
            bound = None

        route = Route(
            method=method.upper(),
            path=path,
            handler=handler,
            deferred=deferred,
            timeout=bound,
            name=name,
        )
        self.router.add(route)
        return route

    def freeze(self) -> None:
        """Stop accepting registrations."""
        self.router.compile()

    # -- Serving --

    @property
    def in_flight(self) -> int:
        """Number of deferred cycles still suspended."""
        return len(self._in_flight)

    async def dispatch(self, request: Request) -> Response:
        """Run one dispatch cycle and return its single response."""
        self.freeze()
        started = time.perf_counter()
        cycle = DispatchCycle(request, self.reporter)
        request_token = request_var.set(request)
        cycle_token = cycle_var.set(cycle)
        try:
            self._start(cycle)
            response = await cycle.wait()
        finally:
            cycle_var.reset(cycle_token)
            request_var.reset(request_token)

        if self.config.access_log:
            access_logger.info(
                "%s %s %d %.1fms",
                request.method,
                request.path,
                response.status,
                (time.perf_counter() - started) * 1000,
            )
        return response

    def _start(self, cycle: DispatchCycle) -> None:
        request = cycle.request
        if self._closing:
            self.reporter.report(Failure("server shutting down", FailureKind.SHUTDOWN), cycle)
            return
        try:
            route = self.router.match(request.method, request.path)
        except NotFound as exc:
            self.reporter.report(Failure.from_exception(exc, FailureKind.ROUTE_NOT_FOUND), cycle)
            return

        if route.deferred:
            self._start_deferred(route, cycle)
        else:
            self._run_direct(route, cycle)

    def _run_direct(self, route: Route, cycle: DispatchCycle) -> None:
        cycle.begin(CycleState.HANDLING_SYNC)
        try:
            result = route.handler(**build_handler_kwargs(route.handler, cycle))
        except Exception as exc:
            self.reporter.report(Failure.from_exception(exc, FailureKind.HANDLER_FAULT), cycle)
            return

        if inspect.isawaitable(result):
            # Nobody would ever await it; close it rather than drop it
            if inspect.iscoroutine(result):
                result.close()
            failure = Failure(
                f"direct handler for {route.method} {route.path} returned an awaitable; "
                "register it as deferred",
                FailureKind.HANDLER_FAULT,
            )
            self.reporter.report(failure, cycle)
            return

        cycle.settle(result, kind=FailureKind.HANDLER_FAULT)

    def _start_deferred(self, route: Route, cycle: DispatchCycle) -> None:
        cycle.begin(CycleState.HANDLING_ASYNC)
        try:
            operation = route.handler(**build_handler_kwargs(route.handler, cycle))
        except Exception as exc:
            # Raised before suspending: still a synchronous fault
            self.reporter.report(Failure.from_exception(exc, FailureKind.HANDLER_FAULT), cycle)
            return

        if not inspect.isawaitable(operation):
            cycle.settle(operation, kind=FailureKind.DEFERRED_FAULT)
            return

        assert route.timeout is not None
        task = asyncio.ensure_future(
            await_and_report(operation, cycle, self.reporter, timeout=route.timeout)
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    # -- Shutdown --

    async def shutdown(self, grace: float | None = None) -> None:
        """Stop taking new cycles and drain deferred ones.

        New requests are answered 503 immediately. In-flight deferred
        cycles get *grace* seconds (default ``config.shutdown_grace``);
        the rest are cancelled and answered 503 by the adapter.
        """
        self._closing = True
        pending = set(self._in_flight)
        if not pending:
            return

        grace = self.config.shutdown_grace if grace is None else grace
        logger.info("waiting up to %gs for %d in-flight deferred cycle(s)", grace, len(pending))
        _, still_running = await asyncio.wait(pending, timeout=grace)
        if not still_running:
            return

        logger.warning("cancelling %d deferred cycle(s) after %gs", len(still_running), grace)
        for task in still_running:
            task.cancel()
        await asyncio.gather(*still_running, return_exceptions=True)
