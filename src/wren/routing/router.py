"""Compiled route table keyed by ``(method, path)``.

Routes are registered during setup and frozen when the app is built.
Matching is an exact lookup; there are no path parameters.
"""

from wren.errors import ConfigurationError, NotFound
from wren.routing.route import Route, normalize_path


class Router:
    """Immutable-after-compile route table.

    Usage::

        router = Router()
        router.add(Route("GET", "/users", handler))
        router.compile()
        route = router.match("GET", "/users")
    """

    __slots__ = ("_compiled", "_routes")

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], Route] = {}
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        if route.key in self._routes:
            method, path = route.key
            msg = f"Route {method} {path} is already registered."
            raise ConfigurationError(msg)
        self._routes[route.key] = route

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order."""
        return list(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> Route:
        """Return the route registered for *method* and *path*.

        Raises ``NotFound`` if there is none.
        """
        route = self._routes.get((method.upper(), normalize_path(path)))
        if route is None:
            raise NotFound()
        return route
