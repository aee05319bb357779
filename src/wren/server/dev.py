"""Serving via pounce.

Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``), but
wren has a live ``App`` object, so ``pounce.Server`` is used directly with
the ASGI callable. Installed with ``pip install wren[server]``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from wren.errors import ConfigurationError

if TYPE_CHECKING:
    from wren.app import App


def run_server(
    app: App,
    host: str,
    port: int,
    *,
    reload: bool = False,
) -> None:
    """Start a single-worker pounce server for *app*.

    The ASGI lifespan protocol drives the app's ``build -> serve ->
    shutdown`` lifecycle: startup hooks before the first request,
    ``Dispatcher.shutdown()`` and shutdown hooks when the server stops.

    Args:
        app: ASGI callable (wren App instance).
        host: Bind host address.
        port: Bind port number.
        reload: Enable auto-reload on file changes.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = "Serving requires pounce. Install it with: pip install wren[server]"
        raise ConfigurationError(msg) from exc

    config = ServerConfig(host=host, port=port, workers=1, reload=reload)
    Server(config, app).run()
