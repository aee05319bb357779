"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, deferred_timeout=5.0)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Deferred handlers: suspension bound for routes that set none
    deferred_timeout: float = 30.0

    # Seconds in-flight deferred cycles get to finish during shutdown
    shutdown_grace: float = 5.0

    # When False, 5xx error bodies carry only the status phrase
    expose_errors: bool = True

    # Logging
    access_log: bool = True
