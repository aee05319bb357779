"""Route frozen dataclass."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created during app setup, compiled into the router at build time.
    ``timeout`` is the maximum suspension for a deferred handler and is
    always set when ``deferred`` is True.
    """

    method: str
    path: str
    handler: Callable[..., Any]
    deferred: bool = False
    timeout: float | None = None
    name: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return self.method, normalize_path(self.path)


def normalize_path(path: str) -> str:
    """Collapse a trailing slash so ``/users/`` and ``/users`` match."""
    stripped = path.strip("/")
    return f"/{stripped}" if stripped else "/"
