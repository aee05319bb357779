"""Shared type aliases used across wren modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: request and cycle are injected by parameter name or annotation
Handler: TypeAlias = Callable[..., Any]

# Error handler: takes (), (request) or (request, failure), returns a response value
ErrorHandler: TypeAlias = Callable[..., Any]
