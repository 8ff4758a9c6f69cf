"""Shared type aliases used across sprig modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: receives the request Context, may return a value
Handler: TypeAlias = Callable[..., Any]

# Error handler: receives (ctx, error?) and writes or returns a response value
ErrorHandler: TypeAlias = Callable[..., Any]
