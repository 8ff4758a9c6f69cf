"""Middleware protocol and Next type.

A middleware is any callable matching::

    async def my_mw(ctx: Context, next: Next) -> None: ...

No base class required. The framework checks the shape, not the lineage.

``next`` runs the rest of the pipeline (later middleware, then the
handler). It may be awaited at most once; skipping it short-circuits
the request with whatever the middleware wrote to ``ctx``.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from sprig.context import Context

# Continuation handed to each middleware
type Next = Callable[[], Awaitable[None]]


class Middleware(Protocol):
    """Protocol for sprig middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(ctx: Context, next: Next) -> None:
            start = time.monotonic()
            await next()
            ctx.set("X-Time", f"{time.monotonic() - start:.3f}")

        # Class middleware
        class Deny:
            async def __call__(self, ctx: Context, next: Next) -> None:
                ctx.status(403).send_string("Forbidden")
    """

    async def __call__(self, ctx: Context, next: Next) -> None: ...
