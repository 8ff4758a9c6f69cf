"""Error boundary for sprig requests.

Maps HTTPError exceptions and unexpected failures to a response written
into the request's Context, using registered error handlers or plain
text defaults. Headers set before the failure survive; status and body
are replaced.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from sprig._internal.invoke import invoke
from sprig.context import Context
from sprig.errors import HTTPError
from sprig.server.negotiation import negotiate

logger = logging.getLogger("sprig.server")


async def call_error_handler(
    handler: Callable[..., Any],
    ctx: Context,
    exc: Exception,
) -> None:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (ctx), or two (ctx, exc) args,
    and may write through ``ctx`` or return a value.
    Supports both sync and async error handlers.
    """
    sig = inspect.signature(handler)
    params = list(sig.parameters.values())

    if len(params) >= 2:
        result = await invoke(handler, ctx, exc)
    elif len(params) == 1:
        result = await invoke(handler, ctx)
    else:
        result = await invoke(handler)

    negotiate(ctx, result)


def _write_plain(ctx: Context, status: int, detail: str) -> None:
    ctx.response.reset()
    ctx.status(status).send_string(detail)


async def _run_handler(
    handler: Callable[..., Any],
    ctx: Context,
    exc: Exception,
    status: int,
) -> None:
    ctx.response.reset()
    ctx.status(status)
    try:
        await call_error_handler(handler, ctx, exc)
    except Exception:
        logger.exception("Error handler %r failed for %s %s", handler, ctx.method, ctx.path)
        _write_plain(ctx, 500, "Internal Server Error")


async def handle_http_error(
    exc: HTTPError,
    ctx: Context,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> None:
    """Write the response for an HTTPError using registered error handlers."""
    logger.debug("%d %s %s: %s", exc.status, ctx.method, ctx.path, exc.detail)

    for name, value in exc.headers:
        ctx.set(name, value)

    # Try exact exception type, then status code
    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        await _run_handler(handler, ctx, exc, exc.status)
        return

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"
    _write_plain(ctx, exc.status, detail)


async def handle_internal_error(
    exc: Exception,
    ctx: Context,
    error_handlers: dict[int | type, Callable[..., Any]],
    debug: bool,
) -> None:
    """Handle unexpected exceptions as 500 errors."""
    logger.error("500 %s %s", ctx.method, ctx.path, exc_info=exc)

    handler = error_handlers.get(type(exc)) or error_handlers.get(500)
    if handler is not None:
        await _run_handler(handler, ctx, exc, 500)
        return

    if debug:
        _write_plain(ctx, 500, f"Internal Server Error\n\n{type(exc).__name__}: {exc}")
        return
    _write_plain(ctx, 500, "Internal Server Error")


def handle_unsendable_headers(exc: UnicodeEncodeError, ctx: Context) -> None:
    """Replace a response whose headers cannot go on the wire with a plain 500.

    Every header is dropped, since any of them may be the one that failed.
    """
    logger.error("500 %s %s: response headers are not latin-1", ctx.method, ctx.path, exc_info=exc)
    ctx.response.headers.clear()
    _write_plain(ctx, 500, "Internal Server Error")
