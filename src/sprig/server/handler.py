"""ASGI handler — translates ASGI scope/messages to sprig types.

The only component that touches raw HTTP messages directly. Reads the
body, builds the Request and its Context, dispatches through the
middleware pipeline to the matched handler and sends the buffered
response back through ASGI send().
"""

from collections.abc import Callable, Sequence
from contextvars import Token
from typing import Any

from sprig._internal.asgi import Receive, Scope, Send
from sprig._internal.invoke import invoke
from sprig.config import AppConfig
from sprig.context import Context, context_var
from sprig.errors import HTTPError
from sprig.http.request import Request, read_body
from sprig.middleware.pipeline import Pipeline
from sprig.routing.route import RouteMatch
from sprig.routing.router import Router
from sprig.server.errors import (
    handle_http_error,
    handle_internal_error,
    handle_unsendable_headers,
)
from sprig.server.negotiation import negotiate
from sprig.server.sender import send_response, start_message
from sprig.static import StaticFiles


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    pipeline: Pipeline,
    statics: Sequence[StaticFiles],
    error_handlers: dict[int | type, Callable[..., Any]],
    config: AppConfig,
) -> None:
    """Process a single HTTP request through the full pipeline.

    Routing happens up front so the Context carries its params, but a
    routing failure is raised only at the terminal stage: middleware
    (CORS preflight, access log) still runs for unmatched paths.
    """
    body_error: HTTPError | None = None
    try:
        body = await read_body(receive, scope, config.max_content_length)
    except HTTPError as exc:
        body = b""
        body_error = exc

    request = Request.from_asgi(scope, body)

    match: RouteMatch | None = None
    route_error: HTTPError | None = None
    try:
        match = router.match(request.method, request.path)
    except HTTPError as exc:
        route_error = exc

    ctx = Context(
        request,
        params=match.params if match is not None else None,
        proxy_header=config.proxy_header,
    )

    async def terminal(ctx: Context) -> None:
        if body_error is not None:
            raise body_error
        if match is not None:
            result = await invoke(match.route.handler, ctx)
            negotiate(ctx, result)
            return
        for static in statics:
            if await static.serve(ctx):
                return
        if route_error is not None:
            raise route_error

    token: Token[Context] = context_var.set(ctx)
    try:
        await pipeline.run(ctx, terminal)
    except HTTPError as exc:
        await handle_http_error(exc, ctx, error_handlers, config.debug)
    except Exception as exc:
        await handle_internal_error(exc, ctx, error_handlers, config.debug)
    finally:
        context_var.reset(token)

    try:
        start = start_message(ctx.response)
    except UnicodeEncodeError as exc:
        handle_unsendable_headers(exc, ctx)
        start = start_message(ctx.response)

    await send_response(ctx.response, send, head_only=request.method == "HEAD", start=start)
