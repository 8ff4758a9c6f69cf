"""Content negotiation — writes handler return values into the Context.

Handlers may write through ``ctx`` or return a value. isinstance-based
dispatch, no magic, fully predictable.
"""

import dataclasses
from typing import Any

from sprig.context import Context
from sprig.errors import AlreadyResponded


def negotiate(ctx: Context, value: Any) -> None:
    """Write a handler's return value into ``ctx.response``.

    Dispatch order:

    1. ``None``                 -> nothing (the handler wrote, or left it empty)
    2. ``str``                  -> text/plain
    3. ``bytes``                -> application/octet-stream
    4. ``dict`` / ``list``      -> application/json
    5. dataclass instance       -> application/json
    6. ``(value, int)``         -> negotiate value, override status
    7. ``(value, int, dict)``   -> negotiate value, override status + headers

    Raises ``AlreadyResponded`` if the handler both wrote and returned a
    value, and ``TypeError`` for anything else.
    """
    if value is None:
        return
    if ctx.response.written and not isinstance(value, tuple):
        msg = "Handler returned a value after writing the response"
        raise AlreadyResponded(msg)

    match value:
        case str():
            ctx.send_string(value)
        case bytes():
            ctx.send(value)
        case dict() | list():
            ctx.json(value)
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            ctx.json(value)
        case (inner, int() as status):
            ctx.status(status)
            negotiate(ctx, inner)
        case (inner, int() as status, dict() as headers):
            ctx.status(status)
            for name, header_value in headers.items():
                ctx.set(name, header_value)
            negotiate(ctx, inner)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return str, bytes, dict, list, a dataclass, or None."
            )
            raise TypeError(msg)
