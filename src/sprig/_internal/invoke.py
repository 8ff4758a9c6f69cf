"""Invoke helpers — call sync or async handlers uniformly.

Sprig handlers can be ``def`` or ``async def``. Any code that calls
a user-provided handler must handle both cases. This module provides
a single helper so the sync/async check lives in exactly one place.

Synchronous callables run in a worker thread so a blocking handler
(``time.sleep``, file or socket I/O) never stalls the event loop that
serves every other in-flight request.

Usage::

    from sprig._internal.invoke import invoke

    result = await invoke(handler, ctx)
"""

import functools
import inspect
from typing import Any

import anyio.to_thread


def is_async_callable(obj: Any) -> bool:
    """True for ``async def`` functions and objects with an async ``__call__``."""
    while isinstance(obj, functools.partial):
        obj = obj.func
    return inspect.iscoroutinefunction(obj) or inspect.iscoroutinefunction(
        getattr(obj, "__call__", None)
    )


async def invoke(handler: Any, *args: Any) -> Any:
    """Call a handler, off-loop when it is synchronous.

    Works with both sync and async callables::

        # sync: runs in a worker thread
        def slow(ctx):
            time.sleep(1)
            return "done"

        # async: awaited on the event loop
        async def fast(ctx):
            return "done"
    """
    if is_async_callable(handler):
        result = await handler(*args)
    else:
        result = await anyio.to_thread.run_sync(functools.partial(handler, *args))
    if inspect.isawaitable(result):
        result = await result
    return result
