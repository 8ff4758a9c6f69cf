"""Prefix-scoped middleware pipeline.

Entries are kept in registration order. For a request, every entry
whose prefix covers the path runs, outermost first, around a terminal
stage (the route handler or its fallback).

Each middleware receives a fresh single-use continuation. Awaiting it
twice raises ``ProtocolViolation`` before anything downstream runs
again.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from sprig.context import Context
from sprig.errors import ProtocolViolation
from sprig.middleware.protocol import Middleware

type Terminal = Callable[[Context], Awaitable[None]]


def normalize_prefix(prefix: str) -> str:
    """``""``, ``"/"`` -> ``""`` (global); ``"api/"`` -> ``"/api"``."""
    stripped = prefix.strip("/")
    return f"/{stripped}" if stripped else ""


def covers(prefix: str, path: str) -> bool:
    """True if normalized *prefix* is *path* or a segment-aligned prefix of it."""
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


@dataclass(frozen=True, slots=True)
class MiddlewareEntry:
    """A middleware bound to a path prefix (``""`` = every path)."""

    prefix: str
    middleware: Middleware


class _Continuation:
    """The ``next`` handed to the middleware at ``index``. Usable once."""

    __slots__ = ("_chain", "_ctx", "_index", "_terminal", "_used")

    def __init__(
        self,
        chain: tuple[Middleware, ...],
        index: int,
        ctx: Context,
        terminal: Terminal,
    ) -> None:
        self._chain = chain
        self._index = index
        self._ctx = ctx
        self._terminal = terminal
        self._used = False

    async def __call__(self) -> None:
        if self._used:
            mw = self._chain[self._index - 1]
            name = getattr(mw, "__qualname__", type(mw).__qualname__)
            msg = f"Middleware {name} called next() more than once"
            raise ProtocolViolation(msg)
        self._used = True
        await _run_stage(self._chain, self._index, self._ctx, self._terminal)


async def _run_stage(
    chain: tuple[Middleware, ...],
    index: int,
    ctx: Context,
    terminal: Terminal,
) -> None:
    if index == len(chain):
        await terminal(ctx)
        return
    await chain[index](ctx, _Continuation(chain, index + 1, ctx, terminal))


class Pipeline:
    """Ordered, immutable set of prefix-scoped middleware.

    Usage::

        pipeline = Pipeline((
            MiddlewareEntry("", access_log),
            MiddlewareEntry("/admin", require_admin),
        ))
        await pipeline.run(ctx, handler_stage)
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: tuple[MiddlewareEntry, ...] = ()) -> None:
        self._entries = entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[MiddlewareEntry, ...]:
        return self._entries

    def select(self, path: str) -> tuple[Middleware, ...]:
        """Middleware covering *path*, in registration order."""
        return tuple(entry.middleware for entry in self._entries if covers(entry.prefix, path))

    async def run(self, ctx: Context, terminal: Terminal) -> None:
        """Run the covering middleware around *terminal*.

        Exceptions from any stage propagate to the caller unchanged.
        """
        await _run_stage(self.select(ctx.path), 0, ctx, terminal)
