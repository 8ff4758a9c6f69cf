"""Route groups and the verb helpers shared with App.

A Group is a view onto its App: routes registered through it get the
group prefix prepended, and its middleware is registered on the App at
that prefix. Nothing is copied; the App owns every route.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from sprig._internal.types import Handler
from sprig.routing.route import Route

if TYPE_CHECKING:
    from sprig.app import App
    from sprig.middleware.protocol import Middleware


def join_path(prefix: str, pattern: str) -> str:
    """``("/v1", "/index")`` -> ``"/v1/index"``; ``("/v1", "/")`` -> ``"/v1"``."""
    head = prefix.strip("/")
    tail = pattern.strip("/")
    joined = "/".join(part for part in (head, tail) if part)
    return f"/{joined}"


class RouteRegistrar:
    """HTTP verb helpers on top of ``add()``.

    Each helper works as a decorator or as a direct call::

        @app.get("/index")
        def index(ctx): ...

        app.get("/index", index)
    """

    __slots__ = ()

    def add(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        *,
        name: str | None = None,
    ) -> Route:
        raise NotImplementedError

    def route(
        self,
        pattern: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a handler for several methods. Defaults to ``["GET"]``."""

        def decorator(func: Handler) -> Handler:
            for method in methods or ["GET"]:
                self.add(method, pattern, func, name=name)
            return func

        return decorator

    def _verb(self, method: str, pattern: str, handler: Handler | None, name: str | None) -> Any:
        if handler is not None:
            self.add(method, pattern, handler, name=name)
            return handler

        def decorator(func: Handler) -> Handler:
            self.add(method, pattern, func, name=name)
            return func

        return decorator

    def get(self, pattern: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._verb("GET", pattern, handler, name)

    def post(self, pattern: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._verb("POST", pattern, handler, name)

    def put(self, pattern: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._verb("PUT", pattern, handler, name)

    def patch(self, pattern: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._verb("PATCH", pattern, handler, name)

    def delete(self, pattern: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._verb("DELETE", pattern, handler, name)

    def head(self, pattern: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._verb("HEAD", pattern, handler, name)

    def options(self, pattern: str, handler: Handler | None = None, *, name: str | None = None) -> Any:
        return self._verb("OPTIONS", pattern, handler, name)


class Group(RouteRegistrar):
    """Routes and middleware sharing a path prefix on one App.

    Usage::

        v1 = app.group("/v1", version_header("v1"))
        v1.get("/index", index)   # GET /v1/index, runs version_header
    """

    __slots__ = ("_app", "_prefix")

    def __init__(self, app: App, prefix: str) -> None:
        self._app = app
        self._prefix = join_path(prefix, "")

    def __repr__(self) -> str:
        return f"<Group {self._prefix}>"

    @property
    def prefix(self) -> str:
        return self._prefix

    def add(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        *,
        name: str | None = None,
    ) -> Route:
        """Register ``prefix + pattern`` on the owning App."""
        return self._app.add(method, join_path(self._prefix, pattern), handler, name=name)

    def use(self, *middleware: Middleware) -> Group:
        """Run *middleware* for every path under this group's prefix."""
        self._app.use(self._prefix, *middleware)
        return self

    def group(self, prefix: str, *middleware: Middleware) -> Group:
        """Nested group: ``app.group("/api").group("/v1")`` covers ``/api/v1``."""
        return self._app.group(join_path(self._prefix, prefix), *middleware)
