"""Sprig application class.

Mutable during setup (routes, middleware, groups, mounts, static dirs,
error handlers). Frozen at runtime when app.run() or __call__() is
first invoked.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from sprig._internal.asgi import ASGIApp, Receive, Scope, Send
from sprig._internal.types import ErrorHandler, Handler
from sprig.config import AppConfig
from sprig.errors import ConfigurationError
from sprig.group import Group, RouteRegistrar
from sprig.middleware.pipeline import MiddlewareEntry, Pipeline, covers, normalize_prefix
from sprig.middleware.protocol import Middleware
from sprig.routing.route import Route
from sprig.routing.router import Router
from sprig.server.handler import handle_request
from sprig.server.limits import ClientLimiter
from sprig.static import StaticConfig, StaticFiles

logger = logging.getLogger("sprig.app")


class App(RouteRegistrar):
    """The sprig application.

    Mutable during setup (route registration, middleware, mounts).
    Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.

    Usage::

        app = App(AppConfig(max_conns_per_ip=1))

        @app.get("/users/:id")
        def user(ctx: Context) -> str:
            return f"user {ctx.params('id')}"

        app.run()

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app, even when several requests arrive
        concurrently on first use.
    """

    __slots__ = (
        "_entry",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware_entries",
        "_mount_table",
        "_mounts",
        "_pipeline",
        "_router",
        "_static_list",
        "_statics",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._router: Router = Router()
        self._middleware_entries: list[MiddlewareEntry] = []
        self._mounts: dict[str, App] = {}
        self._static_list: list[StaticFiles] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._pipeline: Pipeline = Pipeline()
        self._statics: tuple[StaticFiles, ...] = ()
        self._mount_table: tuple[tuple[str, App], ...] = ()
        self._entry: ASGIApp = self._dispatch

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "setup"
        return f"<App routes={len(self._router.routes)} mounts={len(self._mounts)} {state}>"

    # -- Route registration --

    def add(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        *,
        name: str | None = None,
    ) -> Route:
        """Register *handler* for *method* and *pattern*.

        The pattern is validated immediately: a malformed pattern or a
        duplicate method + pattern raises ``ConfigurationError`` here, not
        at startup.
        """
        self._check_not_frozen()
        if not callable(handler):
            msg = f"Handler for {method} {pattern!r} is not callable: {handler!r}"
            raise ConfigurationError(msg)
        return self._router.register(method, pattern, handler, name=name)

    @property
    def routes(self) -> list[Route]:
        """All routes registered on this app (mounted apps excluded)."""
        return self._router.routes

    # -- Middleware --

    def use(self, *args: str | Middleware) -> App:
        """Add middleware, optionally scoped to a path prefix.

        ``app.use(mw)`` runs for every path; ``app.use("/admin", mw1, mw2)``
        runs for ``/admin`` and everything below it. Order of registration
        is order of execution.
        """
        self._check_not_frozen()
        prefix = ""
        middleware = args
        if args and isinstance(args[0], str):
            prefix = normalize_prefix(args[0])
            middleware = args[1:]
        if not middleware:
            msg = "use() needs at least one middleware"
            raise ConfigurationError(msg)
        for mw in middleware:
            if isinstance(mw, str) or not callable(mw):
                msg = f"Middleware must be callable, got {mw!r}"
                raise ConfigurationError(msg)
            self._middleware_entries.append(MiddlewareEntry(prefix, mw))
        return self

    # -- Composition --

    def group(self, prefix: str, *middleware: Middleware) -> Group:
        """Create a route group under *prefix*, registering *middleware* at it."""
        self._check_not_frozen()
        group = Group(self, prefix)
        if middleware:
            group.use(*middleware)
        return group

    def mount(self, prefix: str, app: App) -> None:
        """Delegate every path under *prefix* to *app*.

        The mounted app sees the path with *prefix* stripped and runs only
        its own middleware, routes, static mounts and error handlers.
        """
        self._check_not_frozen()
        normalized = normalize_prefix(prefix)
        if not normalized:
            msg = "Cannot mount an app at '/'; use routes or groups on the parent"
            raise ConfigurationError(msg)
        if app is self or app._reaches(self):
            msg = "An app cannot be mounted on itself or on an app it mounts"
            raise ConfigurationError(msg)
        if normalized in self._mounts:
            msg = f"An app is already mounted at {normalized!r}"
            raise ConfigurationError(msg)
        self._mounts[normalized] = app

    def serve_static(
        self,
        mount_path: str,
        directory: str | Path,
        config: StaticConfig | None = None,
    ) -> None:
        """Serve files from *directory* under *mount_path* when no route matches."""
        self._check_not_frozen()
        if not Path(directory).is_dir():
            msg = f"Static directory {str(directory)!r} does not exist"
            raise ConfigurationError(msg)
        self._static_list.append(StaticFiles(mount_path, directory, config))

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator.

        Handlers take ``(ctx, exc)``, ``(ctx)`` or nothing, and may write
        through ``ctx`` or return a value like a route handler.
        """
        valid = isinstance(code_or_exception, int) or (
            isinstance(code_or_exception, type) and issubclass(code_or_exception, Exception)
        )
        if not valid:
            msg = f"Error handler key must be a status code or exception class, got {code_or_exception!r}"
            raise ConfigurationError(msg)

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Compile the app and serve it with uvicorn until interrupted.

        Args:
            host: Override bind host.
            port: Override bind port.
        """
        from sprig.server.run import configure_logging, run_server

        self._ensure_frozen()
        configure_logging(self.config.log_level, self.config.log_format)

        _host = host or self.config.host
        _port = port if port is not None else self.config.port
        logger.info("Serving on http://%s:%d", _host, _port)

        run_server(
            self,
            _host,
            _port,
            log_level=self.config.log_level,
            max_connections=self.config.max_connections,
            keep_alive_timeout=self.config.keep_alive_timeout,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then hands HTTP scopes to the
        client limiter (when configured) and the request pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        if scope["type"] != "http":
            return

        self._ensure_frozen()
        await self._entry(scope, receive, send)

    async def _dispatch(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Route to a mounted app by prefix, else through this app's pipeline."""
        path = scope["path"]
        for prefix, mounted in self._mount_table:
            if covers(prefix, path):
                child = dict(scope)
                child["path"] = path[len(prefix) :] or "/"
                child["root_path"] = scope.get("root_path", "") + prefix
                await mounted._dispatch(child, receive, send)
                return

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            pipeline=self._pipeline,
            statics=self._statics,
            error_handlers=self._error_handlers,
            config=self.config,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request) and
        signals completion back to the server.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking.

        Several requests can reach __call__() concurrently before the
        lifespan scope ran (or without one, under the test client). This
        pattern ensures exactly one caller performs compilation.
        """
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its runtime state.

        MUST only be called while holding _freeze_lock.
        """
        self._router.compile()
        self._pipeline = Pipeline(tuple(self._middleware_entries))
        # Longest prefix wins for both static dirs and mounts
        self._statics = tuple(sorted(self._static_list, key=lambda s: len(s.prefix), reverse=True))
        self._mount_table = tuple(
            sorted(self._mounts.items(), key=lambda item: len(item[0]), reverse=True)
        )
        for _, mounted in self._mount_table:
            mounted._ensure_frozen()

        if self.config.max_conns_per_ip:
            self._entry = ClientLimiter(self._dispatch, self.config.max_conns_per_ip)
        else:
            self._entry = self._dispatch

        self._frozen = True
        logger.debug(
            "Compiled %d routes, %d middleware, %d static dirs, %d mounts",
            len(self._router.routes),
            len(self._pipeline),
            len(self._statics),
            len(self._mount_table),
        )

    def _reaches(self, target: App) -> bool:
        """True if *target* is mounted somewhere below this app."""
        return any(
            mounted is target or mounted._reaches(target) for mounted in self._mounts.values()
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and mounts before calling app.run()."
            )
            raise RuntimeError(msg)
