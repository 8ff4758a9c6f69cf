"""Sprig — a small embeddable ASGI web framework.

Routes with named, optional and wildcard segments, prefix-scoped
middleware with single-use continuations, a mutable per-request
Context, groups, isolated mounts and static file fallback.

Basic usage::

    from sprig import App, Context

    app = App()

    @app.get("/hello/:name")
    def hello(ctx: Context) -> str:
        return f"Hello, {ctx.params('name')}!"

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "AlreadyResponded",
    "App",
    "AppConfig",
    "BadRequest",
    "ConfigurationError",
    "Context",
    "DecodeError",
    "Group",
    "HTTPError",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "PayloadTooLarge",
    "ProtocolViolation",
    "SprigError",
    "StaticConfig",
    "get_context",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import sprig`` fast while providing a clean top-level API.
    """
    if name == "App":
        from sprig.app import App

        return App

    if name == "AppConfig":
        from sprig.config import AppConfig

        return AppConfig

    if name == "Group":
        from sprig.group import Group

        return Group

    if name == "StaticConfig":
        from sprig.static import StaticConfig

        return StaticConfig

    if name in ("Context", "get_context"):
        from sprig import context as _ctx

        return getattr(_ctx, name)

    if name in ("Middleware", "Next"):
        from sprig.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in (
        "AlreadyResponded",
        "BadRequest",
        "ConfigurationError",
        "DecodeError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "PayloadTooLarge",
        "ProtocolViolation",
        "SprigError",
    ):
        from sprig import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
