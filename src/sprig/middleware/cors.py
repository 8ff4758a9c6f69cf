"""CORS middleware.

Answers preflight requests itself and adds CORS headers to every other
response for an allowed origin. Defaults are permissive (any origin,
no credentials) so ``app.use(CORSMiddleware())`` works out of the box.
"""

from dataclasses import dataclass

from sprig.context import Context
from sprig.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS middleware configuration.

    Override what you need::

        CORSConfig(
            allow_origins=("https://example.com",),
            allow_credentials=True,
        )
    """

    allow_origins: tuple[str, ...] = ("*",)
    allow_methods: tuple[str, ...] = ("GET", "POST", "HEAD", "PUT", "DELETE", "PATCH")
    allow_headers: tuple[str, ...] = ()
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 0  # seconds; 0 omits Access-Control-Max-Age


class CORSMiddleware:
    """Cross-Origin Resource Sharing.

    Handles:
    - Preflight ``OPTIONS`` requests (204, never reaches the handler)
    - Actual requests (CORS headers set before the handler runs, so
      they survive error responses too)
    - Wildcard origins (``"*"``) when credentials are disabled

    Usage::

        app.use(CORSMiddleware(CORSConfig(allow_origins=("https://example.com",))))
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    def _is_allowed_origin(self, origin: str) -> bool:
        if "*" in self.config.allow_origins:
            return True
        return origin in self.config.allow_origins

    def _set_origin_headers(self, ctx: Context, origin: str) -> None:
        cfg = self.config
        if "*" in cfg.allow_origins and not cfg.allow_credentials:
            ctx.set("Access-Control-Allow-Origin", "*")
        else:
            ctx.set("Access-Control-Allow-Origin", origin)
            ctx.append("Vary", "Origin")
        if cfg.allow_credentials:
            ctx.set("Access-Control-Allow-Credentials", "true")

    async def __call__(self, ctx: Context, next: Next) -> None:
        origin = ctx.get("origin")

        # No Origin header: not a CORS request
        if not origin or not self._is_allowed_origin(origin):
            await next()
            return

        cfg = self.config
        self._set_origin_headers(ctx, origin)

        request_method = ctx.get("access-control-request-method")
        if ctx.method == "OPTIONS" and request_method:
            ctx.set("Access-Control-Allow-Methods", ", ".join(cfg.allow_methods))
            # Echo requested headers when none are configured
            allow_headers = ", ".join(cfg.allow_headers) or ctx.get("access-control-request-headers")
            if allow_headers:
                ctx.set("Access-Control-Allow-Headers", allow_headers)
            if cfg.max_age > 0:
                ctx.set("Access-Control-Max-Age", str(cfg.max_age))
            ctx.status(204)
            return

        if cfg.expose_headers:
            ctx.set("Access-Control-Expose-Headers", ", ".join(cfg.expose_headers))
        await next()
