"""Request ID middleware.

Reuses the id a client or proxy sent, otherwise generates one. The id
is echoed in the response header and stored as a local for handlers
and later middleware (``ctx.get_local("requestid", str)``).
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from sprig.context import Context
from sprig.middleware.protocol import Next


def _uuid4() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, slots=True)
class RequestIDConfig:
    """Request ID configuration."""

    header: str = "X-Request-ID"
    generator: Callable[[], str] = field(default=_uuid4)
    local_key: str = "requestid"


class RequestID:
    """Tag every request with an id.

    Usage::

        app.use(RequestID())
    """

    __slots__ = ("config",)

    def __init__(self, config: RequestIDConfig | None = None) -> None:
        self.config = config or RequestIDConfig()

    async def __call__(self, ctx: Context, next: Next) -> None:
        cfg = self.config
        rid = ctx.get(cfg.header) or cfg.generator()
        ctx.set(cfg.header, rid)
        ctx.set_local(cfg.local_key, rid)
        await next()
