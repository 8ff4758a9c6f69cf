"""Server startup.

Starts a uvicorn server with the live sprig App object and installs
the ``sprig`` log handler.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sprig._internal.asgi import ASGIApp

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record: time, level, logger, message (+ exc)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(level: str = "info", fmt: str = "text") -> logging.Logger:
    """Attach a stream handler to the ``sprig`` logger.

    Calling it again replaces the handler installed by the previous
    call instead of stacking another one.
    """
    logger = logging.getLogger("sprig")
    logger.setLevel(level.upper())

    handler = logging.StreamHandler()
    handler.set_name("sprig")
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))

    for existing in list(logger.handlers):
        if existing.get_name() == "sprig":
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def run_server(
    app: ASGIApp,
    host: str,
    port: int,
    *,
    log_level: str = "info",
    max_connections: int = 0,
    keep_alive_timeout: float = 5.0,
) -> None:
    """Start a uvicorn server with the given ASGI app.

    ``uvicorn.run()`` also accepts an import string, but sprig has a
    live ``App`` object, so ``uvicorn.Server`` is driven directly.

    Args:
        app: ASGI callable (sprig App, possibly wrapped by ClientLimiter).
        host: Bind host address.
        port: Bind port number.
        log_level: uvicorn's own log level.
        max_connections: Server-wide concurrency ceiling (0 = none).
        keep_alive_timeout: Seconds an idle keep-alive connection is held.
    """
    import uvicorn

    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=log_level,
        limit_concurrency=max_connections or None,
        timeout_keep_alive=int(keep_alive_timeout),
        lifespan="on",
    )
    uvicorn.Server(config).run()
