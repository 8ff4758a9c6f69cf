"""Access log middleware.

One log record per request on the ``sprig.access`` logger, rendered from
a ``${tag}`` template. Available tags: ``time``, ``status``, ``latency``,
``ip``, ``method``, ``path``, ``url``, ``error``, ``requestid``.

Errors raised further down the pipeline are logged with the status the
error boundary will give them, then re-raised untouched.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, tzinfo
from string import Template
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sprig.context import Context
from sprig.errors import ConfigurationError, HTTPError
from sprig.middleware.protocol import Next

DEFAULT_FORMAT = "${time} | ${status} | ${latency} | ${ip} | ${method} | ${path} | ${error}"


@dataclass(frozen=True, slots=True)
class AccessLogConfig:
    """Access log configuration.

    ``time_zone`` takes an IANA name (``"Asia/Bangkok"``) or ``"Local"``.
    """

    format: str = DEFAULT_FORMAT
    time_format: str = "%H:%M:%S"
    time_zone: str = "Local"
    logger_name: str = "sprig.access"


class AccessLog:
    """Log every request after it completes.

    Usage::

        app.use(AccessLog(AccessLogConfig(time_zone="Asia/Bangkok")))
    """

    __slots__ = ("_config", "_logger", "_template", "_tz")

    def __init__(self, config: AccessLogConfig | None = None) -> None:
        self._config = config or AccessLogConfig()
        self._template = Template(self._config.format)
        self._logger = logging.getLogger(self._config.logger_name)
        self._tz: tzinfo | None = None
        if self._config.time_zone != "Local":
            try:
                self._tz = ZoneInfo(self._config.time_zone)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                msg = f"Unknown time zone {self._config.time_zone!r}"
                raise ConfigurationError(msg) from exc

    def _now(self) -> datetime:
        if self._tz is None:
            return datetime.now().astimezone()
        return datetime.now(self._tz)

    def render(self, ctx: Context, status: int, elapsed: float, error: str) -> str:
        """Render one log line for *ctx*."""
        return self._template.safe_substitute(
            time=self._now().strftime(self._config.time_format),
            status=status,
            latency=f"{elapsed * 1000:.3f}ms",
            ip=ctx.ip(),
            method=ctx.method,
            path=ctx.path,
            url=ctx.original_url,
            error=error,
            requestid=ctx.locals.get("requestid", ""),
        )

    async def __call__(self, ctx: Context, next: Next) -> None:
        start = time.perf_counter()
        status: int | None = None
        error = ""
        try:
            await next()
        except HTTPError as exc:
            status = exc.status
            error = exc.detail or str(exc)
            raise
        except Exception as exc:
            status = 500
            error = f"{type(exc).__name__}: {exc}"
            raise
        finally:
            elapsed = time.perf_counter() - start
            line = self.render(ctx, status or ctx.response.status, elapsed, error)
            self._logger.info(line)
