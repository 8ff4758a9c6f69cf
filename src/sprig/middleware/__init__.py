"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(ctx: Context, next: Next) -> None

Built-in middleware:
    AccessLog -- One log line per request (status, latency, client)
    CORSMiddleware -- Cross-Origin Resource Sharing
    RequestID -- Reuse or generate a request id header and local
"""

from sprig.middleware.cors import CORSConfig, CORSMiddleware
from sprig.middleware.logger import AccessLog, AccessLogConfig
from sprig.middleware.pipeline import MiddlewareEntry, Pipeline
from sprig.middleware.protocol import Middleware, Next
from sprig.middleware.requestid import RequestID, RequestIDConfig

__all__ = [
    "AccessLog",
    "AccessLogConfig",
    "CORSConfig",
    "CORSMiddleware",
    "Middleware",
    "MiddlewareEntry",
    "Next",
    "Pipeline",
    "RequestID",
    "RequestIDConfig",
]
