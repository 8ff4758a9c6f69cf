"""Per-client admission control.

Wraps the listening app and caps how many requests a single client
address may have in flight. Excess requests are refused with ``429``
before any routing or middleware runs.
"""

import logging
import threading

from sprig._internal.asgi import ASGIApp, Receive, Scope, Send

logger = logging.getLogger("sprig.server")

_REFUSED_BODY = b"Too Many Requests"


class ClientLimiter:
    """ASGI wrapper admitting at most ``max_per_client`` concurrent requests per peer.

    The key is the directly connected peer address; proxy headers are
    not trusted for admission. Non-HTTP scopes pass straight through.

    Usage::

        app = ClientLimiter(inner_app, max_per_client=1)
    """

    __slots__ = ("_app", "_in_flight", "_lock", "_max")

    def __init__(self, app: ASGIApp, max_per_client: int) -> None:
        self._app = app
        self._max = max_per_client
        self._lock = threading.Lock()
        self._in_flight: dict[str, int] = {}

    def in_flight(self, client: str) -> int:
        """Requests currently admitted for *client*."""
        with self._lock:
            return self._in_flight.get(client, 0)

    def _acquire(self, key: str) -> bool:
        with self._lock:
            count = self._in_flight.get(key, 0)
            if count >= self._max:
                return False
            self._in_flight[key] = count + 1
            return True

    def _release(self, key: str) -> None:
        with self._lock:
            count = self._in_flight.get(key, 0) - 1
            if count > 0:
                self._in_flight[key] = count
            else:
                self._in_flight.pop(key, None)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self._max <= 0:
            await self._app(scope, receive, send)
            return

        client = scope.get("client")
        key = client[0] if client else "unknown"

        if not self._acquire(key):
            logger.warning("Refusing %s %s from %s: client limit reached", scope["method"], scope["path"], key)
            await _refuse(send)
            return

        try:
            await self._app(scope, receive, send)
        finally:
            self._release(key)


async def _refuse(send: Send) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": 429,
            "headers": [
                (b"content-type", b"text/plain; charset=utf-8"),
                (b"content-length", str(len(_REFUSED_BODY)).encode("latin-1")),
            ],
        }
    )
    await send({"type": "http.response.body", "body": _REFUSED_BODY})
