"""Immutable HTTP request.

Frozen metadata plus the fully received body. The request is honest
about what it is: received data that doesn't change. Everything that
varies per stage of the pipeline lives on the Context instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sprig._internal.asgi import Receive
from sprig.errors import PayloadTooLarge
from sprig.http.headers import Headers
from sprig.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is relative to the app handling the request: a mounted app
    sees its path with the mount prefix removed, and the prefix is moved
    into ``root_path``. ``raw_path`` is always the path the client sent.
    """

    method: str
    path: str
    raw_path: str
    root_path: str
    scheme: str
    headers: Headers
    query: QueryParams
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None
    body: bytes = b""

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def media_type(self) -> str:
        """Content-Type without parameters, lowercased (``""`` if absent)."""
        return (self.content_type or "").split(";", 1)[0].strip().lower()

    @property
    def url(self) -> str:
        """The URL as the client sent it (raw path + query string)."""
        if self.query.raw:
            return f"{self.raw_path}?{self.query.raw}"
        return self.raw_path

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], body: bytes = b"") -> Request:
        """Create a Request from an ASGI scope and an already-read body."""
        server = scope.get("server")
        client = scope.get("client")
        raw_path = scope.get("raw_path")
        path = scope["path"]
        return cls(
            method=scope["method"],
            path=path,
            raw_path=raw_path.decode("latin-1") if raw_path else scope.get("root_path", "") + path,
            root_path=scope.get("root_path", ""),
            scheme=scope.get("scheme", "http"),
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            body=body,
        )


async def read_body(receive: Receive, scope: dict[str, Any], limit: int) -> bytes:
    """Receive the whole request body, refusing more than *limit* bytes.

    A ``limit`` of 0 disables the check. Raises ``PayloadTooLarge`` as
    soon as the declared or received size exceeds the limit.
    """
    if limit:
        for name, value in scope.get("headers", ()):
            if name.lower() == b"content-length" and value.isdigit() and int(value) > limit:
                raise PayloadTooLarge
    chunks: list[bytes] = []
    size = 0
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunk = message.get("body", b"")
        if chunk:
            size += len(chunk)
            if limit and size > limit:
                raise PayloadTooLarge
            chunks.append(chunk)
        if not message.get("more_body", False):
            break
    return b"".join(chunks)
