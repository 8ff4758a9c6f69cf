"""ASGI response sending — flushes a ResponseBuffer as ASGI messages."""

from typing import Any

from sprig._internal.asgi import Send
from sprig.http.response import ResponseBuffer


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def start_message(buffer: ResponseBuffer) -> dict[str, Any]:
    """Build the ``http.response.start`` message for *buffer*.

    Raises ``UnicodeEncodeError`` when a header name or value (or the
    content type) cannot be encoded as latin-1.
    """
    raw_headers: list[tuple[bytes, bytes]] = []
    if _body_allowed(buffer.status):
        raw_headers.append((b"content-type", buffer.content_type.encode("latin-1")))
    for name, value in buffer.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    if _body_allowed(buffer.status):
        raw_headers.append((b"content-length", str(len(buffer.body)).encode("latin-1")))

    return {
        "type": "http.response.start",
        "status": buffer.status,
        "headers": raw_headers,
    }


async def send_response(
    buffer: ResponseBuffer,
    send: Send,
    *,
    head_only: bool = False,
    start: dict[str, Any] | None = None,
) -> None:
    """Translate a finished ResponseBuffer into ASGI send() calls.

    ``head_only`` keeps ``content-length`` at the size a ``GET`` would
    have produced but sends no body bytes. ``start`` reuses a message
    already built by ``start_message``.
    """
    await send(start if start is not None else start_message(buffer))

    body = buffer.body if _body_allowed(buffer.status) and not head_only else b""
    await send({"type": "http.response.body", "body": body})
