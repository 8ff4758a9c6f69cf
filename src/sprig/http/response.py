"""Mutable response buffer owned by a single request's Context.

Middleware and handlers set status and headers freely; the body is
written exactly once. The buffer is flushed to the server only after
the whole pipeline has finished, so an outer middleware can still add
headers after its ``next`` returns.
"""

from sprig.errors import AlreadyResponded

TEXT_PLAIN = "text/plain; charset=utf-8"
APPLICATION_JSON = "application/json"
OCTET_STREAM = "application/octet-stream"


class ResponseBuffer:
    """Status, headers and body of the response being built."""

    __slots__ = ("_written", "body", "content_type", "headers", "status")

    def __init__(self) -> None:
        self.status: int = 200
        self.content_type: str = TEXT_PLAIN
        self.headers: list[tuple[str, str]] = []
        self.body: bytes = b""
        self._written: bool = False

    # -- Headers --

    def set_header(self, name: str, value: str) -> None:
        """Set *name*, replacing any earlier value (case-insensitive)."""
        lowered = name.lower()
        self.headers = [(n, v) for n, v in self.headers if n.lower() != lowered]
        self.headers.append((name, value))

    def append_header(self, name: str, value: str) -> None:
        """Add another value for *name* without touching existing ones."""
        self.headers.append((name, value))

    def get_header(self, name: str) -> str | None:
        """Return the last value set for *name*, or None."""
        lowered = name.lower()
        for n, v in reversed(self.headers):
            if n.lower() == lowered:
                return v
        return None

    # -- Body --

    @property
    def written(self) -> bool:
        """True once a terminal write has happened."""
        return self._written

    def write(self, body: bytes, content_type: str | None = None) -> None:
        """Store the body. Only the first call succeeds."""
        if self._written:
            msg = "Response body was already written for this request"
            raise AlreadyResponded(msg)
        self._written = True
        self.body = body
        if content_type is not None:
            self.content_type = content_type

    def reset(self) -> None:
        """Discard status and body (headers survive) before an error response."""
        self.status = 200
        self.content_type = TEXT_PLAIN
        self.body = b""
        self._written = False

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8")
