"""Sprig exception hierarchy.

Shared across Router, App, pipeline and context so every module
raises and catches the same types.
"""

from dataclasses import dataclass


class SprigError(Exception):
    """Base for all sprig-specific errors."""


class ConfigurationError(SprigError):
    """Raised when a route pattern, mount or config value is invalid.

    Raised at registration time, so a malformed app fails at startup.
    """


class ProtocolViolation(SprigError):  # noqa: N818
    """A middleware invoked its ``next`` continuation more than once."""


class AlreadyResponded(SprigError):  # noqa: N818
    """A second terminal write was attempted on the same response."""


@dataclass(frozen=True, slots=True)
class HTTPError(SprigError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The error boundary
    catches these and dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "Method Not Allowed") -> None:
        allow_value = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=detail,
            headers=(("Allow", allow_value),),
        )


class BadRequest(HTTPError):  # noqa: N818
    """400 — a request value could not be converted."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class DecodeError(HTTPError):
    """Structured body or query decoding failed.

    400 for malformed input, 422 for a content type that cannot be decoded.
    """

    def __init__(self, detail: str = "Bad Request", status: int = 400) -> None:
        super().__init__(status=status, detail=detail)


class PayloadTooLarge(HTTPError):  # noqa: N818
    """413 — request body exceeds ``AppConfig.max_content_length``."""

    def __init__(self, detail: str = "Request Entity Too Large") -> None:
        super().__init__(status=413, detail=detail)
