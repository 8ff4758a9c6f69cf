"""Per-request Context and its ContextVar accessor.

A Context is created for every request, handed to each middleware and
to the handler, and discarded once the response is sent. It carries:

- the immutable ``Request`` (method, path, headers, query, body)
- ``params`` filled in by the router
- ``locals`` written by middleware for later stages
- the mutable ``ResponseBuffer``

``get_context()`` returns the Context of the request being handled by
the current task (or the worker thread running a sync handler).
"""

from __future__ import annotations

import dataclasses
import json as json_module
import mimetypes
from contextvars import ContextVar
from http import HTTPStatus
from typing import Any
from urllib.parse import parse_qs

from sprig.errors import DecodeError
from sprig.extraction import decode_into
from sprig.http.headers import Headers
from sprig.http.request import Request
from sprig.http.response import APPLICATION_JSON, OCTET_STREAM, TEXT_PLAIN, ResponseBuffer
from sprig.locals import Locals
from sprig.routing.params import convert_int

_FORM = "application/x-www-form-urlencoded"


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def encode_json(value: Any) -> bytes:
    """Serialize *value* (dataclasses included) to compact UTF-8 JSON."""
    return json_module.dumps(value, default=_json_default, separators=(",", ":")).encode("utf-8")


class Context:
    """Everything one request needs on its way through the pipeline.

    Usage::

        async def auth(ctx: Context, next: Next) -> None:
            ctx.set_local("user", "alice")
            await next()

        def profile(ctx: Context) -> None:
            ctx.send_string(f"hello {ctx.get_local('user', str)}")
    """

    __slots__ = ("_params", "locals", "proxy_header", "request", "response")

    def __init__(
        self,
        request: Request,
        *,
        params: dict[str, str] | None = None,
        proxy_header: str = "X-Forwarded-For",
    ) -> None:
        self.request = request
        self.response = ResponseBuffer()
        self.locals = Locals()
        self.proxy_header = proxy_header
        self._params: dict[str, str] = params or {}

    def __repr__(self) -> str:
        return f"<Context {self.request.method} {self.request.path}>"

    # -- Request metadata --

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        """Path relative to the app handling the request."""
        return self.request.path

    @property
    def original_url(self) -> str:
        """Path and query string exactly as the client sent them."""
        return self.request.url

    @property
    def query_string(self) -> str:
        return self.request.query.raw

    @property
    def headers(self) -> Headers:
        return self.request.headers

    def get(self, name: str, default: str = "") -> str:
        """Return a request header (case-insensitive)."""
        value = self.request.headers.get(name)
        return default if value is None else value

    def base_url(self) -> str:
        """Scheme and host, e.g. ``http://localhost:8000``."""
        return f"{self.protocol()}://{self.hostname()}"

    def hostname(self) -> str:
        """The Host header, port included when the client sent one."""
        host = self.request.headers.get("host")
        if host:
            return host
        if self.request.server:
            name, port = self.request.server
            return f"{name}:{port}"
        return ""

    def protocol(self) -> str:
        return self.request.scheme

    def ip(self) -> str:
        """Address of the directly connected peer."""
        return self.request.client[0] if self.request.client else ""

    def ips(self) -> list[str]:
        """Client chain from the proxy header, client first (empty if absent)."""
        raw = ", ".join(self.request.headers.get_list(self.proxy_header))
        return [part.strip() for part in raw.split(",") if part.strip()]

    def subdomains(self, offset: int = 2) -> list[str]:
        """Host labels left of the last *offset* ones.

        A host with fewer labels than *offset* is returned whole, so
        ``localhost:8000`` yields ``["localhost:8000"]``.
        """
        labels = self.hostname().split(".")
        keep = len(labels) - offset
        if keep < 0:
            return labels
        return labels[:keep]

    # -- Path parameters --

    def params(self, name: str, default: str = "") -> str:
        """A captured path parameter (``"*"`` for the wildcard).

        Optional parameters absent from the path are present as ``""``.
        """
        return self._params.get(name, default)

    def all_params(self) -> dict[str, str]:
        return dict(self._params)

    def params_int(self, name: str) -> int:
        """A path parameter as ``int``; ``BadRequest`` if not base 10."""
        return convert_int(name, self._params.get(name, ""))

    # -- Query string --

    def query(self, name: str, default: str = "") -> str:
        value = self.request.query.get(name)
        return default if value is None else value

    def queries(self) -> dict[str, str]:
        return self.request.query.to_dict()

    def query_parser[T](self, target: type[T]) -> T:
        """Decode the query string into *target* (``dict`` or a dataclass)."""
        return decode_into(target, self.request.query)

    # -- Body --

    def body(self) -> bytes:
        return self.request.body

    def is_type(self, extension: str) -> bool:
        """True if the request Content-Type matches the MIME type of *extension*.

        ``ctx.is_type("json")`` is True for ``application/json; charset=utf-8``.
        """
        ext = extension if extension.startswith(".") else f".{extension}"
        expected = mimetypes.types_map.get(ext.lower())
        return expected is not None and self.request.media_type == expected

    def body_parser[T](self, target: type[T]) -> T:
        """Decode the body into *target* (``dict`` or a dataclass) by Content-Type.

        Raises ``DecodeError``: 400 for bytes that do not parse, 422 for
        a content type that cannot be decoded.
        """
        media_type = self.request.media_type
        raw = self.request.body

        if media_type == APPLICATION_JSON or media_type.endswith("+json"):
            try:
                data = json_module.loads(raw)
            except (UnicodeDecodeError, json_module.JSONDecodeError) as exc:
                msg = f"Malformed JSON body: {exc}"
                raise DecodeError(msg) from None
            if not isinstance(data, dict):
                msg = f"Expected a JSON object, got {type(data).__name__}"
                raise DecodeError(msg)
            return decode_into(target, data)

        if media_type == _FORM:
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError:
                msg = "Form body is not valid UTF-8"
                raise DecodeError(msg) from None
            form = {key: values[0] for key, values in parse_qs(text, keep_blank_values=True).items()}
            return decode_into(target, form)

        msg = f"Cannot decode a body of type {media_type or 'unknown'!r}"
        raise DecodeError(msg, status=422)

    # -- Locals --

    def set_local(self, key: str, value: Any) -> None:
        self.locals.set(key, value)

    def get_local(self, key: str, expected: type | None = None) -> Any:
        """Read a local; ``KeyError`` if missing, ``TypeError`` on type mismatch."""
        return self.locals.require(key, expected)

    # -- Response --

    def status(self, code: int) -> Context:
        """Set the response status. Chainable: ``ctx.status(201).json(...)``."""
        self.response.status = code
        return self

    def set(self, name: str, value: str) -> Context:
        """Set a response header, replacing earlier values."""
        self.response.set_header(name, value)
        return self

    def append(self, name: str, value: str) -> Context:
        """Add a response header value."""
        self.response.append_header(name, value)
        return self

    def send_string(self, text: str) -> None:
        self.response.write(text.encode("utf-8"), TEXT_PLAIN)

    def send(self, body: bytes, content_type: str = OCTET_STREAM) -> None:
        self.response.write(body, content_type)

    def json(self, value: Any) -> None:
        self.response.write(encode_json(value), APPLICATION_JSON)

    def send_status(self, code: int) -> None:
        """Set the status and send its reason phrase as the body."""
        try:
            phrase = HTTPStatus(code).phrase
        except ValueError:
            phrase = str(code)
        self.response.write(phrase.encode("utf-8"), TEXT_PLAIN)
        self.response.status = code


# -- Request context --

context_var: ContextVar[Context] = ContextVar("sprig_context")
"""The current request's Context. Set by the request handler before dispatch."""


def get_context() -> Context:
    """Return the current request's Context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()
