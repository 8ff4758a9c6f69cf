"""Tests for sprig.errors and the error boundary in sprig.server.errors."""

import logging

import pytest

from sprig.app import App
from sprig.config import AppConfig
from sprig.context import Context
from sprig.errors import (
    AlreadyResponded,
    BadRequest,
    ConfigurationError,
    DecodeError,
    HTTPError,
    MethodNotAllowed,
    NotFound,
    PayloadTooLarge,
    ProtocolViolation,
    SprigError,
)
from sprig.middleware.protocol import Next
from sprig.testing import TestClient


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [ConfigurationError, ProtocolViolation, AlreadyResponded, HTTPError],
    )
    def test_sprig_errors(self, cls: type) -> None:
        assert issubclass(cls, SprigError)

    @pytest.mark.parametrize(
        "cls",
        [NotFound, MethodNotAllowed, BadRequest, DecodeError, PayloadTooLarge],
    )
    def test_http_errors(self, cls: type) -> None:
        assert issubclass(cls, HTTPError)


class TestHTTPError:
    def test_str(self) -> None:
        assert str(HTTPError(status=404, detail="content not found")) == "404: content not found"
        assert str(HTTPError(status=500)) == "500"

    def test_frozen(self) -> None:
        err = HTTPError(status=400)
        with pytest.raises(AttributeError):
            err.status = 500  # type: ignore[misc]

    def test_defaults(self) -> None:
        assert (NotFound().status, NotFound().detail) == (404, "Not Found")
        assert BadRequest().status == 400
        assert PayloadTooLarge().status == 413
        assert DecodeError("nope", status=422).status == 422

    def test_method_not_allowed_allow_header(self) -> None:
        err = MethodNotAllowed(frozenset({"POST", "GET"}))
        assert err.status == 405
        assert err.headers == (("Allow", "GET, POST"),)


def _app(debug: bool = False) -> App:
    app = App(AppConfig(debug=debug))

    @app.get("/error")
    def error(ctx: Context) -> None:
        raise HTTPError(404, "content not found")

    @app.get("/boom")
    def boom(ctx: Context) -> None:
        raise ValueError("kaput")

    return app


class TestDefaultResponses:
    async def test_http_error_detail(self) -> None:
        async with TestClient(_app()) as client:
            response = await client.get("/error")
            assert response.status == 404
            assert response.text == "content not found"

    async def test_http_error_debug(self) -> None:
        async with TestClient(_app(debug=True)) as client:
            assert (await client.get("/error")).text == "404: content not found"

    async def test_unexpected_error_hides_details(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="sprig.server"):
            async with TestClient(_app()) as client:
                response = await client.get("/boom")
        assert response.status == 500
        assert response.text == "Internal Server Error"
        assert any(r.exc_info for r in caplog.records)

    async def test_unexpected_error_debug(self) -> None:
        async with TestClient(_app(debug=True)) as client:
            response = await client.get("/boom")
            assert response.status == 500
            assert "ValueError: kaput" in response.text

    async def test_partial_body_is_discarded(self) -> None:
        app = App()

        @app.get("/half")
        def half(ctx: Context) -> None:
            ctx.send_string("partial")
            raise RuntimeError("after write")

        async with TestClient(app) as client:
            response = await client.get("/half")
            assert response.status == 500
            assert "partial" not in response.text

    async def test_headers_set_before_failure_survive(self) -> None:
        app = _app()

        async def stamp(ctx: Context, next: Next) -> None:
            ctx.set("X-Request-Seen", "1")
            await next()

        app.use(stamp)
        async with TestClient(app) as client:
            assert (await client.get("/boom")).header("x-request-seen") == "1"


class TestErrorHandlers:
    async def test_handler_by_status(self) -> None:
        app = _app()

        @app.error(404)
        def not_found(ctx: Context, exc: HTTPError) -> str:
            return f"custom: {exc.detail}"

        async with TestClient(app) as client:
            response = await client.get("/error")
            assert (response.status, response.text) == (404, "custom: content not found")
            response = await client.get("/nowhere")
            assert response.text == "custom: Cannot GET /nowhere"

    async def test_handler_by_type_wins_over_status(self) -> None:
        app = App()

        @app.get("/find")
        def find(ctx: Context) -> None:
            raise NotFound("by type")

        @app.error(NotFound)
        def by_type(ctx: Context) -> str:
            return "type"

        @app.error(404)
        def by_status(ctx: Context) -> str:
            return "status"

        async with TestClient(app) as client:
            assert (await client.get("/find")).text == "type"

    async def test_handler_for_custom_exception(self) -> None:
        app = _app()

        @app.error(ValueError)
        def on_value_error(ctx: Context, exc: ValueError) -> tuple[str, int]:
            return f"bad value: {exc}", 422

        async with TestClient(app) as client:
            response = await client.get("/boom")
            assert (response.status, response.text) == (422, "bad value: kaput")

    async def test_500_handler(self) -> None:
        app = _app()

        @app.error(500)
        async def oops() -> dict:
            return {"error": "oops"}

        async with TestClient(app) as client:
            response = await client.get("/boom")
            assert response.status == 500
            assert response.json() == {"error": "oops"}

    async def test_handler_writing_through_context(self) -> None:
        app = _app()

        @app.error(404)
        def not_found(ctx: Context) -> None:
            ctx.json({"missing": ctx.path})

        async with TestClient(app) as client:
            response = await client.get("/error")
            assert response.status == 404
            assert response.json() == {"missing": "/error"}

    async def test_failing_handler_falls_back_to_500(self) -> None:
        app = _app()

        @app.error(404)
        def broken(ctx: Context) -> None:
            raise RuntimeError("handler bug")

        async with TestClient(app) as client:
            response = await client.get("/error")
            assert response.status == 500
            assert response.text == "Internal Server Error"

    async def test_allow_header_reaches_custom_405(self) -> None:
        app = App()
        app.get("/index", lambda ctx: "x")

        @app.error(405)
        def not_allowed(ctx: Context) -> str:
            return "nope"

        async with TestClient(app) as client:
            response = await client.post("/index")
            assert response.status == 405
            assert response.header("allow") == "GET, HEAD"

    def test_error_rejects_other_keys(self) -> None:
        with pytest.raises(ConfigurationError):
            App().error("404")  # type: ignore[arg-type]

    async def test_middleware_can_translate_errors(self) -> None:
        app = _app()

        async def soften(ctx: Context, next: Next) -> None:
            try:
                await next()
            except HTTPError as exc:
                ctx.status(exc.status).send_string(f"wrapped {exc.status}")

        app.use("/error", soften)
        async with TestClient(app) as client:
            response = await client.get("/error")
            assert (response.status, response.text) == (404, "wrapped 404")


class TestUnsendableHeaders:
    async def test_non_latin1_header_becomes_plain_500(self, caplog: pytest.LogCaptureFixture) -> None:
        app = App()

        @app.get("/greet")
        def greet(ctx: Context) -> str:
            ctx.set("X-Greeting", "สวัสดี")
            return "hi"

        with caplog.at_level(logging.ERROR, logger="sprig.server"):
            async with TestClient(app) as client:
                response = await client.get("/greet")
        assert response.status == 500
        assert response.text == "Internal Server Error"
        assert response.header("x-greeting") is None
        assert any("latin-1" in r.getMessage() for r in caplog.records)

    async def test_app_keeps_serving_afterwards(self) -> None:
        app = App()
        app.get("/bad", lambda ctx: ("x", 200, {"X-Name": "ก"}))
        app.get("/good", lambda ctx: "fine")

        async with TestClient(app) as client:
            assert (await client.get("/bad")).status == 500
            assert (await client.get("/good")).text == "fine"
