"""Tests for the request ID middleware."""

from sprig.app import App
from sprig.context import Context
from sprig.middleware.requestid import RequestID, RequestIDConfig
from sprig.testing import TestClient


def _make_app(config: RequestIDConfig | None = None) -> App:
    app = App()
    app.use(RequestID(config))

    @app.get("/")
    def index(ctx: Context) -> str:
        return ctx.get_local("requestid", str)

    return app


class TestRequestID:
    async def test_generated_id_is_echoed_and_stored(self) -> None:
        async with TestClient(_make_app()) as client:
            response = await client.get("/")
            rid = response.header("x-request-id")
            assert rid
            assert len(rid) == 36
            assert response.text == rid

    async def test_each_request_gets_a_new_id(self) -> None:
        async with TestClient(_make_app()) as client:
            first = (await client.get("/")).header("x-request-id")
            second = (await client.get("/")).header("x-request-id")
            assert first != second

    async def test_incoming_id_is_reused(self) -> None:
        async with TestClient(_make_app()) as client:
            response = await client.get("/", headers={"X-Request-ID": "abc-123"})
            assert response.header("x-request-id") == "abc-123"
            assert response.text == "abc-123"

    async def test_custom_header_and_generator(self) -> None:
        config = RequestIDConfig(header="X-Trace", generator=lambda: "fixed", local_key="requestid")
        async with TestClient(_make_app(config)) as client:
            response = await client.get("/")
            assert response.header("x-trace") == "fixed"
            assert response.header("x-request-id") is None

    async def test_id_on_not_found(self) -> None:
        async with TestClient(_make_app()) as client:
            response = await client.get("/missing")
            assert response.status == 404
            assert response.header("x-request-id")
