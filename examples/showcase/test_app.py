"""Tests for the showcase example."""

import asyncio

from sprig.testing import TestClient


class TestRoutes:
    """Plain routes, params and query decoding."""

    async def test_index_get_and_post(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/index")
            assert response.status == 200
            assert response.text == "GET: index"
            assert response.content_type == "text/plain; charset=utf-8"

            response = await client.post("/index")
            assert response.text == "POST: index"

    async def test_trailing_slash_is_ignored(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/index/")
            assert response.text == "GET: index"

    async def test_locals_from_prefix_middleware(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/getmiddleware")
            assert response.status == 200
            assert response.text == "hello 1 , mid Man"

    async def test_required_param(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/index/params/hello")
            assert response.text == "say: hello"

    async def test_optional_param(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/index/params/hello/world")
            assert response.text == "say: hello,\n say2: world"

    async def test_int_param(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/index/paint/42")
            assert response.status == 200
            assert response.text == "ID: 42"

    async def test_int_param_rejects_text(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/index/paint/abc")
            assert response.status == 400
            assert response.text == "Bad Request"

    async def test_query_value(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/index/qry", query={"qry": "sprig"})
            assert response.text == "qry: sprig"

    async def test_query_to_dataclass(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/qrypar?id=1&name=som")
            assert response.status == 200
            assert response.json() == {"id": 1, "name": "som"}

    async def test_query_to_dataclass_defaults(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/qrypar")
            assert response.json() == {"id": 0, "name": ""}

    async def test_query_to_dataclass_bad_int(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/qrypar?id=one")
            assert response.status == 400
            assert "'id'" in response.text

    async def test_wildcard(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/wildcards/a/b/c/d/e/1")
            assert response.text == "a/b/c/d/e/1"

    async def test_error_route(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/error")
            assert response.status == 404
            assert response.text == "content not found"


class TestComposition:
    """Groups, mounts and the built-in middleware."""

    async def test_groups_set_version_header(self, example_app) -> None:
        async with TestClient(example_app) as client:
            v1 = await client.get("/v1/index")
            v2 = await client.get("/v2/index")
            assert (v1.text, v1.header("version")) == ("Index v1", "v1")
            assert (v2.text, v2.header("version")) == ("Index v2", "v2")

    async def test_unversioned_route_has_no_version_header(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/index")
            assert response.header("version") is None

    async def test_mounted_app(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/user/login")
            assert response.status == 200
            assert response.text == "login"

    async def test_mounted_app_skips_parent_middleware(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/user/login")
            assert response.header("x-request-id") is None

    async def test_mounted_path_is_not_a_parent_route(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/login")
            assert response.status == 404

    async def test_request_id_header(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/index")
            assert response.header("x-request-id")

            response = await client.get("/index", headers={"X-Request-ID": "abc"})
            assert response.header("x-request-id") == "abc"

    async def test_cors_headers(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/index", headers={"Origin": "https://example.com"})
            assert response.header("access-control-allow-origin") == "*"

    async def test_cors_preflight(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.options(
                "/index",
                headers={
                    "Origin": "https://example.com",
                    "Access-Control-Request-Method": "POST",
                },
            )
            assert response.status == 204
            assert "POST" in (response.header("access-control-allow-methods") or "")


class TestEnvironment:
    """Request metadata derived by the Context."""

    async def test_env(self, example_app) -> None:
        async with TestClient(example_app, host="localhost:8000") as client:
            response = await client.get("/env?id=123")
            assert response.json() == {
                "BaseURL": "http://localhost:8000",
                "Hostname": "localhost:8000",
                "IP": "127.0.0.1",
                "IPs": [],
                "OriginalURL": "/env?id=123",
                "Path": "/env",
                "Protocol": "http",
                "Subdomains": ["localhost:8000"],
            }

    async def test_env_with_proxy_chain(self, example_app) -> None:
        async with TestClient(example_app, host="api.shop.example.com") as client:
            response = await client.get(
                "/env", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
            )
            data = response.json()
            assert data["IPs"] == ["203.0.113.7", "10.0.0.1"]
            assert data["Subdomains"] == ["api", "shop"]


class TestBody:
    """Body access and decoding."""

    async def test_body_is_accepted(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post("/body", json={"id": 1})
            assert response.status == 200
            assert response.body == b""

    async def test_body_to_struct(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post("/bodytostruct", json={"id": 7, "name": "som"})
            assert response.status == 200
            assert response.json() == {"id": 7, "name": "som"}

    async def test_body_to_struct_from_form(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post("/bodytostruct", form={"id": "3", "name": "form"})
            assert response.json() == {"id": 3, "name": "form"}

    async def test_body_to_struct_malformed_json(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post(
                "/bodytostruct",
                body=b"{not json",
                headers={"content-type": "application/json"},
            )
            assert response.status == 400

    async def test_body_to_map(self, example_app) -> None:
        async with TestClient(example_app) as client:
            payload = {"id": 1, "tags": ["a", "b"], "nested": {"ok": True}}
            response = await client.post("/bodytomap", json=payload)
            assert response.json() == payload

    async def test_body_unsupported_type(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post(
                "/bodytomap", body=b"<x/>", headers={"content-type": "application/xml"}
            )
            assert response.status == 422


class TestStatic:
    """wwwroot/ is served for paths no route claims."""

    async def test_root_serves_index(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/")
            assert response.status == 200
            assert response.content_type.startswith("text/html")
            assert "sprig showcase" in response.text
            assert response.header("cache-control") == "public, max-age=10"

    async def test_asset(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/style.css")
            assert response.status == 200
            assert response.content_type.startswith("text/css")

    async def test_directory_redirects_to_slash(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/docs")
            assert response.status == 301
            assert response.header("location") == "/docs/"

            response = await client.get("/docs/")
            assert response.status == 200
            assert "index file" in response.text

    async def test_missing_file_is_404(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/nope.txt")
            assert response.status == 404
            assert response.text == "Cannot GET /nope.txt"


class TestServer:
    """Blocking handlers and the per-client limit."""

    async def test_blocking_handler_does_not_stall_other_clients(
        self, example_module, example_app
    ) -> None:
        example_module.SERVER_DELAY = 0.5
        slow_client = TestClient(example_app, client=("10.0.0.1", 40000))
        other_client = TestClient(example_app, client=("10.0.0.2", 40000))
        async with slow_client, other_client:
            slow = asyncio.create_task(slow_client.get("/server"))
            await asyncio.sleep(0.05)

            response = await other_client.get("/index")
            assert response.status == 200
            assert not slow.done()

            assert (await slow).text == "server"

    async def test_second_request_from_same_client_is_refused(
        self, example_module, example_app
    ) -> None:
        example_module.SERVER_DELAY = 0.5
        async with TestClient(example_app, client=("10.0.0.3", 40000)) as client:
            slow = asyncio.create_task(client.get("/server"))
            await asyncio.sleep(0.05)

            refused = await client.get("/index")
            assert refused.status == 429

            assert (await slow).status == 200
            response = await client.get("/index")
            assert response.status == 200
