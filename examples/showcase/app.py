"""Showcase — every sprig feature on one app.

Demonstrates:
- Prefix-scoped middleware and request locals (``/getmiddleware``)
- Named, optional and wildcard path parameters
- Query and body decoding into dicts and dataclasses
- Versioned groups with their own middleware (``/v1``, ``/v2``)
- A mounted sub-application (``/user``)
- Static files from ``wwwroot/`` as the fallback for unmatched paths
- One in-flight request per client (``max_conns_per_ip=1``)

Run:
    cd examples/showcase && python app.py
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from sprig import App, AppConfig, BadRequest, Context, HTTPError, StaticConfig
from sprig.middleware import AccessLog, AccessLogConfig, CORSMiddleware, Next, RequestID

logger = logging.getLogger("sprig.app.showcase")

WWWROOT = Path(__file__).parent / "wwwroot"

# Seconds /server blocks its worker thread
SERVER_DELAY = 10.0

app = App(AppConfig(port=8000, max_conns_per_ip=1))


@dataclass
class Person:
    id: int = 0
    name: str = ""


# ---------------------------------------------------------------------------
# Middleware (runs in registration order)
# ---------------------------------------------------------------------------


async def around_error(ctx: Context, next: Next) -> None:
    logger.info("middleware")
    try:
        await next()
    finally:
        logger.info("end middleware")


async def provide_locals(ctx: Context, next: Next) -> None:
    """Hand values to the /getmiddleware handler."""
    ctx.set_local("id", 1)
    ctx.set_local("name", "mid Man")
    await next()
    logger.info("end middleware")


app.use("/error", around_error)
app.use("/getmiddleware", provide_locals)
app.use(RequestID())
app.use(CORSMiddleware())
app.use(AccessLog(AccessLogConfig(time_zone="Asia/Bangkok")))


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("index")
def index_get(ctx: Context) -> None:
    ctx.send_string("GET: index")


@app.post("index")
def index_post(ctx: Context) -> None:
    ctx.send_string("POST: index")


@app.get("/getmiddleware")
def from_middleware(ctx: Context) -> str:
    user_id = ctx.get_local("id", int)
    name = ctx.get_local("name", str)
    return f"hello {user_id} , {name}"


@app.get("/index/params/:say")
def say(ctx: Context) -> str:
    return f"say: {ctx.params('say')}"


@app.get("/index/params/:say/:say2?")
def say_twice(ctx: Context) -> str:
    return f"say: {ctx.params('say')},\n say2: {ctx.params('say2')}"


@app.get("/index/paint/:id")
def paint(ctx: Context) -> str | None:
    try:
        paint_id = ctx.params_int("id")
    except BadRequest:
        ctx.send_status(400)
        return None
    return f"ID: {paint_id}"


@app.get("/index/qry")
def query_string(ctx: Context) -> str:
    return f"qry: {ctx.query('qry')}"


@app.get("/qrypar")
def query_to_person(ctx: Context) -> Person:
    # http://localhost:8000/qrypar?id=1&name=som
    return ctx.query_parser(Person)


@app.get("/wildcards/*")
def wildcards(ctx: Context) -> str:
    # /wildcards/a/b/c/d/e/1 -> a/b/c/d/e/1
    return ctx.params("*")


@app.get("/error")
def error(ctx: Context) -> None:
    raise HTTPError(404, "content not found")


# ---------------------------------------------------------------------------
# Groups: each version stamps its own header
# ---------------------------------------------------------------------------


def _version_header(tag: str):
    async def stamp(ctx: Context, next: Next) -> None:
        ctx.set("Version", tag)
        await next()

    return stamp


v1 = app.group("/v1", _version_header("v1"))
v1.get("/index", lambda ctx: "Index v1")

v2 = app.group("/v2", _version_header("v2"))
v2.get("/index", lambda ctx: "Index v2")


# Mount: /user/* is handled entirely by user_app
user_app = App()
user_app.get("/login", lambda ctx: "login")
app.mount("/user", user_app)


@app.get("/server")
def server(ctx: Context) -> str:
    # Blocks a worker thread; other clients keep being served
    time.sleep(SERVER_DELAY)
    return "server"


@app.get("/env")
def env(ctx: Context) -> dict[str, object]:
    return {
        "BaseURL": ctx.base_url(),
        "Hostname": ctx.hostname(),
        "IP": ctx.ip(),
        "IPs": ctx.ips(),
        "OriginalURL": ctx.original_url,
        "Path": ctx.path,
        "Protocol": ctx.protocol(),
        "Subdomains": ctx.subdomains(),
    }


# ---------------------------------------------------------------------------
# Body decoding
# ---------------------------------------------------------------------------


@app.post("/body")
def body(ctx: Context) -> None:
    logger.info("Is json %s", ctx.is_type("json"))
    logger.info("%s", ctx.body().decode("utf-8", errors="replace"))


@app.post("/bodytostruct")
def body_to_struct(ctx: Context) -> Person:
    logger.info("Is json %s", ctx.is_type("json"))
    person = ctx.body_parser(Person)
    logger.info("%s", person)
    return person


@app.post("/bodytomap")
def body_to_map(ctx: Context) -> dict[str, object]:
    logger.info("Is json %s", ctx.is_type("json"))
    data = ctx.body_parser(dict)
    logger.info("%s", data)
    return data


# Static files answer whatever no route matched
app.serve_static("/", WWWROOT, StaticConfig(index="index.html", cache_duration=10))


if __name__ == "__main__":
    app.run()
