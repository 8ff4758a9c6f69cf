"""Static file serving.

Static mounts are consulted only after routing fails, so a registered
route always takes precedence over a file with the same path. Serves
``GET`` and ``HEAD`` only; anything else falls through to the router's
``NotFound`` / ``MethodNotAllowed``.

File system access goes through ``anyio.Path`` so reading a large file
never blocks the event loop.
"""

import mimetypes
from dataclasses import dataclass
from pathlib import Path

import anyio

from sprig.context import Context
from sprig.http.response import OCTET_STREAM
from sprig.middleware.pipeline import covers, normalize_prefix


@dataclass(frozen=True, slots=True)
class StaticConfig:
    """Static mount configuration.

    ``index`` is served for directory roots. ``cache_duration`` (seconds)
    becomes ``Cache-Control: public, max-age=N``; 0 sends ``no-cache``.
    """

    index: str = "index.html"
    cache_duration: float = 0.0


class StaticFiles:
    """Serves files from *directory* for paths under *prefix*.

    Security: resolves symlinks and verifies the final path is within
    the configured directory to prevent path traversal.

    Usage::

        app.serve_static("/", "./wwwroot", StaticConfig(cache_duration=10))
    """

    __slots__ = ("_cache_control", "_directory", "_index", "_prefix")

    def __init__(
        self,
        prefix: str,
        directory: str | Path,
        config: StaticConfig | None = None,
    ) -> None:
        cfg = config or StaticConfig()
        self._prefix = normalize_prefix(prefix)
        self._directory = Path(directory).resolve()
        self._index = cfg.index
        if cfg.cache_duration > 0:
            self._cache_control = f"public, max-age={int(cfg.cache_duration)}"
        else:
            self._cache_control = "no-cache"

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def directory(self) -> Path:
        return self._directory

    async def serve(self, ctx: Context) -> bool:
        """Write the file for ``ctx.path`` into *ctx*. False if there is none."""
        if ctx.method not in ("GET", "HEAD"):
            return False

        path = ctx.path
        if not covers(self._prefix, path):
            return False
        relative = path[len(self._prefix) :].lstrip("/")

        root = anyio.Path(self._directory)
        try:
            file_path = await (root / relative).resolve() if relative else root
            if not file_path.is_relative_to(root):
                ctx.status(403).send_string("Forbidden")
                return True

            if await file_path.is_dir():
                index_path = file_path / self._index
                if not await index_path.is_file():
                    return False
                # Directories are addressed with a trailing slash
                if relative and not path.endswith("/"):
                    ctx.status(301).set("Location", f"{ctx.request.root_path}{path}/")
                    ctx.send_string("")
                    return True
                file_path = index_path

            if not await file_path.is_file():
                return False
        except (ValueError, OSError):
            # Paths the file system cannot represent (NUL bytes, overlong names)
            return False

        body = await file_path.read_bytes()
        content_type, _ = mimetypes.guess_type(file_path.name)
        ctx.set("Cache-Control", self._cache_control)
        ctx.send(body, content_type or OCTET_STREAM)
        return True
