"""Route table with specificity-ordered path matching.

Routes are registered during setup and frozen when the app starts
serving. Fully literal routes live in a dict for constant-time lookup;
patterned routes are scanned and ranked.

Precedence when several patterns match one path, compared position by
position from the left:

    literal > required param > optional param > wildcard

A route that leaves an optional segment or the wildcard empty ranks
below one that consumes every segment it declares. Remaining ties go
to the route registered first.
"""

from sprig._internal.types import Handler
from sprig.errors import ConfigurationError, MethodNotAllowed, NotFound
from sprig.routing.route import PathSegment, Route, RouteMatch, SegmentKind

_RESERVED = frozenset("*?{}")

# (per-position ranks, -vacant segments, -registration index)
type _Rank = tuple[tuple[int, ...], int, int]


def split_path(path: str) -> list[str]:
    """Split a request path into non-empty segments."""
    return [part for part in path.split("/") if part]


def parse_pattern(pattern: str) -> tuple[PathSegment, ...]:
    """Parse a route pattern into segments.

    Examples::

        "/users"               -> (LITERAL users,)
        "/users/:id"           -> (LITERAL users, PARAM id)
        "/users/:id/:tab?"     -> (..., OPTIONAL tab)
        "/files/*"             -> (LITERAL files, WILDCARD *)

    Raises ``ConfigurationError`` for malformed patterns.
    """
    segments: list[PathSegment] = []
    names: set[str] = set()
    parts = split_path(pattern)

    for position, part in enumerate(parts):
        if part == "*":
            if position != len(parts) - 1:
                msg = f"Wildcard '*' must be the last segment in {pattern!r}"
                raise ConfigurationError(msg)
            segments.append(PathSegment(SegmentKind.WILDCARD, "*"))
            continue

        if part.startswith(":"):
            optional = part.endswith("?")
            name = part[1:-1] if optional else part[1:]
            if not name or _RESERVED.intersection(name) or ":" in name:
                msg = f"Invalid parameter name {part!r} in {pattern!r}"
                raise ConfigurationError(msg)
            if name in names:
                msg = f"Duplicate parameter name {name!r} in {pattern!r}"
                raise ConfigurationError(msg)
            names.add(name)
            kind = SegmentKind.OPTIONAL if optional else SegmentKind.PARAM
            if kind is SegmentKind.PARAM and segments and segments[-1].kind is SegmentKind.OPTIONAL:
                msg = f"Required parameter {part!r} cannot follow an optional one in {pattern!r}"
                raise ConfigurationError(msg)
            segments.append(PathSegment(kind, name))
            continue

        if "{" in part or "}" in part:
            msg = (
                f"Route pattern {pattern!r} uses {{param}} syntax. "
                "Sprig expects :param (e.g. /users/:id)."
            )
            raise ConfigurationError(msg)
        if _RESERVED.intersection(part):
            msg = f"Literal segment {part!r} in {pattern!r} contains a reserved character"
            raise ConfigurationError(msg)
        if segments and segments[-1].kind is SegmentKind.OPTIONAL:
            msg = f"Literal segment {part!r} cannot follow an optional one in {pattern!r}"
            raise ConfigurationError(msg)
        segments.append(PathSegment(SegmentKind.LITERAL, part))

    return tuple(segments)


def normalize(segments: tuple[PathSegment, ...]) -> str:
    """Canonical pattern string, used for duplicate detection and display."""
    return "/" + "/".join(str(seg) for seg in segments)


def _match_segments(
    segments: tuple[PathSegment, ...],
    parts: list[str],
) -> tuple[dict[str, str], tuple[int, ...], int] | None:
    """Match *parts* against *segments*.

    Returns ``(params, ranks, vacant)`` where ``ranks`` holds one
    precedence value per path part and ``vacant`` counts optional or
    wildcard segments that matched nothing.
    """
    params: dict[str, str] = {}
    ranks: list[int] = []
    vacant = 0
    index = 0

    for seg in segments:
        if seg.kind is SegmentKind.WILDCARD:
            remaining = parts[index:]
            params["*"] = "/".join(remaining)
            ranks.extend([SegmentKind.WILDCARD] * len(remaining))
            if not remaining:
                vacant += 1
            return params, tuple(ranks), vacant

        if index == len(parts):
            if seg.kind is SegmentKind.OPTIONAL:
                params[seg.value] = ""
                vacant += 1
                continue
            return None

        part = parts[index]
        if seg.kind is SegmentKind.LITERAL:
            if part != seg.value:
                return None
        else:
            params[seg.value] = part
        ranks.append(seg.kind)
        index += 1

    if index != len(parts):
        return None
    return params, tuple(ranks), vacant


class Router:
    """Method + path pattern table.

    Usage::

        router = Router()
        router.register("GET", "/users/:id", handler)
        router.compile()
        match = router.match("GET", "/users/42")
        match.params  # {"id": "42"}
    """

    __slots__ = ("_compiled", "_keys", "_patterned", "_routes", "_static")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._keys: set[tuple[str, str]] = set()
        # (method, "/a/b") -> route, for fully literal patterns
        self._static: dict[tuple[str, str], Route] = {}
        self._patterned: list[Route] = []
        self._compiled = False

    def register(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        *,
        name: str | None = None,
    ) -> Route:
        """Validate *pattern* and add a route for *method*.

        Raises ``ConfigurationError`` for a malformed pattern or when the
        same method and pattern are already registered.
        """
        segments = parse_pattern(pattern)
        route = Route(
            method=method.upper(),
            pattern=pattern,
            segments=segments,
            handler=handler,
            index=len(self._routes),
            name=name,
        )
        self.add(route)
        return route

    def add(self, route: Route) -> None:
        """Add an already-built route. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        key = (route.method, normalize(route.segments))
        if key in self._keys:
            msg = f"Route {route.method} {key[1]!r} is already registered"
            raise ConfigurationError(msg)
        self._keys.add(key)
        self._routes.append(route)

        if route.is_static:
            self._static[key] = route
        else:
            self._patterned.append(route)

    @property
    def routes(self) -> list[Route]:
        """All registered routes in registration order."""
        return list(self._routes)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Resolve *method* and *path* to a single route.

        Raises ``NotFound`` if no route matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        ``HEAD`` requests fall back to the ``GET`` route.
        """
        method = method.upper()
        parts = split_path(path)

        found = self._best(method, parts)
        if found is None and method == "HEAD":
            found = self._best("GET", parts)
        if found is not None:
            return found

        allowed = self._allowed_methods(parts)
        if allowed:
            raise MethodNotAllowed(allowed)
        raise NotFound(f"Cannot {method} {path}")

    def _best(self, method: str, parts: list[str]) -> RouteMatch | None:
        """Highest ranked route for *method*, or None."""
        static = self._static.get((method, "/" + "/".join(parts)))
        if static is not None:
            # All-literal ranks cannot be beaten.
            return RouteMatch(route=static, params={})

        best: RouteMatch | None = None
        best_rank: _Rank | None = None
        for route in self._patterned:
            if route.method != method:
                continue
            result = _match_segments(route.segments, parts)
            if result is None:
                continue
            params, ranks, vacant = result
            rank: _Rank = (ranks, -vacant, -route.index)
            if best_rank is None or rank > best_rank:
                best = RouteMatch(route=route, params=params)
                best_rank = rank
        return best

    def _allowed_methods(self, parts: list[str]) -> frozenset[str]:
        """Methods of every route whose pattern matches *parts*."""
        allowed = {
            route.method
            for route in self._routes
            if _match_segments(route.segments, parts) is not None
        }
        if "GET" in allowed:
            allowed.add("HEAD")
        return frozenset(allowed)
