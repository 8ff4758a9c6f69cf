"""Route, PathSegment and RouteMatch frozen dataclasses."""

from dataclasses import dataclass
from enum import IntEnum

from sprig._internal.types import Handler


class SegmentKind(IntEnum):
    """Segment kinds, valued by matching precedence (higher wins)."""

    WILDCARD = 0
    OPTIONAL = 1
    PARAM = 2
    LITERAL = 3


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Literal:  ``/users``    (kind=LITERAL, value="users")
    Param:    ``/:id``      (kind=PARAM, value="id")
    Optional: ``/:id?``     (kind=OPTIONAL, value="id")
    Wildcard: ``/*``        (kind=WILDCARD, value="*")
    """

    kind: SegmentKind
    value: str

    def __str__(self) -> str:
        match self.kind:
            case SegmentKind.PARAM:
                return f":{self.value}"
            case SegmentKind.OPTIONAL:
                return f":{self.value}?"
            case _:
                return self.value


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    ``index`` is the registration sequence number, used to break ties
    between equally specific patterns (first registered wins).
    """

    method: str
    pattern: str
    segments: tuple[PathSegment, ...]
    handler: Handler
    index: int = 0
    name: str | None = None

    @property
    def is_static(self) -> bool:
        """True when every segment is a literal."""
        return all(seg.kind is SegmentKind.LITERAL for seg in self.segments)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    params: dict[str, str]
