"""Routing — pattern table with explicit specificity ordering.

Routes are registered during setup, validated immediately, and frozen
into a read-only table when the app starts serving.
"""

from sprig.routing.route import PathSegment, Route, RouteMatch, SegmentKind
from sprig.routing.router import Router, parse_pattern

__all__ = ["PathSegment", "Route", "RouteMatch", "Router", "SegmentKind", "parse_pattern"]
