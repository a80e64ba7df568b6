"""Compiles logical routes into a static set and an ordered dynamic table.

Dynamic routes are matched by a segment automaton: a pattern is a tuple with
one entry per path segment, either the literal text to compare or a
:class:`SegmentKind` marker for a dynamic segment. Parameter names are kept
beside the pattern; the table is keyed by both, so ``/a/[id]`` and
``/a/[slug]`` are separate entries and the first registered one matches first.
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from .errors import InvalidRoutePattern


class SegmentKind(Enum):
    LITERAL = "literal"
    NAMED = "named"
    CATCH_ALL = "catch_all"


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    value: str  # literal text, or the parameter name

    @property
    def is_dynamic(self) -> bool:
        return self.kind is not SegmentKind.LITERAL


RoutePattern = tuple[Union[str, SegmentKind], ...]
RouteKey = tuple[RoutePattern, tuple[str, ...]]


def parse_segment(text: str) -> Segment:
    if len(text) >= 2 and text.startswith("[") and text.endswith("]"):
        inner = text[1:-1]
        if inner.startswith("..."):
            return Segment(SegmentKind.CATCH_ALL, inner[3:])
        return Segment(SegmentKind.NAMED, inner)
    return Segment(SegmentKind.LITERAL, text)


def parse_route(route: str) -> list[Segment]:
    """Split a logical route into segments and check their layout."""
    segments = [parse_segment(part) for part in route.split("/")[1:]]

    seen: set[str] = set()
    for position, segment in enumerate(segments):
        if not segment.is_dynamic:
            continue
        if not segment.value:
            raise InvalidRoutePattern(route, "empty parameter name")
        if segment.value in seen:
            raise InvalidRoutePattern(route, f"duplicate parameter '{segment.value}'")
        seen.add(segment.value)
        if segment.kind is SegmentKind.CATCH_ALL and position != len(segments) - 1:
            raise InvalidRoutePattern(route, "catch-all segment must be last")

    return segments


@dataclass(frozen=True)
class DynamicRoute:
    route: str
    pattern: RoutePattern
    param_names: tuple[str, ...]

    @property
    def key(self) -> RouteKey:
        return self.pattern, self.param_names

    def match(self, parts: list[str]) -> Optional[dict[str, str]]:
        captures = match_pattern(self.pattern, parts)
        if captures is None:
            return None
        return dict(zip(self.param_names, captures))


def match_pattern(pattern: RoutePattern, parts: list[str]) -> Optional[list[str]]:
    """Run the segment automaton over request path parts.

    Returns the captured values in pattern order, or ``None``.
    """
    captures: list[str] = []
    for index, matcher in enumerate(pattern):
        if matcher is SegmentKind.CATCH_ALL:
            rest = parts[index:]
            if not rest or not all(rest):
                return None
            captures.append("/".join(rest))
            return captures

        if index >= len(parts):
            return None
        part = parts[index]
        if matcher is SegmentKind.NAMED:
            if not part:
                return None
            captures.append(part)
        elif part != matcher:
            return None

    if len(parts) != len(pattern):
        return None
    return captures


def compile_dynamic(route: str, segments: list[Segment]) -> DynamicRoute:
    pattern = tuple(
        segment.value if segment.kind is SegmentKind.LITERAL else segment.kind
        for segment in segments
    )
    names = tuple(segment.value for segment in segments if segment.is_dynamic)
    return DynamicRoute(route=route, pattern=pattern, param_names=names)


def compile_routes(
    routes: Iterable[str],
) -> tuple[frozenset[str], Mapping[RouteKey, DynamicRoute]]:
    static_routes: set[str] = set()
    dynamic_routes: dict[RouteKey, DynamicRoute] = {}

    for route in routes:
        segments = parse_route(route)
        if not any(segment.is_dynamic for segment in segments):
            static_routes.add(route)
            continue
        compiled = compile_dynamic(route, segments)
        dynamic_routes.setdefault(compiled.key, compiled)

    return frozenset(static_routes), MappingProxyType(dynamic_routes)
