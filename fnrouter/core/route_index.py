"""Live route table for one watched glob group.

The tracked routes are kept in registration order. Every change recomputes
the whole table and publishes it by swapping ``self._snapshot``, so a reader
holding a snapshot never sees a half-built table.
"""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from .errors import InvalidRoutePattern, RebuildFailure
from .metrics import ROUTE_COUNT, ROUTE_REBUILDS
from .path_classifier import classify, matches_glob, relative_path
from .route_compiler import DynamicRoute, RouteKey, compile_routes, parse_route

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteSnapshot:
    routes: tuple[str, ...] = ()
    static_routes: frozenset[str] = frozenset()
    dynamic_routes: Mapping[RouteKey, DynamicRoute] = field(
        default_factory=lambda: MappingProxyType({})
    )


Subscriber = Callable[[RouteSnapshot], None]


class RouteIndex:
    def __init__(self, name: str, watched_root: str, compile_patterns: bool = True):
        self.name = name
        self.watched_root = watched_root
        self.compile_patterns = compile_patterns
        self._tracked: dict[str, None] = {}
        self._snapshot = RouteSnapshot()
        self._subscribers: list[Subscriber] = []

    @property
    def routes(self) -> tuple[str, ...]:
        return self._snapshot.routes

    def snapshot(self) -> RouteSnapshot:
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def seed(self, paths: Iterable[str]) -> bool:
        """Track every routable path at once and publish a single rebuild.

        Routes with an invalid layout are logged and skipped one by one, so
        they never take the valid routes of the group down with them.
        """
        previous = dict(self._tracked)
        for path in paths:
            route = classify(path, self.watched_root)
            if not route or route in self._tracked:
                continue
            if self.compile_patterns:
                try:
                    parse_route(route)
                except InvalidRoutePattern as e:
                    ROUTE_REBUILDS.labels(group=self.name, status="failed").inc()
                    logger.error(str(RebuildFailure(self.name, e)))
                    continue
            self._tracked[route] = None
        return self._rebuild(previous)

    def on_file_added(self, path: str) -> bool:
        route = classify(path, self.watched_root)
        if not route or route in self._tracked:
            return False
        previous = dict(self._tracked)
        self._tracked[route] = None
        logger.info(f"[{self.name}] route added: {route}")
        return self._rebuild(previous)

    def on_file_removed(self, path: str) -> bool:
        route = classify(path, self.watched_root)
        if not route or route not in self._tracked:
            return False
        previous = dict(self._tracked)
        del self._tracked[route]
        logger.info(f"[{self.name}] route removed: {route}")
        return self._rebuild(previous)

    def _rebuild(self, previous: dict[str, None]) -> bool:
        routes = tuple(self._tracked)
        try:
            snapshot = self._compile(routes)
        except Exception as e:
            self._tracked = previous
            ROUTE_REBUILDS.labels(group=self.name, status="failed").inc()
            logger.error(str(RebuildFailure(self.name, e)))
            return False

        self._snapshot = snapshot
        ROUTE_REBUILDS.labels(group=self.name, status="ok").inc()
        ROUTE_COUNT.labels(group=self.name, kind="static").set(len(snapshot.static_routes))
        ROUTE_COUNT.labels(group=self.name, kind="dynamic").set(len(snapshot.dynamic_routes))
        self._notify(snapshot)
        return True

    def _compile(self, routes: tuple[str, ...]) -> RouteSnapshot:
        if not self.compile_patterns:
            return RouteSnapshot(routes=routes, static_routes=frozenset(routes))
        static_routes, dynamic_routes = compile_routes(routes)
        return RouteSnapshot(
            routes=routes,
            static_routes=static_routes,
            dynamic_routes=dynamic_routes,
        )

    def _notify(self, snapshot: RouteSnapshot) -> None:
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception(f"[{self.name}] route change subscriber failed")


@dataclass
class RouteGroup:
    """A RouteIndex bound to the glob that selects its files."""

    name: str
    glob: str
    index: RouteIndex

    def owns(self, path: str) -> bool:
        relative = relative_path(path, self.index.watched_root)
        return bool(relative) and matches_glob(relative, self.glob)
