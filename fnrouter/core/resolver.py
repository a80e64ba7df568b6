from dataclasses import dataclass, field
from typing import Optional

from .route_index import RouteSnapshot

INDEX_ROUTE = "/index"


@dataclass(frozen=True)
class MatchResult:
    route: str
    params: dict[str, str] = field(default_factory=dict)


def normalize_pathname(pathname: str) -> str:
    if pathname in ("", "/"):
        return INDEX_ROUTE
    if pathname.endswith("/"):
        return pathname[:-1]
    return pathname


def resolve(pathname: str, snapshot: RouteSnapshot) -> Optional[MatchResult]:
    """Find the route serving ``pathname``.

    Static routes always win. Dynamic routes are tried in table order and the
    first match wins; there is no ranking by specificity.
    """
    pathname = normalize_pathname(pathname)

    if pathname in snapshot.static_routes:
        return MatchResult(route=pathname, params={})

    parts = pathname.split("/")[1:]
    for dynamic in snapshot.dynamic_routes.values():
        params = dynamic.match(parts)
        if params is not None:
            return MatchResult(route=dynamic.route, params=params)

    return None
