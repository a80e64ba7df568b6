"""Decides what the functions router does with a request path.

Only prefix dispatch lives here; matching is delegated to the resolver.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union
from urllib.parse import unquote

from starlette.datastructures import QueryParams

from .errors import NoRouteMatch, PayloadDecodeError
from .resolver import normalize_pathname, resolve
from .route_index import RouteIndex

PROPS_PREFIX = "/props/"
API_PREFIX = "/api/"


@dataclass(frozen=True)
class Delegate:
    function_path: str
    params: Optional[dict[str, str]] = None
    extra: dict[str, Any] = field(default_factory=dict)
    group: str = "api"


@dataclass(frozen=True)
class NotFound:
    pass


@dataclass(frozen=True)
class ConfigurationError:
    pathname: str
    message: str = "no function file matches this path"

    def to_exception(self) -> NoRouteMatch:
        return NoRouteMatch(self.pathname)


DispatchOutcome = Union[Delegate, NotFound, ConfigurationError]


def decode_payload(raw: str) -> Any:
    try:
        return json.loads(unquote(raw))
    except ValueError as e:
        raise PayloadDecodeError(raw, e) from e


class DispatchFrontend:
    def __init__(self, files: RouteIndex, api: RouteIndex):
        self.files = files
        self.api = api

    def dispatch(self, pathname: str, query: QueryParams) -> DispatchOutcome:
        if pathname.startswith(PROPS_PREFIX):
            return self._dispatch_props(query)

        normalized = normalize_pathname(pathname)
        file_match = resolve(normalized, self.files.snapshot())

        if not pathname.startswith(API_PREFIX) and file_match is None:
            return NotFound()

        if file_match is not None:
            return Delegate(
                function_path=file_match.route,
                extra=self._request_extra(query, None),
                group=self.files.name,
            )

        match = resolve(normalized, self.api.snapshot())
        if match is None:
            return ConfigurationError(normalized)

        params = match.params or None
        return Delegate(
            function_path=match.route,
            params=params,
            extra=self._request_extra(query, params),
            group=self.api.name,
        )

    def _dispatch_props(self, query: QueryParams) -> DispatchOutcome:
        function_path = query.get("propsGetter")
        if not function_path:
            return NotFound()

        data = decode_payload(query["data"]) if "data" in query else {}
        return Delegate(
            function_path=function_path,
            extra={"data": data, "mock_redirect": "rendering" not in query},
            group="props",
        )

    def _request_extra(self, query: QueryParams, params: Optional[dict]) -> dict[str, Any]:
        items = query.multi_items()
        return {"query": [list(item) for item in items], "params": params}
