import json
from urllib.parse import quote

import pytest
from starlette.datastructures import QueryParams

from fnrouter.core.dispatch import ConfigurationError, Delegate, DispatchFrontend, NotFound
from fnrouter.core.errors import NoRouteMatch, PayloadDecodeError
from fnrouter.core.route_index import RouteIndex

ROOT = "/srv/site/functions"


@pytest.fixture
def frontend():
    files = RouteIndex("files", ROOT, compile_patterns=False)
    files.seed([f"{ROOT}/hello.js", f"{ROOT}/index.js"])
    api = RouteIndex("api", ROOT)
    api.seed([f"{ROOT}/api/health.js", f"{ROOT}/api/users/[id].js"])
    return DispatchFrontend(files=files, api=api)


def test_flat_file_delegates_without_params(frontend):
    outcome = frontend.dispatch("/hello", QueryParams("a=1&a=2"))

    assert outcome == Delegate(
        function_path="/hello",
        params=None,
        extra={"query": [["a", "1"], ["a", "2"]], "params": None},
        group="files",
    )


def test_root_path_delegates_to_index_file(frontend):
    assert frontend.dispatch("/", QueryParams("")).function_path == "/index"


def test_api_static_route(frontend):
    outcome = frontend.dispatch("/api/health/", QueryParams(""))

    assert isinstance(outcome, Delegate)
    assert outcome.function_path == "/api/health"
    assert outcome.params is None


def test_api_dynamic_route_carries_params(frontend):
    outcome = frontend.dispatch("/api/users/7", QueryParams("expand=1"))

    assert outcome.function_path == "/api/users/[id]"
    assert outcome.params == {"id": "7"}
    assert outcome.extra == {"query": [["expand", "1"]], "params": {"id": "7"}}


def test_unknown_api_route_is_configuration_error(frontend):
    outcome = frontend.dispatch("/api/nothing/here", QueryParams(""))

    assert outcome == ConfigurationError("/api/nothing/here")
    assert outcome.message == "no function file matches this path"
    assert isinstance(outcome.to_exception(), NoRouteMatch)


def test_other_paths_pass_through(frontend):
    assert frontend.dispatch("/assets/app.css", QueryParams("")) == NotFound()
    assert frontend.dispatch("/apiary", QueryParams("")) == NotFound()


def test_props_request_decodes_payload(frontend):
    payload = quote(json.dumps({"page": 2}))
    outcome = frontend.dispatch(
        "/props/blog", QueryParams({"propsGetter": "/props/blog", "data": payload})
    )

    assert outcome == Delegate(
        function_path="/props/blog",
        extra={"data": {"page": 2}, "mock_redirect": True},
        group="props",
    )


def test_props_request_while_rendering(frontend):
    outcome = frontend.dispatch(
        "/props/blog", QueryParams("propsGetter=/props/blog&rendering=true")
    )

    assert outcome.extra == {"data": {}, "mock_redirect": False}


def test_props_request_without_getter_passes_through(frontend):
    assert frontend.dispatch("/props/blog", QueryParams("")) == NotFound()


def test_props_payload_errors_propagate(frontend):
    with pytest.raises(PayloadDecodeError):
        frontend.dispatch("/props/blog", QueryParams({"propsGetter": "/props/blog", "data": "{nope"}))
