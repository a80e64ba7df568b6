from prometheus_client import (
    Counter,
    Summary,
    Gauge,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST
)

registry = CollectorRegistry()

DISPATCH_COUNT = Counter(
    "fnrouter_dispatch_total",
    "Requests seen by the functions router, by outcome",
    ["group", "outcome"],
    registry=registry
)

DISPATCH_DURATION = Summary(
    "fnrouter_dispatch_duration_seconds",
    "Time spent handling a delegated function request",
    ["group"],
    registry=registry
)

ROUTE_REBUILDS = Counter(
    "fnrouter_route_rebuilds_total",
    "Route table recomputations triggered by file events",
    ["group", "status"],
    registry=registry
)

ROUTE_COUNT = Gauge(
    "fnrouter_routes",
    "Number of routes currently published per group",
    ["group", "kind"],
    registry=registry
)


def render_prometheus_metrics() -> tuple[bytes, str]:
    return generate_latest(registry), CONTENT_TYPE_LATEST
