from typing import Optional


class FunctionRouterError(Exception):
    """Base class for errors raised while indexing or resolving function routes."""


class InvalidRoutePattern(FunctionRouterError):
    def __init__(self, route: str, reason: str) -> None:
        self.route = route
        self.reason = reason
        super().__init__(f"Invalid route pattern {route!r}: {reason}")


class NoRouteMatch(FunctionRouterError):
    """A pathname expected to resolve to a function matched nothing.

    This is a server-side configuration inconsistency, not a client error.
    """

    def __init__(self, pathname: str) -> None:
        self.pathname = pathname
        super().__init__(f"Could not find a file that matches API route {pathname}")


class PayloadDecodeError(FunctionRouterError):
    def __init__(self, raw: str, cause: Optional[Exception] = None) -> None:
        self.raw = raw
        self.cause = cause
        super().__init__(f"Could not decode JSON payload: {cause}")


class RebuildFailure(FunctionRouterError):
    def __init__(self, group: str, cause: Exception) -> None:
        self.group = group
        self.cause = cause
        super().__init__(f"Rebuilding routes for group '{group}' failed: {cause}")
