import logging
from typing import Any
from starlette.types import Scope, Receive, Send
from starlette.responses import PlainTextResponse, JSONResponse, Response
from fnrouter.core.metrics import render_prometheus_metrics
from fnrouter.core.functions_router import FunctionsRouter

logger = logging.getLogger(__name__)


class AdminRouter:
    def __init__(self, router: FunctionsRouter) -> None:
        self.router = router

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        path = scope.get("path", "")
        if path == "/__health":
            await self.health(scope, receive, send)
        elif path == "/__routes":
            await self.routes(scope, receive, send)
        elif path == "/__metrics":
            await self.metrics(scope, receive, send)
        elif path.startswith("/__dev-setup-props-watcher"):
            await self.setup_props_watcher(scope, receive, send)
        else:
            await PlainTextResponse("Not Found", status_code=404)(scope, receive, send)

    async def health(self, scope: Scope, receive: Receive, send: Send) -> None:
        await PlainTextResponse("OK")(scope, receive, send)

    async def routes(self, scope: Scope, receive: Receive, send: Send) -> None:
        data: dict[str, Any] = {}
        for name, group in self.router.groups.items():
            snapshot = group.index.snapshot()
            data[name] = {
                "glob": group.glob,
                "static": sorted(snapshot.static_routes),
                "dynamic": [
                    {"route": dynamic.route, "params": list(dynamic.param_names)}
                    for dynamic in snapshot.dynamic_routes.values()
                ],
            }
        await JSONResponse(data)(scope, receive, send)

    async def metrics(self, scope: Scope, receive: Receive, send: Send) -> None:
        data, content_type = render_prometheus_metrics()
        await Response(content=data, media_type=content_type)(scope, receive, send)

    async def setup_props_watcher(self, scope: Scope, receive: Receive, send: Send) -> None:
        # the dev client asks for the props-endpoints event again
        logger.info("Re-sending props endpoints to development clients")
        self.router.announce_props_endpoints()
        await Response()(scope, receive, send)
