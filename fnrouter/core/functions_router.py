import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Scope, Receive, Send

from fnrouter.config.routes import API_GROUP, FILES_GROUP, PROPS_GROUP, ROUTE_GROUPS
from .dispatch import ConfigurationError, Delegate, DispatchFrontend, NotFound
from .errors import PayloadDecodeError
from .metrics import DISPATCH_COUNT, DISPATCH_DURATION
from .notifier import PROPS_ENDPOINTS_EVENT, EventBroadcaster, props_endpoint_names
from .proxy_executor import FunctionExecutor
from .route_index import RouteGroup, RouteIndex, RouteSnapshot
from .watcher import FunctionsWatcher

logger = logging.getLogger(__name__)


async def not_found_app(scope: Scope, receive: Receive, send: Send) -> None:
    await PlainTextResponse("Not Found", status_code=404)(scope, receive, send)


class FunctionsRouter:
    """ASGI app serving files of a functions directory as routes.

    Owns one RouteIndex per glob group. The indexes are seeded at lifespan
    startup, kept current by the file watcher and dropped at shutdown.
    Requests that are not function routes go to ``app``.
    """

    def __init__(
        self,
        functions_path: str,
        executor: FunctionExecutor,
        app: Optional[ASGIApp] = None,
        notifier: Optional[EventBroadcaster] = None,
        route_groups: Optional[dict[str, dict[str, Any]]] = None,
        watch: bool = True,
    ):
        self.functions_path = str(Path(functions_path).resolve())
        self.executor = executor
        self.app = app or not_found_app
        self.notifier = notifier or EventBroadcaster()
        self.watch = watch

        self.groups: dict[str, RouteGroup] = {}
        for name, config in (route_groups or ROUTE_GROUPS).items():
            index = RouteIndex(
                name,
                self.functions_path,
                compile_patterns=config.get("compile_patterns", True),
            )
            self.groups[name] = RouteGroup(name=name, glob=config["glob"], index=index)

        self.frontend = DispatchFrontend(
            files=self.groups[FILES_GROUP].index,
            api=self.groups[API_GROUP].index,
        )
        self.watcher = FunctionsWatcher(
            self.functions_path, list(self.groups.values()), notifier=self.notifier
        )

        if PROPS_GROUP in self.groups:
            self.groups[PROPS_GROUP].index.subscribe(self._on_props_change)

        self.cleanup_callbacks: list[Callable] = []
        self.add_cleanup_callback(self.watcher.stop)
        if hasattr(executor, "aclose"):
            self.add_cleanup_callback(executor.aclose)

    def index(self, group: str) -> RouteIndex:
        return self.groups[group].index

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        await self._handle_http(scope, receive, send)

    async def _handle_http(self, scope: Scope, receive: Receive, send: Send):
        request = Request(scope, receive)
        path = scope["path"]

        try:
            outcome = self.frontend.dispatch(path, request.query_params)
        except PayloadDecodeError as e:
            DISPATCH_COUNT.labels(group=PROPS_GROUP, outcome="bad_payload").inc()
            logger.warning(f"Rejecting {path}: {e}")
            await PlainTextResponse("Invalid props payload", status_code=400)(scope, receive, send)
            return

        if isinstance(outcome, NotFound):
            await self.app(scope, receive, send)
            return

        if isinstance(outcome, ConfigurationError):
            DISPATCH_COUNT.labels(group=API_GROUP, outcome="no_match").inc()
            logger.error(str(outcome.to_exception()))
            await Response(status_code=500)(scope, receive, send)
            return

        await self._delegate(request, outcome, scope, receive, send)

    async def _delegate(self, request: Request, delegate: Delegate, scope: Scope, receive: Receive, send: Send):
        logger.info(f"{request.method} {request.url.path} -> {delegate.function_path} params={delegate.params}")
        start = time.time()
        try:
            response = await self.executor(request, delegate)
        finally:
            DISPATCH_DURATION.labels(group=delegate.group).observe(time.time() - start)

        DISPATCH_COUNT.labels(group=delegate.group, outcome="delegated").inc()
        await response(scope, receive, send)

    def _on_props_change(self, snapshot: RouteSnapshot) -> None:
        self.notifier.send(PROPS_ENDPOINTS_EVENT, {"names": props_endpoint_names(snapshot.routes)})

    def announce_props_endpoints(self) -> None:
        if PROPS_GROUP in self.groups:
            self._on_props_change(self.index(PROPS_GROUP).snapshot())

    async def startup(self) -> None:
        self.watcher.scan()
        await self.watcher.start(observe=self.watch)

    def add_cleanup_callback(self, cb: Callable) -> None:
        self.cleanup_callbacks.append(cb)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send):
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as e:
                    logger.exception("[fnrouter] Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(e)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                for cb in self.cleanup_callbacks:
                    result = cb()
                    if asyncio.iscoroutine(result): await result
                logger.info("[fnrouter] Shutdown complete. All resources closed.")
                await send({"type": "lifespan.shutdown.complete"})
                return
