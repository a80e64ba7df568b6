import pytest
import httpx
from httpx import ASGITransport
from asgi_lifespan import LifespanManager

from fnrouter.core.admin_router import AdminRouter
from fnrouter.core.functions_router import FunctionsRouter
from fnrouter.core.mount_admin_first import MountAdminFirst
from fnrouter.core.notifier import PROPS_ENDPOINTS_EVENT
from fnrouter.core.proxy_executor import ProxyExecutor
from tests.fixtures.mock_backends import echo_function_runner, write_functions


@pytest.mark.anyio
async def test_admin_endpoints(tmp_path):
    functions = write_functions(
        tmp_path, "hello.js", "api/users/[id].js", "api/users/[slug].js", "api/health.js", "props/blog.js"
    )

    transport = ASGITransport(app=echo_function_runner)
    fake_client = httpx.AsyncClient(transport=transport, base_url="http://runner")
    router = FunctionsRouter(str(functions), ProxyExecutor("http://runner", client=fake_client), watch=False)
    admin = AdminRouter(router)
    app = MountAdminFirst(admin, router)

    async with LifespanManager(app):
        async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            res = await client.get("/__health")
            assert res.status_code == 200
            assert "ok" in res.text.lower()

            res = await client.get("/__routes")
            assert res.status_code == 200
            routes = res.json()
            assert routes["files"]["static"] == ["/hello"]
            assert routes["api"]["static"] == ["/api/health"]
            assert routes["api"]["dynamic"] == [
                {"route": "/api/users/[id]", "params": ["id"]},
                {"route": "/api/users/[slug]", "params": ["slug"]},
            ]
            assert routes["props"]["glob"] == "props/**/*"

            # the delegated request shows up in the metrics
            await client.get("/api/users/1")
            res = await client.get("/__metrics")
            assert res.status_code == 200
            assert "fnrouter_dispatch_total" in res.text
            assert "fnrouter_routes" in res.text

            events = router.notifier.subscribe()
            res = await client.get("/__dev-setup-props-watcher")
            assert res.status_code == 200
            assert events.get_nowait()["data"] == {"names": "|blog|"}
            assert router.notifier.last_events[PROPS_ENDPOINTS_EVENT]["event"] == PROPS_ENDPOINTS_EVENT

            res = await client.get("/__nope")
            assert res.status_code == 404
