import pytest
import logging
from asgi_lifespan import LifespanManager
from fnrouter.core.functions_router import FunctionsRouter
from fnrouter.core.proxy_executor import ProxyExecutor


@pytest.mark.anyio
async def test_lifecycle_with_live_watcher_shuts_down_cleanly(tmp_path, caplog):
    caplog.set_level(logging.INFO)
    (tmp_path / "api").mkdir()

    app = FunctionsRouter(str(tmp_path), ProxyExecutor("http://runner"))

    async with LifespanManager(app):
        assert app.watcher._observer is not None

    assert app.watcher._observer is None
    assert app.executor.client.is_closed
    assert "[fnrouter] Shutdown complete. All resources closed." in caplog.text
