import pytest
import httpx
import uuid
import logging
from httpx import ASGITransport
from starlette.responses import PlainTextResponse
from fnrouter.core.logging_setup import RequestIdLogFilter
from fnrouter.core.trace import RequestIdMiddleware, request_id_var


# Backend that logs with the request id in scope
async def app_with_logging(scope, receive, send):
    logger = logging.getLogger("test-observability")
    logger.info(f"Log triggered by request ID: {request_id_var.get()}")
    await PlainTextResponse("logged")(scope, receive, send)


@pytest.mark.anyio
async def test_request_id_is_generated():
    app = RequestIdMiddleware(app_with_logging)

    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        res = await client.get("/anything")

    assert res.status_code == 200
    assert uuid.UUID(res.headers["X-Request-ID"])
    assert request_id_var.get() is None


@pytest.mark.anyio
async def test_request_id_appears_in_logs(caplog):
    caplog.set_level(logging.INFO, logger="test-observability")
    app = RequestIdMiddleware(app_with_logging)

    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        res = await client.get("/anything", headers={"X-Request-ID": "abc"})

    assert res.headers["X-Request-ID"] == "abc"
    assert "Log triggered by request ID: abc" in caplog.text


def test_log_filter_stamps_records():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    token = request_id_var.set("req-9")
    try:
        assert RequestIdLogFilter().filter(record)
    finally:
        request_id_var.reset(token)
    assert record.request_id == "req-9"
