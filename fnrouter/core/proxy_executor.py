import asyncio
import json
import logging
from typing import Optional, Protocol
from urllib.parse import urljoin

import httpx
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from .dispatch import Delegate
from .trace import request_id_var

logger = logging.getLogger(__name__)


class FunctionExecutor(Protocol):
    async def __call__(self, request: Request, delegate: Delegate) -> Response: ...


class ProxyExecutor:
    """Runs a resolved function by forwarding the request to a function runner.

    The runner receives the original method, body and query string at
    ``backend_url + function_path`` plus the resolution in ``x-function-*``
    headers.
    """

    def __init__(
        self,
        backend_url: str,
        timeout: float = 5.0,
        retries: int = 2,
        retry_delay: float = 0.1,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.backend_url = backend_url
        self.retries = retries
        self.retry_delay = retry_delay
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def __call__(self, request: Request, delegate: Delegate) -> Response:
        target_url = self._construct_target_url(delegate.function_path, request.url.query)
        logger.info(f"Delegating {request.method} {request.url.path} to {target_url}")

        headers = self._build_headers(request, delegate)
        body = await request.body()

        backend_response = await self._send_with_retries(request.method, target_url, headers, body)
        if backend_response is None:
            logger.error(f"Function runner failed after {self.retries} retries for {target_url}")
            return PlainTextResponse(
                f"Function runner error after {self.retries} retries",
                status_code=502
            )

        # httpx already decoded the body
        response_headers = {
            k: v for k, v in backend_response.headers.items()
            if k.lower() not in ("content-length", "content-encoding", "transfer-encoding")
        }
        return Response(
            content=backend_response.content,
            status_code=backend_response.status_code,
            headers=response_headers,
            media_type=backend_response.headers.get("content-type"),
        )

    def _construct_target_url(self, function_path: str, query: str) -> str:
        url = urljoin(self.backend_url, function_path)
        return f"{url}?{query}" if query else url

    def _build_headers(self, request: Request, delegate: Delegate) -> dict[str, str]:
        headers = {k.lower(): v for k, v in request.headers.items()}
        headers.pop("host", None)
        headers.pop("content-length", None)
        headers["x-function-path"] = delegate.function_path
        headers["x-function-params"] = json.dumps(delegate.params or {})
        headers["x-function-extra"] = json.dumps(delegate.extra)

        request_id = request_id_var.get()
        if request_id:
            headers["x-request-id"] = request_id
        return headers

    async def _send_with_retries(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes
    ) -> Optional[httpx.Response]:
        attempt = 0
        while attempt <= self.retries:
            try:
                logger.info(f"Attempt {attempt+1} to {url}")
                response = await self.client.request(
                    method=method,
                    url=url,
                    headers=headers,
                    content=body,
                )
                if response.status_code < 500:
                    return response
            except httpx.RequestError as e:
                logger.error(f"Request error to {url}: {str(e)}")

            attempt += 1
            if attempt <= self.retries:
                logger.info(f"Retrying after delay ({self.retry_delay}s)")
                await asyncio.sleep(self.retry_delay)

        logger.error(f"All retries failed for {url}")
        return None

    async def aclose(self) -> None:
        await self.client.aclose()
