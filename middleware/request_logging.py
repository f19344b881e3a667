"""
Request logging middleware
"""
import logging
import time
import uuid
from typing import Callable
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def client_address(request: Request) -> str:
    """Best guess at the caller's address, honouring proxies"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request and the response returned for it, and tags both with
    a request id that is echoed back in the ``X-Request-ID`` header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        started = time.perf_counter()
        logger.info(
            f"[HTTP] {request_id} received {request.method} {request.url.path} "
            f"from {client_address(request)} ({request.headers.get('user-agent')})"
        )

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"[HTTP] {request_id} returned {response.status_code} in {elapsed_ms:.0f} ms")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
