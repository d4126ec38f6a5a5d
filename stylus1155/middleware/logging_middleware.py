"""
HTTP request logging middleware.

Every request is logged once as a structlog `http_request` event. Requests
that target a contract or network carry those as bound context, so the
`tx_state` events emitted while serving them can be correlated.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

QUIET_PATHS = frozenset({"/healthz"})


def _request_context(request: Request) -> dict:
    context = {"request_id": request.headers.get("x-request-id", str(uuid.uuid4())[:8])}
    parts = request.url.path.strip("/").split("/")
    if len(parts) >= 3 and parts[0] == "erc1155" and parts[1] == "contracts":
        context["contract"] = parts[2]
    network = request.query_params.get("network")
    if network:
        context["network"] = network
    return context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests with timing, status and contract context."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        context = _request_context(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = context["request_id"]
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            elif request.url.path in QUIET_PATHS:
                log = logger.debug
            else:
                log = logger.info

            log(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                duration_ms=duration_ms,
            )
