"""Request timing and tracing middleware for the cost engine API."""
import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("costing-api.middleware")

SKIP_LOG_PATHS = {"/health"}


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Stamps every response with X-Request-ID and X-Process-Time (ms) and emits
    one structured log line per request, except health checks.

    A caller-supplied X-Request-ID is kept, so a front-end can follow one
    costing run across several engine calls. Rejected requests (bad month
    key, invalid record body) are logged at WARNING.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response: Response = await call_next(request)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        if request.url.path in SKIP_LOG_PATHS:
            return response

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            "request rejected" if level == logging.WARNING else "request completed",
            extra={
                "http_method": request.method,
                "http_path": request.url.path,
                "http_status": response.status_code,
                "request_id": request_id,
                "duration_ms": duration_ms,
            },
        )
        return response
