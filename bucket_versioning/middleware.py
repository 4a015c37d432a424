"""
Middleware for the bucket-versioning API.

- **APIKeyMiddleware**: Validates ``X-API-Key`` header.  Disabled when
  ``api_key`` setting is empty (local dev).
- **RequestLoggingMiddleware**: Binds a request id into the structlog
  context, emits one structured log per request and records a Prometheus
  histogram labelled by route template (object keys never become labels).
"""
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from prometheus_client import Histogram

logger = structlog.get_logger(__name__)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    labelnames=["method", "route", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Paths that bypass API key authentication
PUBLIC_PATHS = frozenset({
    "/", "/health", "/metrics", "/docs", "/redoc", "/openapi.json",
})

REQUEST_ID_HEADER = "X-Request-ID"


def _route_template(request: Request) -> str:
    """``/bucket-versioning/versions/{key}`` rather than the concrete key."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Reject requests without a valid ``X-API-Key`` header.

    If ``api_key`` is falsy, authentication is disabled.  Public paths
    always pass through.
    """

    def __init__(self, app, api_key: str = ""):
        super().__init__(app)
        self.api_key = api_key

    async def dispatch(self, request: Request, call_next):
        if not self.api_key or request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        provided = request.headers.get("X-API-Key", "")
        if provided != self.api_key:
            logger.warning(
                "auth_rejected",
                path=request.url.path,
                client=request.client.host if request.client else "unknown",
            )
            return JSONResponse(
                status_code=401,
                content={"detail": "Invalid or missing API key"},
            )

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request/response and record latency in Prometheus."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        path = request.url.path
        status = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            route=_route_template(request),
            status=str(status),
        ).observe(duration)

        # Skip noisy /metrics polling
        if path != "/metrics":
            logger.info(
                "http_request",
                method=request.method,
                path=path,
                status=status,
                duration_ms=round(duration * 1000, 2),
                client=request.client.host if request.client else "unknown",
            )

        return response
