from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from bucket_versioning.api.routes import router as bucket_versioning_router
from bucket_versioning.api.schemas import HealthResponse
from bucket_versioning.config import settings
from bucket_versioning.logging_config import get_logger
from bucket_versioning.middleware import APIKeyMiddleware, RequestLoggingMiddleware
from bucket_versioning.service import BucketVersioningService
from bucket_versioning.storage.errors import NoDeleteMarkerFound, StorageBackendError
from bucket_versioning.storage.s3 import create_storage_adapter

logger = get_logger(__name__)

# Backend error codes mapped onto client-facing statuses; anything else is a 502.
_STATUS_BY_ERROR_CODE = {
    "NoSuchKey": 404,
    "NoSuchVersion": 404,
    "NoSuchBucket": 404,
    "404": 404,
    "AccessDenied": 403,
    "InvalidAccessKeyId": 403,
    "SignatureDoesNotMatch": 403,
    "403": 403,
    "InvalidArgument": 400,
    "InvalidVersionId": 400,
    "400": 400,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the storage adapter and service once per process.

    ``ConfigurationError`` propagates, so missing Storj credentials stop
    the server from starting.
    """
    storage = create_storage_adapter(settings)
    app.state.versioning_service = BucketVersioningService(storage)
    logger.info("service_started", bucket=storage.bucket, endpoint=storage.endpoint)
    yield
    logger.info("service_stopped")


app = FastAPI(
    title="Storj Bucket Versioning",
    version="0.1.0",
    description=(
        "REST façade over a versioned Storj bucket: upload, download, list "
        "object versions, delete with markers and undelete."
    ),
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(APIKeyMiddleware, api_key=settings.api_key)
app.include_router(bucket_versioning_router)


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


def status_for_backend_error(exc: StorageBackendError) -> int:
    """HTTP status to surface for a failed backend call."""
    if exc.error_code in _STATUS_BY_ERROR_CODE:
        return _STATUS_BY_ERROR_CODE[exc.error_code]
    if exc.http_status in (400, 403, 404):
        return exc.http_status
    return 502


@app.exception_handler(StorageBackendError)
async def storage_backend_error_handler(request: Request, exc: StorageBackendError):
    return JSONResponse(
        status_code=status_for_backend_error(exc),
        content={"detail": str(exc), "code": exc.error_code},
    )


@app.exception_handler(NoDeleteMarkerFound)
async def no_delete_marker_handler(request: Request, exc: NoDeleteMarkerFound):
    return JSONResponse(status_code=404, content={"detail": str(exc), "code": "NoDeleteMarker"})


# ---------------------------------------------------------------------------
# Operational endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["General"], summary="API Landing")
async def root():
    """Returns a welcome message confirming the API is reachable."""
    return {"message": "Welcome to the Storj Bucket Versioning API"}


@app.get(
    "/health",
    tags=["Operations"],
    summary="Health Check",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "Object store unreachable"}},
)
def health(request: Request):
    """
    Readiness probe.

    - **object_store**: HEAD on the configured bucket.

    Returns HTTP 200 if the bucket is reachable, HTTP 503 otherwise.
    """
    checks = {}
    all_ok = True

    service = getattr(request.app.state, "versioning_service", None)
    if service is None:
        checks["object_store"] = "not initialized"
        all_ok = False
    else:
        try:
            service.storage.check_bucket()
            checks["object_store"] = "ok"
        except StorageBackendError as e:
            checks["object_store"] = str(e)[:120]
            all_ok = False

    body = HealthResponse(status="healthy" if all_ok else "degraded", checks=checks)
    return JSONResponse(content=body.model_dump(), status_code=200 if all_ok else 503)


@app.get("/metrics", tags=["Operations"], summary="Prometheus Metrics")
async def metrics():
    """Prometheus-compatible metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
