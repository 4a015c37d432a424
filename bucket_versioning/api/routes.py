"""
Bucket-versioning routes.

Every handler is a plain ``def``: boto3 is blocking, so FastAPI runs these
in its threadpool.  Handlers do no error handling of their own; storage
exceptions propagate to the handlers registered in ``bucket_versioning.main``.

Object keys are single path segments, matching the upload route.
"""
from typing import List, Mapping
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import Response

from bucket_versioning.api.schemas import (
    DeleteMarkerResponse,
    ErrorResponse,
    VersioningStatusResponse,
)
from bucket_versioning.service import BucketVersioningService
from bucket_versioning.storage.models import (
    DeleteObjectResult,
    ObjectSummary,
    ObjectVersion,
    PutObjectResult,
    VersionEntry,
)

router = APIRouter(prefix="/bucket-versioning", tags=["Bucket Versioning"])

BINARY_RESPONSE = {
    200: {"content": {"application/octet-stream": {}}, "description": "Object body"},
    404: {"model": ErrorResponse, "description": "Key or version does not exist"},
}

# Object metadata never overrides these on binary responses.
RESERVED_HEADERS = {"content-disposition", "content-type", "content-length"}


def get_versioning_service(request: Request) -> BucketVersioningService:
    """Dependency: the service built once in the application lifespan."""
    return request.app.state.versioning_service


def _content_disposition(key: str) -> str:
    # Same encoding as starlette's FileResponse: headers are latin-1 on the wire.
    quoted = quote(key)
    if quoted != key:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{key}"'


def _attachment(key: str, body: bytes, metadata: Mapping[str, str] | None = None) -> Response:
    headers = {
        name: value
        for name, value in (metadata or {}).items()
        if name.lower() not in RESERVED_HEADERS
    }
    headers["Content-Disposition"] = _content_disposition(key)
    return Response(content=body, media_type="application/octet-stream", headers=headers)


@router.get("/status", response_model=VersioningStatusResponse, summary="Bucket Versioning Status")
def get_versioning_status(service: BucketVersioningService = Depends(get_versioning_service)):
    """Report whether versioning is enabled for the bucket."""
    return VersioningStatusResponse(enabled=service.is_versioning_enabled())


@router.get("/objects", response_model=List[ObjectSummary], summary="List Current Objects")
def list_objects(service: BucketVersioningService = Depends(get_versioning_service)):
    return service.list_objects()


@router.get("/versions", response_model=List[ObjectVersion], summary="List All Object Versions")
def list_object_versions(service: BucketVersioningService = Depends(get_versioning_service)):
    """Every stored version in the bucket. Delete markers are not included."""
    return service.list_object_versions()


@router.get(
    "/versions/{key}",
    response_model=List[VersionEntry],
    summary="List Versions For Key",
)
def list_object_versions_for_key(
    key: str,
    service: BucketVersioningService = Depends(get_versioning_service),
):
    """
    Versions and delete markers for *key*, newest first.

    The listing is prefix-based, so keys that start with *key* are included.
    """
    return service.list_object_versions_for_key(key)


@router.get(
    "/versions/{key}/{version_id}/download",
    response_class=Response,
    responses=BINARY_RESPONSE,
    summary="Download Object Version",
)
def download_object_version(
    key: str,
    version_id: str,
    service: BucketVersioningService = Depends(get_versioning_service),
):
    return _attachment(key, service.get_object_version(key, version_id))


@router.get(
    "/versions/{key}/{version_id}/metadata",
    response_class=Response,
    responses=BINARY_RESPONSE,
    summary="Get Object Version With Metadata",
)
def get_object_version_with_metadata(
    key: str,
    version_id: str,
    service: BucketVersioningService = Depends(get_versioning_service),
):
    """Version body with its user metadata copied into the response headers."""
    obj = service.get_object_version_with_metadata(key, version_id)
    return _attachment(key, obj.body, obj.metadata)


@router.delete(
    "/versions/{key}/{version_id}",
    response_model=DeleteObjectResult,
    summary="Delete Object Version",
)
def delete_object_version(
    key: str,
    version_id: str,
    service: BucketVersioningService = Depends(get_versioning_service),
):
    """Permanently delete one version or delete marker."""
    return service.delete_object_version(key, version_id)


@router.get(
    "/current/{key}",
    response_class=Response,
    responses=BINARY_RESPONSE,
    summary="Get Current Object Version",
)
def get_current_object_version(
    key: str,
    service: BucketVersioningService = Depends(get_versioning_service),
):
    obj = service.get_current_object_version(key)
    return _attachment(key, obj.body, obj.metadata)


@router.get(
    "/download/{key}",
    response_class=Response,
    responses=BINARY_RESPONSE,
    summary="Download Current Object",
)
def download_latest_object(
    key: str,
    service: BucketVersioningService = Depends(get_versioning_service),
):
    return _attachment(key, service.download_file(key))


@router.delete("/delete/{key}", response_model=DeleteMarkerResponse, summary="Delete Object")
def delete_object_with_marker(
    key: str,
    service: BucketVersioningService = Depends(get_versioning_service),
):
    """Unversioned delete. On a versioned bucket this places a delete marker."""
    return DeleteMarkerResponse(delete_version_id=service.delete_object_with_marker(key))


@router.put(
    "/undelete/{key}",
    response_model=DeleteObjectResult,
    responses={404: {"model": ErrorResponse, "description": "Key has no delete marker"}},
    summary="Undelete Object",
)
def undelete_object(
    key: str,
    service: BucketVersioningService = Depends(get_versioning_service),
):
    """Remove the most recent delete marker so the previous version is current again."""
    return service.undelete_object(key)


@router.post("/upload/{key}", response_model=PutObjectResult, summary="Upload Object")
def upload_file(
    key: str,
    file: UploadFile = File(..., description="Object body"),
    service: BucketVersioningService = Depends(get_versioning_service),
):
    return service.upload_file(key, file.file.read(), content_type=file.content_type)
