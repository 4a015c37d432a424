"""
StorjStorageAdapter: boto3-backed implementation of ObjectStoreAdapter.

Talks to Storj through its S3-compatible gateway, but works with any
S3-compatible backend (AWS S3, MinIO) by pointing ``STORJ_ENDPOINT``
at the appropriate service URL.

Every call is wrapped the same way: a ``<operation>_started`` log line,
one boto3 request, then either ``<operation>_succeeded`` or an error-level
``<operation>_failed``.  Botocore errors are re-raised as
``StorageBackendError``; anything else is re-raised unchanged.  There are no
retries at either layer; the botocore client is configured for a single
attempt.

Also exposes ``create_storage_adapter()``, which builds the adapter from
``settings``.
"""
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from bucket_versioning.config import Settings, settings as default_settings
from bucket_versioning.logging_config import get_logger
from bucket_versioning.metrics import STORAGE_OPERATIONS_TOTAL, STORAGE_OPERATION_DURATION
from bucket_versioning.storage.errors import ConfigurationError, StorageBackendError
from bucket_versioning.storage.interface import ObjectStoreAdapter
from bucket_versioning.storage.models import (
    BucketVersioningStatus,
    DeleteMarker,
    DeleteObjectResult,
    ObjectSummary,
    ObjectVersion,
    ObjectWithMetadata,
    PutObjectResult,
    VersionEntry,
)
from bucket_versioning.storage.versioning import merge_version_history
from bucket_versioning.tracing import get_tracer

logger = get_logger(__name__)
tracer = get_tracer(__name__)

VERSIONING_ENABLED = "Enabled"


def _describe_failure(exc: Exception) -> Dict[str, Any]:
    """Pull the backend error code and HTTP status out of a botocore error."""
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        meta = exc.response.get("ResponseMetadata", {})
        return {
            "error_code": error.get("Code"),
            "http_status": meta.get("HTTPStatusCode"),
        }
    return {"error_code": None, "http_status": None}


class StorjStorageAdapter(ObjectStoreAdapter):
    """
    Versioned-bucket operations against a single Storj bucket.

    The boto3 client is created once and shared; boto3 clients are safe to
    use from FastAPI's worker threads.  Pass ``client`` to inject a
    pre-built (or mocked) client.
    """

    def __init__(
        self,
        access_key: Optional[str],
        secret_key: Optional[str],
        endpoint: Optional[str],
        bucket: Optional[str],
        region: str = "us-east-1",
        client: Any = None,
    ) -> None:
        required = {
            "STORJ_ACCESS_KEY": access_key,
            "STORJ_SECRET_KEY": secret_key,
            "STORJ_ENDPOINT": endpoint,
            "STORJ_BUCKET": bucket,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            logger.error("storj_configuration_incomplete", missing=missing)
            raise ConfigurationError(missing)

        self.bucket = bucket
        self.endpoint = self._resolve_endpoint(endpoint)

        if client is None:
            logger.info("storj_client_initializing", endpoint=self.endpoint, bucket=bucket)
            client = boto3.client(
                "s3",
                endpoint_url=self.endpoint,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
                config=Config(
                    s3={"addressing_style": "path"},  # Storj gateway needs path-style
                    retries={"max_attempts": 1, "mode": "standard"},
                ),
            )
        self.client = client

    @staticmethod
    def _resolve_endpoint(endpoint: str) -> str:
        """Default to HTTPS when the endpoint is given without a scheme."""
        if not endpoint.startswith(("http://", "https://")):
            endpoint = f"https://{endpoint}"
        return endpoint

    @contextmanager
    def _call(
        self,
        operation: str,
        key: Optional[str] = None,
        version_id: Optional[str] = None,
    ) -> Iterator[Dict[str, Any]]:
        """
        Log, trace, time and translate errors for one backend request.

        Yields a dict; anything the caller puts into it is added to the
        success log line (result counts, returned version ids).
        """
        context = {"bucket": self.bucket}
        if key is not None:
            context["key"] = key
        if version_id is not None:
            context["version_id"] = version_id

        outcome: Dict[str, Any] = {}
        logger.info(f"{operation}_started", **context)
        start = time.perf_counter()

        with tracer.start_as_current_span(f"storage.{operation}") as span:
            span.set_attribute("s3.bucket", self.bucket)
            if key is not None:
                span.set_attribute("s3.key", key)
            if version_id is not None:
                span.set_attribute("s3.version_id", version_id)

            try:
                yield outcome
            except (ClientError, BotoCoreError) as e:
                self._record(operation, "error", start)
                failure = _describe_failure(e)
                logger.error(f"{operation}_failed", error=str(e), **failure, **context)
                raise StorageBackendError(
                    operation,
                    str(e),
                    key=key,
                    version_id=version_id,
                    **failure,
                ) from e
            except Exception as e:
                # Malformed responses and local bugs are counted but not wrapped.
                self._record(operation, "error", start)
                logger.error(
                    f"{operation}_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    **context,
                )
                raise

        self._record(operation, "ok", start)
        logger.info(f"{operation}_succeeded", **outcome, **context)

    @staticmethod
    def _record(operation: str, status: str, start: float) -> None:
        STORAGE_OPERATIONS_TOTAL.labels(operation=operation, status=status).inc()
        STORAGE_OPERATION_DURATION.labels(operation=operation).observe(
            time.perf_counter() - start
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(
        self,
        key: str,
        body: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> PutObjectResult:
        params: Dict[str, Any] = {"Bucket": self.bucket, "Key": key, "Body": body}
        if content_type:
            params["ContentType"] = content_type
        if metadata:
            params["Metadata"] = metadata

        with self._call("put", key=key) as outcome:
            response = self.client.put_object(**params)
            outcome.update(size=len(body), new_version_id=response.get("VersionId"))

        return PutObjectResult(etag=response.get("ETag"), version_id=response.get("VersionId"))

    def delete_version(self, key: str, version_id: str) -> DeleteObjectResult:
        with self._call("delete_version", key=key, version_id=version_id):
            response = self.client.delete_object(
                Bucket=self.bucket, Key=key, VersionId=version_id
            )

        return DeleteObjectResult(
            version_id=response.get("VersionId", version_id),
            delete_marker=bool(response.get("DeleteMarker", False)),
        )

    def delete_current(self, key: str) -> Optional[str]:
        with self._call("delete_current", key=key) as outcome:
            response = self.client.delete_object(Bucket=self.bucket, Key=key)
            outcome["marker_version_id"] = response.get("VersionId")

        return response.get("VersionId")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _get_object(
        self, operation: str, key: str, version_id: Optional[str] = None
    ) -> ObjectWithMetadata:
        params = {"Bucket": self.bucket, "Key": key}
        if version_id is not None:
            params["VersionId"] = version_id

        with self._call(operation, key=key, version_id=version_id) as outcome:
            response = self.client.get_object(**params)
            body = response["Body"].read()
            outcome["size"] = len(body)

        return ObjectWithMetadata(
            body=body,
            metadata=response.get("Metadata") or {},
            content_type=response.get("ContentType"),
            version_id=response.get("VersionId", version_id),
        )

    def get(self, key: str) -> bytes:
        return self._get_object("get", key).body

    def get_version(self, key: str, version_id: str) -> bytes:
        return self._get_object("get_version", key, version_id).body

    def get_with_metadata(self, key: str) -> ObjectWithMetadata:
        return self._get_object("get_with_metadata", key)

    def get_version_with_metadata(self, key: str, version_id: str) -> ObjectWithMetadata:
        return self._get_object("get_version_with_metadata", key, version_id)

    # ------------------------------------------------------------------
    # Listings (paginated so buckets over 1000 entries come back whole)
    # ------------------------------------------------------------------

    def _pages(self, method: str, **params) -> Iterator[Dict[str, Any]]:
        paginator = self.client.get_paginator(method)
        return iter(paginator.paginate(Bucket=self.bucket, **params))

    def list_current(self) -> List[ObjectSummary]:
        with self._call("list_current") as outcome:
            objects = [
                ObjectSummary.from_s3(item)
                for page in self._pages("list_objects_v2")
                for item in page.get("Contents", [])
            ]
            outcome["count"] = len(objects)
        return objects

    def list_all_versions(self) -> List[ObjectVersion]:
        with self._call("list_all_versions") as outcome:
            versions = [
                ObjectVersion.from_s3(item)
                for page in self._pages("list_object_versions")
                for item in page.get("Versions", [])
            ]
            outcome["count"] = len(versions)
        return versions

    def list_versions_for_key(self, key: str) -> List[VersionEntry]:
        with self._call("list_versions_for_key", key=key) as outcome:
            versions: List[ObjectVersion] = []
            markers: List[DeleteMarker] = []
            for page in self._pages("list_object_versions", Prefix=key):
                versions.extend(ObjectVersion.from_s3(v) for v in page.get("Versions", []))
                markers.extend(DeleteMarker.from_s3(m) for m in page.get("DeleteMarkers", []))
            outcome.update(versions=len(versions), delete_markers=len(markers))

        return merge_version_history(versions, markers)

    # ------------------------------------------------------------------
    # Bucket
    # ------------------------------------------------------------------

    def versioning_status(self) -> BucketVersioningStatus:
        with self._call("versioning_status") as outcome:
            response = self.client.get_bucket_versioning(Bucket=self.bucket)
            status = response.get("Status")
            outcome["status"] = status

        return BucketVersioningStatus(enabled=status == VERSIONING_ENABLED, status=status)

    def check_bucket(self) -> None:
        with self._call("check_bucket"):
            self.client.head_bucket(Bucket=self.bucket)


def create_storage_adapter(config: Settings | None = None) -> StorjStorageAdapter:
    """
    Factory: build the Storj adapter from configuration.

    Raises:
        ConfigurationError: If any of the ``STORJ_*`` credentials is missing.
    """
    config = config or default_settings
    return StorjStorageAdapter(
        access_key=config.storj_access_key,
        secret_key=config.storj_secret_key,
        endpoint=config.storj_endpoint,
        bucket=config.storj_bucket,
        region=config.storj_region,
    )
