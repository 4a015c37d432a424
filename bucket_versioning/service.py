"""
BucketVersioningService: what the HTTP layer talks to.

Thin delegation to an ``ObjectStoreAdapter``; the only logic of its own
is ``undelete``, which finds the newest delete marker for a key and
removes it so the previous version becomes current again.
"""
from typing import Dict, List, Optional

import structlog

from bucket_versioning.metrics import UNDELETE_TOTAL
from bucket_versioning.storage.errors import NoDeleteMarkerFound
from bucket_versioning.storage.interface import ObjectStoreAdapter
from bucket_versioning.storage.models import (
    DeleteObjectResult,
    ObjectSummary,
    ObjectVersion,
    ObjectWithMetadata,
    PutObjectResult,
    VersionEntry,
)
from bucket_versioning.storage.versioning import latest_delete_marker

logger = structlog.get_logger(__name__)


class BucketVersioningService:
    """Bucket versioning operations over one injected storage adapter."""

    def __init__(self, storage: ObjectStoreAdapter):
        self.storage = storage

    def is_versioning_enabled(self) -> bool:
        return self.storage.is_versioning_enabled()

    def list_objects(self) -> List[ObjectSummary]:
        return self.storage.list_current()

    def list_object_versions(self) -> List[ObjectVersion]:
        return self.storage.list_all_versions()

    def list_object_versions_for_key(self, key: str) -> List[VersionEntry]:
        return self.storage.list_versions_for_key(key)

    def upload_file(
        self,
        key: str,
        body: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> PutObjectResult:
        return self.storage.put(key, body, content_type=content_type, metadata=metadata)

    def download_file(self, key: str) -> bytes:
        return self.storage.get(key)

    def get_object_version(self, key: str, version_id: str) -> bytes:
        return self.storage.get_version(key, version_id)

    def get_current_object_version(self, key: str) -> ObjectWithMetadata:
        return self.storage.get_with_metadata(key)

    def get_object_version_with_metadata(self, key: str, version_id: str) -> ObjectWithMetadata:
        return self.storage.get_version_with_metadata(key, version_id)

    def delete_object_version(self, key: str, version_id: str) -> DeleteObjectResult:
        return self.storage.delete_version(key, version_id)

    def delete_object_with_marker(self, key: str) -> Optional[str]:
        return self.storage.delete_current(key)

    def undelete_object(self, key: str) -> DeleteObjectResult:
        """
        Restore *key* by deleting its most recent delete marker.

        Deleting a delete marker is the store's own undelete primitive:
        the version underneath becomes current again.

        Returns:
            The backend's result for deleting the marker.

        Raises:
            NoDeleteMarkerFound: If *key* has no delete marker. No delete
                is issued in that case.
            StorageBackendError: If listing or deleting fails.
        """
        entries = self.storage.list_versions_for_key(key)

        try:
            marker = latest_delete_marker(entries, key)
        except NoDeleteMarkerFound:
            UNDELETE_TOTAL.labels(outcome="no_delete_marker").inc()
            logger.warning("undelete_no_delete_marker", key=key, entries=len(entries))
            raise

        logger.info(
            "undelete_removing_marker",
            key=key,
            version_id=marker.version_id,
            marker_last_modified=marker.last_modified.isoformat() if marker.last_modified else None,
        )
        result = self.storage.delete_version(key, marker.version_id)
        UNDELETE_TOTAL.labels(outcome="restored").inc()
        return result
