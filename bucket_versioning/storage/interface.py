"""
ObjectStoreAdapter: vendor-neutral interface for a versioned bucket.

Implementations must:
    - Address a single bucket fixed at construction time
    - Return the typed records in ``bucket_versioning.storage.models``
    - Wrap every backend failure in ``StorageBackendError``
    - Make exactly one backend attempt per call (no retries)
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from bucket_versioning.storage.models import (
    BucketVersioningStatus,
    DeleteObjectResult,
    ObjectSummary,
    ObjectVersion,
    ObjectWithMetadata,
    PutObjectResult,
    VersionEntry,
)


class ObjectStoreAdapter(ABC):
    """Abstract base for S3-compatible versioned object storage."""

    bucket: str

    @abstractmethod
    def put(
        self,
        key: str,
        body: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> PutObjectResult:
        """Write *body* under *key*, creating a new version when versioning is on."""

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the body of the current version of *key*."""

    @abstractmethod
    def get_version(self, key: str, version_id: str) -> bytes:
        """Return the body of a specific version."""

    @abstractmethod
    def get_with_metadata(self, key: str) -> ObjectWithMetadata:
        """Return body and user metadata of the current version."""

    @abstractmethod
    def get_version_with_metadata(self, key: str, version_id: str) -> ObjectWithMetadata:
        """Return body and user metadata of a specific version."""

    @abstractmethod
    def list_current(self) -> List[ObjectSummary]:
        """List the current objects in the bucket."""

    @abstractmethod
    def list_all_versions(self) -> List[ObjectVersion]:
        """List every object version in the bucket (delete markers excluded)."""

    @abstractmethod
    def list_versions_for_key(self, key: str) -> List[VersionEntry]:
        """
        List versions and delete markers whose key starts with *key*.

        Returns:
            One merged sequence, newest ``last_modified`` first.
        """

    @abstractmethod
    def delete_version(self, key: str, version_id: str) -> DeleteObjectResult:
        """Permanently delete one version (or delete marker)."""

    @abstractmethod
    def delete_current(self, key: str) -> Optional[str]:
        """
        Delete *key* without a version id.

        On a versioned bucket this places a delete marker.

        Returns:
            The delete marker's version id, or ``None`` if the backend gave none.
        """

    @abstractmethod
    def versioning_status(self) -> BucketVersioningStatus:
        """Return the bucket's versioning state."""

    @abstractmethod
    def check_bucket(self) -> None:
        """Raise ``StorageBackendError`` if the bucket is unreachable."""

    def is_versioning_enabled(self) -> bool:
        """True only when the backend reports status ``Enabled``."""
        return self.versioning_status().enabled
