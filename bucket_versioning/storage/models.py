"""
Typed records returned by the storage adapter.

boto3 hands back loosely-shaped dicts (``Versions``, ``DeleteMarkers``,
``Contents``...).  They are converted here so nothing above the adapter
touches a raw response.  JSON output uses camelCase aliases
(``versionId``, ``lastModified``, ``isDeleteMarker``).
"""
from datetime import datetime
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StorageRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ObjectSummary(StorageRecord):
    """One entry of the current-object listing."""

    key: str = Field(..., examples=["reports/q1.pdf"])
    last_modified: Optional[datetime] = None
    size: Optional[int] = None
    etag: Optional[str] = None
    storage_class: Optional[str] = None

    @classmethod
    def from_s3(cls, item: Dict[str, Any]) -> "ObjectSummary":
        return cls(
            key=item["Key"],
            last_modified=item.get("LastModified"),
            size=item.get("Size"),
            etag=item.get("ETag"),
            storage_class=item.get("StorageClass"),
        )


class ObjectVersion(StorageRecord):
    """An immutable snapshot of an object's body."""

    key: str
    version_id: str = Field(..., examples=["01HZX3M7Q0W3YV8D3S0T3QK9XN"])
    last_modified: Optional[datetime] = None
    is_latest: bool = False
    is_delete_marker: Literal[False] = False
    size: Optional[int] = None
    etag: Optional[str] = None
    storage_class: Optional[str] = None

    @classmethod
    def from_s3(cls, item: Dict[str, Any]) -> "ObjectVersion":
        return cls(
            key=item["Key"],
            version_id=item.get("VersionId") or "null",
            last_modified=item.get("LastModified"),
            is_latest=bool(item.get("IsLatest", False)),
            size=item.get("Size"),
            etag=item.get("ETag"),
            storage_class=item.get("StorageClass"),
        )


class DeleteMarker(StorageRecord):
    """A placeholder version recording that the key was deleted."""

    key: str
    version_id: str
    last_modified: Optional[datetime] = None
    is_latest: bool = False
    is_delete_marker: Literal[True] = True

    @classmethod
    def from_s3(cls, item: Dict[str, Any]) -> "DeleteMarker":
        return cls(
            key=item["Key"],
            version_id=item.get("VersionId") or "null",
            last_modified=item.get("LastModified"),
            is_latest=bool(item.get("IsLatest", False)),
        )


VersionEntry = Union[ObjectVersion, DeleteMarker]


class ObjectWithMetadata(StorageRecord):
    """Object body plus the user metadata stored alongside it."""

    body: bytes
    metadata: Dict[str, str] = Field(default_factory=dict)
    content_type: Optional[str] = None
    version_id: Optional[str] = None


class PutObjectResult(StorageRecord):
    etag: Optional[str] = None
    version_id: Optional[str] = None


class DeleteObjectResult(StorageRecord):
    version_id: Optional[str] = None
    delete_marker: bool = False


class BucketVersioningStatus(StorageRecord):
    """Versioning state of the bucket; ``status`` is the raw backend value."""

    enabled: bool
    status: Optional[str] = None

