"""Exception taxonomy for the storage layer."""
from typing import Optional


class BucketVersioningError(Exception):
    """Base class for errors raised by this service."""


class ConfigurationError(BucketVersioningError):
    """Required Storj settings are missing; the adapter refuses to start."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            "Storj configuration is incomplete, missing: " + ", ".join(missing)
        )


class StorageBackendError(BucketVersioningError):
    """
    A call to the object store failed.

    The botocore exception is chained as ``__cause__``; ``error_code`` and
    ``http_status`` are lifted out of it when the backend answered at all.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        key: Optional[str] = None,
        version_id: Optional[str] = None,
        error_code: Optional[str] = None,
        http_status: Optional[int] = None,
    ):
        self.operation = operation
        self.key = key
        self.version_id = version_id
        self.error_code = error_code
        self.http_status = http_status
        super().__init__(message)


class NoDeleteMarkerFound(BucketVersioningError):
    """Undelete was requested for a key that has no delete marker."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No delete marker found for the object: {key}")
