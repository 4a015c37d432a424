"""
Pydantic schemas for the bucket-versioning API.

Storage records (versions, delete markers, put/delete results) are served
as-is from ``bucket_versioning.storage.models``; this module only holds the
envelopes the routes add on top of them.
"""
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class VersioningStatusResponse(BaseModel):
    """Whether versioning is turned on for the bucket."""

    enabled: bool = Field(..., description="True only when the bucket reports status 'Enabled'")

    model_config = {"json_schema_extra": {"examples": [{"enabled": True}]}}


class DeleteMarkerResponse(BaseModel):
    """Version id of the delete marker placed by an unversioned delete."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={"examples": [{"deleteVersionId": "01HZX3M7Q0W3YV8D3S0T3QK9XN"}]},
    )

    delete_version_id: Optional[str] = Field(
        None,
        description="Version id of the new delete marker; null if the bucket is unversioned",
    )


class ErrorResponse(BaseModel):
    """Body returned for storage failures."""

    detail: str = Field(..., examples=["No delete marker found for the object: a.txt"])
    code: Optional[str] = Field(None, description="Backend error code, e.g. NoSuchKey")


class HealthResponse(BaseModel):
    status: str = Field(..., examples=["healthy"])
    checks: Dict[str, str]
