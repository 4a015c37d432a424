"""Unit tests for StorjStorageAdapter: boto3 client replaced by MagicMock."""
import io
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from botocore.exceptions import EndpointConnectionError
from prometheus_client import REGISTRY

from bucket_versioning.config import Settings
from bucket_versioning.storage.errors import ConfigurationError, StorageBackendError
from bucket_versioning.storage.models import DeleteMarker, ObjectVersion
from bucket_versioning.storage.s3 import StorjStorageAdapter, create_storage_adapter
from tests.fakes import BUCKET, client_error

T1 = datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc)
T2 = datetime(2024, 1, 1, 0, 0, 2, tzinfo=timezone.utc)
T3 = datetime(2024, 1, 1, 0, 0, 3, tzinfo=timezone.utc)


@pytest.fixture
def mock_client():
    return MagicMock()


@pytest.fixture
def storage(mock_client):
    return StorjStorageAdapter(
        access_key="ak",
        secret_key="sk",
        endpoint="https://gateway.test",
        bucket=BUCKET,
        client=mock_client,
    )


def _paginate(mock_client, *pages):
    mock_client.get_paginator.return_value.paginate.return_value = list(pages)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("missing", ["access_key", "secret_key", "endpoint", "bucket"])
def test_missing_setting_raises_configuration_error(missing):
    kwargs = dict(access_key="ak", secret_key="sk", endpoint="https://gateway.test", bucket=BUCKET)
    kwargs[missing] = None

    with pytest.raises(ConfigurationError) as exc_info:
        StorjStorageAdapter(**kwargs, client=MagicMock())

    assert exc_info.value.missing == [f"STORJ_{missing.upper()}"]


def test_empty_string_counts_as_missing():
    with pytest.raises(ConfigurationError, match="STORJ_SECRET_KEY"):
        StorjStorageAdapter("ak", "", "https://gateway.test", BUCKET, client=MagicMock())


def test_factory_reports_every_missing_setting():
    with pytest.raises(ConfigurationError) as exc_info:
        create_storage_adapter(Settings(_env_file=None, storj_bucket="only-bucket"))

    assert exc_info.value.missing == ["STORJ_ACCESS_KEY", "STORJ_SECRET_KEY", "STORJ_ENDPOINT"]


def test_client_uses_path_style_and_single_attempt():
    with patch("bucket_versioning.storage.s3.boto3.client") as boto_client:
        StorjStorageAdapter("ak", "sk", "gateway.storjshare.io", BUCKET)

    _, kwargs = boto_client.call_args
    assert boto_client.call_args[0][0] == "s3"
    assert kwargs["endpoint_url"] == "https://gateway.storjshare.io"
    assert kwargs["aws_access_key_id"] == "ak"
    assert kwargs["aws_secret_access_key"] == "sk"
    assert kwargs["region_name"] == "us-east-1"
    assert kwargs["config"].s3 == {"addressing_style": "path"}
    assert kwargs["config"].retries == {"max_attempts": 1, "mode": "standard"}


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def test_put_sends_body_and_returns_typed_result(storage, mock_client):
    mock_client.put_object.return_value = {"ETag": '"abc"', "VersionId": "v9"}

    result = storage.put("a.txt", b"hello", content_type="text/plain", metadata={"owner": "ops"})

    mock_client.put_object.assert_called_once_with(
        Bucket=BUCKET,
        Key="a.txt",
        Body=b"hello",
        ContentType="text/plain",
        Metadata={"owner": "ops"},
    )
    assert result.etag == '"abc"'
    assert result.version_id == "v9"


def test_put_omits_optional_fields(storage, mock_client):
    mock_client.put_object.return_value = {}
    storage.put("a.txt", b"x")
    mock_client.put_object.assert_called_once_with(Bucket=BUCKET, Key="a.txt", Body=b"x")


def test_delete_current_returns_marker_version_id(storage, mock_client):
    mock_client.delete_object.return_value = {"DeleteMarker": True, "VersionId": "dm1"}

    assert storage.delete_current("a.txt") == "dm1"
    mock_client.delete_object.assert_called_once_with(Bucket=BUCKET, Key="a.txt")


def test_delete_current_on_unversioned_bucket_returns_none(storage, mock_client):
    mock_client.delete_object.return_value = {}
    assert storage.delete_current("a.txt") is None


def test_delete_version_targets_version(storage, mock_client):
    mock_client.delete_object.return_value = {"VersionId": "dm1", "DeleteMarker": True}

    result = storage.delete_version("a.txt", "dm1")

    mock_client.delete_object.assert_called_once_with(Bucket=BUCKET, Key="a.txt", VersionId="dm1")
    assert result.version_id == "dm1"
    assert result.delete_marker is True


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def test_get_reads_streaming_body(storage, mock_client):
    mock_client.get_object.return_value = {"Body": io.BytesIO(b"payload")}

    assert storage.get("a.txt") == b"payload"
    mock_client.get_object.assert_called_once_with(Bucket=BUCKET, Key="a.txt")


def test_get_version_passes_version_id(storage, mock_client):
    mock_client.get_object.return_value = {"Body": io.BytesIO(b"old")}

    assert storage.get_version("a.txt", "v1") == b"old"
    mock_client.get_object.assert_called_once_with(Bucket=BUCKET, Key="a.txt", VersionId="v1")


def test_get_with_metadata(storage, mock_client):
    mock_client.get_object.return_value = {
        "Body": io.BytesIO(b"data"),
        "Metadata": {"owner": "ops"},
        "ContentType": "text/plain",
        "VersionId": "v2",
    }

    obj = storage.get_with_metadata("a.txt")

    assert obj.body == b"data"
    assert obj.metadata == {"owner": "ops"}
    assert obj.content_type == "text/plain"
    assert obj.version_id == "v2"


def test_get_version_with_metadata_defaults_to_empty_metadata(storage, mock_client):
    mock_client.get_object.return_value = {"Body": io.BytesIO(b"data")}

    obj = storage.get_version_with_metadata("a.txt", "v1")

    assert obj.metadata == {}
    assert obj.version_id == "v1"


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


def test_list_current_collects_all_pages(storage, mock_client):
    _paginate(
        mock_client,
        {"Contents": [{"Key": "a.txt", "Size": 1, "LastModified": T1}]},
        {"Contents": [{"Key": "b.txt", "Size": 2, "LastModified": T2}]},
        {},
    )

    objects = storage.list_current()

    mock_client.get_paginator.assert_called_once_with("list_objects_v2")
    assert [o.key for o in objects] == ["a.txt", "b.txt"]
    assert objects[1].size == 2


def test_list_all_versions_excludes_delete_markers(storage, mock_client):
    _paginate(
        mock_client,
        {
            "Versions": [{"Key": "a.txt", "VersionId": "v1", "LastModified": T1, "IsLatest": True}],
            "DeleteMarkers": [{"Key": "b.txt", "VersionId": "dm1", "LastModified": T2}],
        },
    )

    versions = storage.list_all_versions()

    assert len(versions) == 1
    assert isinstance(versions[0], ObjectVersion)
    assert versions[0].is_latest is True


def test_list_versions_for_key_merges_and_sorts(storage, mock_client):
    _paginate(
        mock_client,
        {
            "Versions": [
                {"Key": "a.txt", "VersionId": "v1", "LastModified": T1},
                {"Key": "a.txt", "VersionId": "v2", "LastModified": T2},
            ],
            "DeleteMarkers": [
                {"Key": "a.txt", "VersionId": "dm1", "LastModified": T3, "IsLatest": True},
            ],
        },
    )

    entries = storage.list_versions_for_key("a.txt")

    mock_client.get_paginator.return_value.paginate.assert_called_once_with(
        Bucket=BUCKET, Prefix="a.txt"
    )
    assert [e.version_id for e in entries] == ["dm1", "v2", "v1"]
    assert isinstance(entries[0], DeleteMarker)
    assert entries[0].is_delete_marker is True


def test_list_versions_for_key_spanning_pages(storage, mock_client):
    _paginate(
        mock_client,
        {"Versions": [{"Key": "a.txt", "VersionId": "v1", "LastModified": T1}]},
        {"DeleteMarkers": [{"Key": "a.txt", "VersionId": "dm1", "LastModified": T2}]},
    )

    entries = storage.list_versions_for_key("a.txt")

    assert [e.version_id for e in entries] == ["dm1", "v1"]


# ---------------------------------------------------------------------------
# Versioning status
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "response, expected",
    [
        ({"Status": "Enabled"}, True),
        ({"Status": "Suspended"}, False),
        ({}, False),
        ({"Status": "enabled"}, False),
    ],
)
def test_is_versioning_enabled_only_for_exact_enabled(storage, mock_client, response, expected):
    mock_client.get_bucket_versioning.return_value = response
    assert storage.is_versioning_enabled() is expected


def test_versioning_status_keeps_raw_value(storage, mock_client):
    mock_client.get_bucket_versioning.return_value = {"Status": "Suspended"}

    status = storage.versioning_status()

    assert status.enabled is False
    assert status.status == "Suspended"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_client_error_is_wrapped_with_cause(storage, mock_client):
    original = client_error("NoSuchKey", 404)
    mock_client.get_object.side_effect = original

    with pytest.raises(StorageBackendError) as exc_info:
        storage.get("missing.txt")

    err = exc_info.value
    assert err.__cause__ is original
    assert err.operation == "get"
    assert err.key == "missing.txt"
    assert err.error_code == "NoSuchKey"
    assert err.http_status == 404


def test_connection_error_is_wrapped(storage, mock_client):
    mock_client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://gateway.test")

    with pytest.raises(StorageBackendError) as exc_info:
        storage.put("a.txt", b"x")

    assert exc_info.value.error_code is None
    assert isinstance(exc_info.value.__cause__, EndpointConnectionError)


def test_backend_called_exactly_once_on_failure(storage, mock_client):
    mock_client.delete_object.side_effect = client_error("InternalError", 500, "DeleteObject")

    with pytest.raises(StorageBackendError):
        storage.delete_version("a.txt", "v1")

    assert mock_client.delete_object.call_count == 1


def test_failure_is_logged_at_error_level(storage, mock_client):
    mock_client.head_bucket.side_effect = client_error("403", 403, "HeadBucket")

    with patch("bucket_versioning.storage.s3.logger") as mock_logger:
        with pytest.raises(StorageBackendError):
            storage.check_bucket()

    mock_logger.error.assert_called_once()
    assert mock_logger.error.call_args[0][0] == "check_bucket_failed"
    assert mock_logger.error.call_args[1]["bucket"] == BUCKET


def test_success_logs_before_and_after(storage, mock_client):
    mock_client.get_object.return_value = {"Body": io.BytesIO(b"x")}

    with patch("bucket_versioning.storage.s3.logger") as mock_logger:
        storage.get_version("a.txt", "v1")

    events = [c[0][0] for c in mock_logger.info.call_args_list]
    assert events == ["get_version_started", "get_version_succeeded"]
    assert mock_logger.info.call_args[1]["version_id"] == "v1"


def test_malformed_response_is_logged_counted_and_reraised(storage, mock_client):
    mock_client.get_object.return_value = {"ContentType": "text/plain"}
    errors_before = REGISTRY.get_sample_value(
        "storage_operations_total", {"operation": "get", "status": "error"}
    ) or 0.0

    with patch("bucket_versioning.storage.s3.logger") as mock_logger:
        with pytest.raises(KeyError):
            storage.get("a.txt")

    assert mock_logger.error.call_args[0][0] == "get_failed"
    assert mock_logger.error.call_args[1]["error_type"] == "KeyError"
    assert "get_succeeded" not in [c[0][0] for c in mock_logger.info.call_args_list]
    assert REGISTRY.get_sample_value(
        "storage_operations_total", {"operation": "get", "status": "error"}
    ) == errors_before + 1


def test_invalid_listing_entry_is_not_wrapped(storage, mock_client):
    _paginate(mock_client, {"Versions": [{"VersionId": "v1", "LastModified": T1}]})

    with patch("bucket_versioning.storage.s3.logger") as mock_logger:
        with pytest.raises(KeyError):
            storage.list_all_versions()

    assert mock_logger.error.call_args[0][0] == "list_all_versions_failed"
