"""Shared fixtures: an in-memory versioned bucket behind the real adapter."""
import pytest
from fastapi.testclient import TestClient

from bucket_versioning.service import BucketVersioningService
from bucket_versioning.storage.s3 import StorjStorageAdapter
from tests.fakes import BUCKET, FakeS3Client


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def adapter(fake_s3):
    return StorjStorageAdapter(
        access_key="test-access-key",
        secret_key="test-secret-key",
        endpoint="https://gateway.test",
        bucket=BUCKET,
        client=fake_s3,
    )


@pytest.fixture
def service(adapter):
    return BucketVersioningService(adapter)


@pytest.fixture
def api_client(service):
    """TestClient wired to the fake-backed service; lifespan is not run."""
    from bucket_versioning.main import app
    from bucket_versioning.api.routes import get_versioning_service

    app.dependency_overrides[get_versioning_service] = lambda: service
    app.state.versioning_service = service
    yield TestClient(app)
    app.dependency_overrides.clear()
    del app.state.versioning_service
