"""Tests for the S3 storage backend."""

import boto3
import pytest
from moto import mock_aws

from poster_pipeline.config import PipelineSettings
from poster_pipeline.exceptions.server_errors import StorageError
from poster_pipeline.storage.s3 import S3StorageBackend

_BUCKET = "test-posters"
_REGION = "us-east-1"


@pytest.fixture()
def s3_client(monkeypatch):
    """Create a mock S3 bucket and return a client for it."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    with mock_aws():
        client = boto3.client("s3", region_name=_REGION)
        client.create_bucket(Bucket=_BUCKET)
        yield client


class TestS3Upload:
    @pytest.mark.asyncio
    async def test_upload_stores_bytes(self, s3_client):
        backend = S3StorageBackend(_BUCKET, client=s3_client)
        await backend.upload(b"\xff\xd8jpeg", "event_posters/e1/poster.jpg", {})
        stored = s3_client.get_object(Bucket=_BUCKET, Key="event_posters/e1/poster.jpg")
        assert stored["Body"].read() == b"\xff\xd8jpeg"
        assert stored["ContentType"] == "image/jpeg"

    @pytest.mark.asyncio
    async def test_upload_stores_metadata(self, s3_client):
        backend = S3StorageBackend(_BUCKET, client=s3_client)
        await backend.upload(b"data", "p.jpg", {"quality_tier": "excellent", "final_size_bytes": "4"})
        stored = s3_client.head_object(Bucket=_BUCKET, Key="p.jpg")
        assert stored["Metadata"] == {"quality_tier": "excellent", "final_size_bytes": "4"}

    @pytest.mark.asyncio
    async def test_returns_virtual_hosted_locator(self, s3_client):
        backend = S3StorageBackend(_BUCKET, region_name=_REGION, client=s3_client)
        locator = await backend.upload(b"data", "event_posters/e 1/poster.jpg", {})
        assert locator == "https://test-posters.s3.us-east-1.amazonaws.com/event_posters/e%201/poster.jpg"

    @pytest.mark.asyncio
    async def test_returns_public_base_url_locator(self, s3_client):
        backend = S3StorageBackend(_BUCKET, public_base_url="https://cdn.example.com/", client=s3_client)
        locator = await backend.upload(b"data", "p.jpg", {})
        assert locator == "https://cdn.example.com/p.jpg"

    @pytest.mark.asyncio
    async def test_reports_progress(self, s3_client):
        backend = S3StorageBackend(_BUCKET, client=s3_client)
        reported = []
        await backend.upload(b"x" * 2048, "p.jpg", {}, progress=reported.append)
        assert reported
        assert reported[-1] == 1.0
        assert reported == sorted(reported)

    @pytest.mark.asyncio
    async def test_missing_bucket_raises_storage_error(self, s3_client):
        backend = S3StorageBackend("no-such-bucket", client=s3_client)
        with pytest.raises(StorageError) as exc_info:
            await backend.upload(b"data", "p.jpg", {})
        assert exc_info.value.context == {"path": "p.jpg", "backend_name": "s3"}


class TestS3Delete:
    @pytest.mark.asyncio
    async def test_delete_removes_object(self, s3_client):
        backend = S3StorageBackend(_BUCKET, client=s3_client)
        await backend.upload(b"data", "p.jpg", {})
        await backend.delete("p.jpg")
        listing = s3_client.list_objects_v2(Bucket=_BUCKET)
        assert listing.get("KeyCount", 0) == 0

    @pytest.mark.asyncio
    async def test_delete_missing_bucket_raises_storage_error(self, s3_client):
        backend = S3StorageBackend("no-such-bucket", client=s3_client)
        with pytest.raises(StorageError):
            await backend.delete("p.jpg")


class TestFromSettings:
    def test_uses_settings(self, s3_client):
        settings = PipelineSettings(
            storage_bucket_name="event-posters",
            aws_region="eu-west-1",
            public_base_url="",
        )
        backend = S3StorageBackend.from_settings(settings)
        assert backend.build_locator("a.jpg") == "https://event-posters.s3.eu-west-1.amazonaws.com/a.jpg"
