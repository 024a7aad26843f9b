"""S3 storage backend for poster uploads."""

from __future__ import annotations

import asyncio
import io
import logging
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError

from poster_pipeline.exceptions.server_errors import StorageError
from poster_pipeline.storage.backend import DEFAULT_CONTENT_TYPE, ProgressCallback

if TYPE_CHECKING:
    from poster_pipeline.config import PipelineSettings

logger = logging.getLogger(__name__)


class S3StorageBackend:
    """Storage backend writing posters to an S3 bucket.

    boto3 is blocking, so every call runs on a worker thread. Transfer
    progress comes from s3transfer's byte-count callback, which fires on
    s3transfer's own threads.
    """

    def __init__(
        self,
        bucket_name: str,
        *,
        region_name: str | None = None,
        public_base_url: str = "",
        client: Any = None,
    ) -> None:
        """Initialize the S3 backend.

        Args:
            bucket_name: S3 bucket name.
            region_name: AWS region of the bucket.
            public_base_url: Base URL for locators, e.g. a CDN in front of the
                bucket. Defaults to the bucket's virtual-hosted S3 URL.
            client: Preconfigured boto3 S3 client.
        """
        self._s3 = client or boto3.client("s3", region_name=region_name)  # type: ignore[call-overload]
        self._bucket_name = bucket_name
        self._region_name = region_name or self._s3.meta.region_name
        self._public_base_url = public_base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> S3StorageBackend:
        """Create a backend for the bucket named in the pipeline settings."""
        return cls(
            bucket_name=settings.storage_bucket_name,
            region_name=settings.aws_region,
            public_base_url=settings.public_base_url,
        )

    def build_locator(self, path: str) -> str:
        """Return the public URL of the object at path."""
        quoted_path = quote(path)
        if self._public_base_url:
            return f"{self._public_base_url}/{quoted_path}"
        return f"https://{self._bucket_name}.s3.{self._region_name}.amazonaws.com/{quoted_path}"

    async def upload(
        self,
        data: bytes,
        path: str,
        metadata: Mapping[str, str],
        *,
        content_type: str = DEFAULT_CONTENT_TYPE,
        progress: ProgressCallback | None = None,
    ) -> str:
        """Upload the bytes to S3 and return the object's public URL.

        Raises:
            StorageError: If S3 rejects the upload.
        """
        return await asyncio.to_thread(
            self._upload_object,
            data,
            path,
            dict(metadata),
            content_type,
            progress,
        )

    async def delete(self, path: str) -> None:
        """Delete the object at path from S3."""
        await asyncio.to_thread(self._delete_object, path)

    def _upload_object(
        self,
        data: bytes,
        path: str,
        metadata: dict[str, str],
        content_type: str,
        progress: ProgressCallback | None,
    ) -> str:
        logger.info(
            "Uploading %d bytes to s3://%s/%s",
            len(data),
            self._bucket_name,
            path,
        )
        callback = _TransferTracker(len(data), progress) if progress is not None else None

        try:
            self._s3.upload_fileobj(
                io.BytesIO(data),
                self._bucket_name,
                path,
                ExtraArgs={"Metadata": metadata, "ContentType": content_type},
                Callback=callback,
            )
        except (S3UploadFailedError, ClientError) as error:
            logger.exception("S3 upload failed for s3://%s/%s", self._bucket_name, path)
            raise StorageError(
                f"S3 upload failed: {error}",
                path=path,
                backend_name="s3",
            ) from error
        return self.build_locator(path)

    def _delete_object(self, path: str) -> None:
        logger.info("Deleting s3://%s/%s", self._bucket_name, path)
        try:
            self._s3.delete_object(
                Bucket=self._bucket_name,
                Key=path,
            )
        except ClientError as error:
            raise StorageError(
                f"S3 delete failed: {error}",
                path=path,
                backend_name="s3",
            ) from error


class _TransferTracker:
    """Converts s3transfer byte-count callbacks into a transferred fraction."""

    def __init__(self, total_bytes: int, progress: ProgressCallback) -> None:
        self._total_bytes = total_bytes
        self._progress = progress
        self._transferred_bytes = 0
        self._lock = threading.Lock()

    def __call__(self, byte_count: int) -> None:
        with self._lock:
            self._transferred_bytes += byte_count
            transferred = self._transferred_bytes
        if self._total_bytes == 0:
            self._progress(1.0)
            return
        self._progress(min(1.0, transferred / self._total_bytes))
