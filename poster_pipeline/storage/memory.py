"""Deterministic in-memory storage backend for tests and local development."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from poster_pipeline.storage.backend import DEFAULT_CONTENT_TYPE, ProgressCallback

logger = logging.getLogger(__name__)

_DEFAULT_PROGRESS_STEPS: int = 4


@dataclass(frozen=True)
class StoredObject:
    """An object held by the in-memory backend."""

    data: bytes
    metadata: dict[str, str]
    content_type: str


@dataclass(frozen=True)
class UploadCall:
    """Record of one upload call, kept whether it succeeded or failed."""

    path: str
    size_bytes: int
    metadata: dict[str, str] = field(default_factory=dict)


class InMemoryStorageBackend:
    """Storage backend holding objects in a dictionary.

    Supports injected failures and artificial latency. Latency is slept in
    ``progress_steps`` equal increments, reporting progress after each one,
    so tests can observe the orchestrator mid-upload.
    """

    def __init__(
        self,
        *,
        bucket_name: str = "posters",
        latency_seconds: float = 0.0,
        progress_steps: int = _DEFAULT_PROGRESS_STEPS,
        fail_with: BaseException | None = None,
        failure_point: float = 0.0,
    ) -> None:
        """Initialize the backend.

        Args:
            bucket_name: Name used in returned locators.
            latency_seconds: Total artificial delay of every upload.
            progress_steps: Number of progress reports per upload.
            fail_with: Exception raised by every upload until cleared.
            failure_point: Fraction of progress steps reported before fail_with is raised.
        """
        if progress_steps < 1:
            error_message = f"progress_steps must be at least 1, got {progress_steps}"
            raise ValueError(error_message)
        self._bucket_name = bucket_name
        self._latency_seconds = latency_seconds
        self._progress_steps = progress_steps
        self._fail_with = fail_with
        self._failure_point = failure_point
        self.objects: dict[str, StoredObject] = {}
        self.upload_calls: list[UploadCall] = []
        self.deleted_paths: list[str] = []

    @property
    def upload_count(self) -> int:
        """Number of upload calls received, including failed ones."""
        return len(self.upload_calls)

    def inject_failure(self, error: BaseException, *, failure_point: float = 0.0) -> None:
        """Make subsequent uploads raise error after failure_point of their progress."""
        self._fail_with = error
        self._failure_point = failure_point

    def clear_failure(self) -> None:
        """Make subsequent uploads succeed again."""
        self._fail_with = None
        self._failure_point = 0.0

    def set_latency(self, latency_seconds: float) -> None:
        """Change the artificial delay of subsequent uploads."""
        self._latency_seconds = latency_seconds

    def build_locator(self, path: str, size_bytes: int) -> str:
        """Return the locator for an object stored at path."""
        return f"memory://{self._bucket_name}/{path}?size={size_bytes}"

    async def upload(
        self,
        data: bytes,
        path: str,
        metadata: Mapping[str, str],
        *,
        content_type: str = DEFAULT_CONTENT_TYPE,
        progress: ProgressCallback | None = None,
    ) -> str:
        """Store the bytes after the configured latency, or raise the injected failure."""
        self.upload_calls.append(UploadCall(path=path, size_bytes=len(data), metadata=dict(metadata)))
        logger.debug("In-memory upload started (path=%s, size=%d)", path, len(data))

        failing_step = None
        if self._fail_with is not None:
            failing_step = int(self._progress_steps * self._failure_point)

        step_delay = self._latency_seconds / self._progress_steps
        for step in range(1, self._progress_steps + 1):
            await asyncio.sleep(step_delay)
            reached_failure = failing_step is not None and step > failing_step
            if progress is not None and not reached_failure:
                progress(step / self._progress_steps)

        if self._fail_with is not None:
            logger.debug("In-memory upload failing with injected error (path=%s)", path)
            raise self._fail_with

        self.objects[path] = StoredObject(
            data=bytes(data),
            metadata=dict(metadata),
            content_type=content_type,
        )
        return self.build_locator(path, len(data))

    async def delete(self, path: str) -> None:
        """Remove the object at path if present."""
        await asyncio.sleep(0)
        self.deleted_paths.append(path)
        self.objects.pop(path, None)
