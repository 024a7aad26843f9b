"""Poster upload orchestration.

Sequences validation, adaptive compression and the storage backend call
for one poster at a time, publishing immutable state snapshots to
observers as the upload moves through its phases:

    idle -> validating -> compressing -> uploading -> succeeded
                 \\             \\             \\
                  +-------------+-------------+--> failed | cancelled

Progress checkpoints: 0.0 on start, 0.2 after validation, 0.2-0.7 across
compression attempts, 0.7 when compression finalizes, 0.7-1.0 following
the backend's transfer progress, 1.0 on success.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
import time
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING

from poster_pipeline.compression.compressor import Compressor
from poster_pipeline.config import get_pipeline_settings, get_policy
from poster_pipeline.exceptions.client_errors import (
    AspectRatioMismatchError,
    ConcurrentUploadRejectedError,
    FileSizeTooLargeError,
    PosterValidationError,
    ResolutionTooLowError,
)
from poster_pipeline.exceptions.server_errors import CompressionFailedError
from poster_pipeline.logging.adapters.upload_adapter import set_upload_context
from poster_pipeline.logging.context import bind_context
from poster_pipeline.upload.models import (
    CompressionStats,
    UploadPhase,
    UploadResult,
    UploadState,
    can_transition,
)
from poster_pipeline.validation.models import FailureKind
from poster_pipeline.validation.validator import describe_quality, validate

if TYPE_CHECKING:
    from collections.abc import Mapping

    from poster_pipeline.compression.models import CompressionAttempt, CompressionResult
    from poster_pipeline.config import PipelineSettings, PosterPolicy
    from poster_pipeline.image.models import ImagePayload
    from poster_pipeline.storage.backend import StorageBackend
    from poster_pipeline.validation.models import ValidationVerdict

logger = logging.getLogger(__name__)

StateObserver = Callable[[UploadState], None]

_PROGRESS_START: float = 0.0
_PROGRESS_VALIDATED: float = 0.2
_PROGRESS_COMPRESSED: float = 0.7
_PROGRESS_COMPLETE: float = 1.0

_VALIDATION_ERRORS: dict[FailureKind, type[PosterValidationError]] = {
    FailureKind.RESOLUTION_TOO_LOW: ResolutionTooLowError,
    FailureKind.ASPECT_RATIO_MISMATCH: AspectRatioMismatchError,
    FailureKind.FILE_SIZE_TOO_LARGE: FileSizeTooLargeError,
}


class UploadHandle:
    """Caller-side handle on one upload attempt.

    The handle keeps the latest snapshot of its own attempt, so it stays
    meaningful after the orchestrator has moved on to a newer upload.
    """

    def __init__(
        self,
        upload_id: str,
        destination_id: str,
        orchestrator: PosterUploadOrchestrator,
        initial_state: UploadState,
    ) -> None:
        self._upload_id = upload_id
        self._destination_id = destination_id
        self._orchestrator = orchestrator
        self._state = initial_state
        self._finished = asyncio.Event()
        self._cancel_requested = threading.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def upload_id(self) -> str:
        """Unique identifier of this upload attempt."""
        return self._upload_id

    @property
    def destination_id(self) -> str:
        """Event identifier the poster is uploaded for."""
        return self._destination_id

    @property
    def state(self) -> UploadState:
        """Latest snapshot of this attempt."""
        return self._state

    @property
    def cancel_requested(self) -> bool:
        """Whether cancel() was accepted for this attempt."""
        return self._cancel_requested.is_set()

    @property
    def task(self) -> asyncio.Task[None] | None:
        """Background task running the pipeline.

        May still be running after the attempt turned cancelled, while a
        backend call already in flight completes.
        """
        return self._task

    def cancel(self) -> bool:
        """Cancel this attempt. See PosterUploadOrchestrator.cancel."""
        return self._orchestrator.cancel(self)

    async def wait(self) -> UploadState:
        """Wait until the attempt reaches a terminal phase.

        Returns:
            The terminal snapshot: succeeded, failed or cancelled.
        """
        await self._finished.wait()
        return self._state

    def _record(self, state: UploadState) -> None:
        self._state = state
        if state.is_terminal:
            self._finished.set()

    def __repr__(self) -> str:
        """Return detailed representation."""
        return (
            f"UploadHandle(upload_id={self._upload_id!r}, "
            f"destination_id={self._destination_id!r}, "
            f"phase={self._state.phase.value!r})"
        )


class PosterUploadOrchestrator:
    """Validates, compresses and uploads one event poster at a time.

    At most one upload is active per instance; a second request while one
    is active is rejected, not queued. Independent instances share no
    mutable state and may run in parallel.

    Observers are called on the event loop thread with every new snapshot.
    Validation and compression run on worker threads; their progress is
    marshalled back onto the loop.
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        policy: PosterPolicy | None = None,
        settings: PipelineSettings | None = None,
        compressor: Compressor | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            backend: Storage backend receiving the compressed poster.
            policy: Validation and compression policy. Defaults to the cached policy.
            settings: Pipeline settings. Defaults to the cached settings.
            compressor: Compressor to use. Defaults to a Pillow JPEG compressor.
        """
        self._backend = backend
        self._policy = policy or get_policy()
        self._settings = settings or get_pipeline_settings()
        self._compressor = compressor or Compressor()
        self._lock = threading.Lock()
        self._state = UploadState()
        self._observers: list[StateObserver] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def state(self) -> UploadState:
        """Snapshot of the current (or most recent) upload attempt."""
        return self._state

    @property
    def is_active(self) -> bool:
        """Whether an upload is currently validating, compressing or uploading."""
        return self._state.is_active

    @property
    def policy(self) -> PosterPolicy:
        """Default policy applied to uploads."""
        return self._policy

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Register an observer for phase and progress changes.

        Args:
            observer: Called with every new snapshot. Exceptions it raises are
                logged and otherwise ignored.

        Returns:
            A callable that unsubscribes the observer.
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def request_upload(
        self,
        image: ImagePayload,
        destination_id: str,
        metadata: Mapping[str, str] | None = None,
        *,
        policy: PosterPolicy | None = None,
    ) -> UploadHandle:
        """Start uploading a poster and return immediately.

        Must be called from a running event loop. The state is reset to a
        fresh idle attempt, moved to validating, and the remaining work runs
        as a background task.

        Args:
            image: Decoded poster image.
            destination_id: Event identifier; determines the storage path.
            metadata: Caller metadata passed through to the backend.
            policy: Policy override for this upload only.

        Returns:
            Handle to wait on or cancel the upload.

        Raises:
            ConcurrentUploadRejectedError: If another upload is active on this instance.
            RuntimeError: If no event loop is running.
        """
        loop = asyncio.get_running_loop()
        upload_id = uuid.uuid4().hex

        with self._lock:
            if self._state.is_active:
                logger.warning(
                    "Rejected upload for %s: upload %s is still %s",
                    destination_id,
                    self._state.upload_id,
                    self._state.phase,
                )
                raise ConcurrentUploadRejectedError(
                    "Another poster upload is already in progress on this orchestrator",
                    active_upload_id=self._state.upload_id,
                )

            idle_state = UploadState(
                upload_id=upload_id,
                destination_id=destination_id,
                phase=UploadPhase.IDLE,
                progress=_PROGRESS_START,
            )
            validating_state = idle_state.model_copy(update={"phase": UploadPhase.VALIDATING})
            handle = UploadHandle(upload_id, destination_id, self, idle_state)
            self._state = validating_state
            self._loop = loop

        logger.info("Poster upload %s requested for %s", upload_id, destination_id)
        self._publish(handle, idle_state)
        self._publish(handle, validating_state)

        handle._task = loop.create_task(
            self._run_upload(handle, image, dict(metadata or {}), policy or self._policy),
            name=f"poster-upload-{upload_id}",
        )
        handle._task.add_done_callback(functools.partial(self._on_task_done, handle))
        return handle

    def cancel(self, handle: UploadHandle) -> bool:
        """Cancel an upload that has not reached a terminal phase.

        The state turns cancelled immediately and no further progress is
        published. If the backend call has not started it never will; if it
        is in flight it is allowed to finish and its result is discarded.
        Safe to call from any thread; observers are still notified on the
        event loop.

        Args:
            handle: Handle returned by request_upload.

        Returns:
            True if the upload was cancelled, False if it had already finished
            or belongs to a superseded attempt.
        """
        with self._lock:
            if self._state.upload_id != handle.upload_id or self._state.is_terminal:
                return False
            handle._cancel_requested.set()
            cancelled_state = self._state.model_copy(update={"phase": UploadPhase.CANCELLED})
            self._state = cancelled_state

        logger.info(
            "Poster upload %s cancelled at %.0f%%",
            handle.upload_id,
            cancelled_state.progress * 100,
        )
        loop = self._loop
        if loop is None or _is_running_on(loop):
            self._publish(handle, cancelled_state)
        elif not loop.is_closed():
            loop.call_soon_threadsafe(self._publish, handle, cancelled_state)
        return True

    def validate_only(self, image: ImagePayload, *, policy: PosterPolicy | None = None) -> ValidationVerdict:
        """Validate an image without uploading it, e.g. to warn before submit.

        The raw file size is advisory, as it is during an upload.
        """
        return validate(image, image.byte_size, policy or self._policy, enforce_file_size=False)

    def quality_feedback(self, image: ImagePayload, *, policy: PosterPolicy | None = None) -> str:
        """Return the display label for the image's quality tier."""
        return describe_quality(self.validate_only(image, policy=policy).quality_tier)

    async def delete_poster(self, destination_id: str) -> None:
        """Delete the stored poster of an event.

        Backend errors propagate unchanged.
        """
        path = self._settings.build_poster_path(destination_id)
        with bind_context(destination_id=destination_id):
            await self._backend.delete(path)
            logger.info("Deleted poster at %s", path)

    async def _run_upload(
        self,
        handle: UploadHandle,
        image: ImagePayload,
        caller_metadata: dict[str, str],
        policy: PosterPolicy,
    ) -> None:
        """Run the pipeline for one attempt, recording any failure on its state."""
        set_upload_context(handle.upload_id, handle.destination_id)
        try:
            await self._execute(handle, image, caller_metadata, policy)
        except asyncio.CancelledError:
            self.cancel(handle)
            raise
        except Exception as error:
            logger.exception("Poster upload %s failed unexpectedly", handle.upload_id)
            self._fail(handle, error)

    async def _execute(
        self,
        handle: UploadHandle,
        image: ImagePayload,
        caller_metadata: dict[str, str],
        policy: PosterPolicy,
    ) -> None:
        started_at = time.monotonic()

        if handle.cancel_requested:
            return

        verdict = await asyncio.to_thread(
            validate,
            image,
            image.byte_size,
            policy,
            enforce_file_size=False,
        )
        if handle.cancel_requested:
            return
        if not verdict.is_valid:
            self._fail(handle, build_validation_error(verdict), verdict=verdict)
            return
        for advisory in verdict.advisories:
            logger.info("Poster upload %s advisory: %s", handle.upload_id, advisory.message)

        self._transition(
            handle,
            UploadPhase.COMPRESSING,
            progress=_PROGRESS_VALIDATED,
            verdict=verdict,
        )

        def report_attempt(attempt: CompressionAttempt) -> None:
            fraction = attempt.attempt_number / policy.max_compression_attempts
            band = _PROGRESS_COMPRESSED - _PROGRESS_VALIDATED
            self._post_progress(handle, _PROGRESS_VALIDATED + band * fraction)

        try:
            compression = await asyncio.to_thread(
                self._compressor.compress,
                image,
                policy.max_bytes,
                policy.default_quality,
                policy=policy,
                on_attempt=report_attempt,
            )
        except CompressionFailedError as error:
            self._fail(handle, error)
            return
        if handle.cancel_requested:
            return

        if not compression.meets_budget and not self._settings.accept_budget_shortfall:
            self._fail(
                handle,
                FileSizeTooLargeError(
                    "Image file size is too large even at the lowest compression quality",
                    actual_bytes=compression.output_size,
                    maximum_bytes=policy.max_bytes,
                ),
                compression=CompressionStats.from_result(compression),
            )
            return

        path = self._settings.build_poster_path(handle.destination_id)
        upload_metadata = build_upload_metadata(caller_metadata, image, verdict, compression)

        self._transition(
            handle,
            UploadPhase.UPLOADING,
            progress=_PROGRESS_COMPRESSED,
            compression=CompressionStats.from_result(compression),
        )
        if handle.cancel_requested:
            return

        def report_transfer(fraction: float) -> None:
            band = _PROGRESS_COMPLETE - _PROGRESS_COMPRESSED
            clamped = min(max(fraction, 0.0), 1.0)
            self._post_progress(handle, _PROGRESS_COMPRESSED + band * clamped)

        try:
            locator = await self._backend.upload(
                compression.output_bytes,
                path,
                upload_metadata,
                content_type=self._compressor.content_type,
                progress=report_transfer,
            )
        except Exception as error:
            if handle.cancel_requested:
                logger.info(
                    "Discarding backend failure of cancelled upload %s: %s",
                    handle.upload_id,
                    error,
                )
                return
            logger.warning("Storage backend failed for upload %s: %r", handle.upload_id, error)
            self._fail(handle, error)
            return

        if handle.cancel_requested:
            logger.info("Discarding result of cancelled upload %s (locator=%s)", handle.upload_id, locator)
            return

        duration = time.monotonic() - started_at
        result = UploadResult(
            locator=locator,
            path=path,
            metadata=upload_metadata,
            duration_seconds=duration,
        )
        self._transition(handle, UploadPhase.SUCCEEDED, progress=_PROGRESS_COMPLETE, result=result)
        logger.info(
            "Poster upload %s succeeded in %.2fs (locator=%s, size=%d)",
            handle.upload_id,
            duration,
            locator,
            compression.output_size,
        )

    def _transition(
        self,
        handle: UploadHandle,
        phase: UploadPhase,
        *,
        progress: float | None = None,
        **updates: object,
    ) -> bool:
        """Move the attempt to phase, publishing the new snapshot.

        Returns:
            False if the attempt is superseded, already terminal, or the move
            is not allowed by the state machine.
        """
        with self._lock:
            current = self._state
            if current.upload_id != handle.upload_id:
                return False
            if not can_transition(current.phase, phase):
                if not current.is_terminal:
                    logger.warning(
                        "Ignored invalid transition %s -> %s for upload %s",
                        current.phase,
                        phase,
                        handle.upload_id,
                    )
                return False
            changes: dict[str, object] = {"phase": phase, **updates}
            if progress is not None:
                changes["progress"] = max(current.progress, progress)
            new_state = current.model_copy(update=changes)
            self._state = new_state

        logger.debug("Upload %s -> %s (%.2f)", handle.upload_id, phase, new_state.progress)
        self._publish(handle, new_state)
        return True

    def _fail(self, handle: UploadHandle, error: BaseException, **updates: object) -> None:
        if self._transition(handle, UploadPhase.FAILED, error=error, **updates):
            logger.warning(
                "Poster upload %s failed: %s",
                handle.upload_id,
                error,
            )

    def _on_task_done(self, handle: UploadHandle, task: asyncio.Task[None]) -> None:
        # A task cancelled before its first step never enters _run_upload.
        if task.cancelled():
            self.cancel(handle)

    def _post_progress(self, handle: UploadHandle, progress: float) -> None:
        """Report progress from any thread; it is applied on the event loop."""
        loop = self._loop
        if loop is None:
            return
        if _is_running_on(loop):
            self._advance(handle, progress)
        elif not loop.is_closed():
            loop.call_soon_threadsafe(self._advance, handle, progress)

    def _advance(self, handle: UploadHandle, progress: float) -> None:
        with self._lock:
            current = self._state
            if current.upload_id != handle.upload_id or current.is_terminal:
                return
            new_progress = min(max(current.progress, progress), _PROGRESS_COMPLETE)
            if new_progress == current.progress:
                return
            new_state = current.model_copy(update={"progress": new_progress})
            self._state = new_state

        self._publish(handle, new_state)

    def _publish(self, handle: UploadHandle, state: UploadState) -> None:
        handle._record(state)
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception:
                logger.exception(
                    "Error in upload observer for upload %s",
                    state.upload_id,
                )


def _is_running_on(loop: asyncio.AbstractEventLoop) -> bool:
    """Whether the calling thread is currently running ``loop``."""
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False


def build_validation_error(verdict: ValidationVerdict) -> PosterValidationError:
    """Build the error for a failed verdict, typed by its first failure reason.

    A verdict can be invalid with no failure reasons when only the quality
    tier is rejected; that yields a plain PosterValidationError.
    """
    if not verdict.failure_reasons:
        return PosterValidationError(
            f"Image quality is too low ({verdict.quality_feedback}). "
            "Please select a higher quality image.",
            verdict=verdict,
        )

    first_reason = verdict.failure_reasons[0]
    error_class = _VALIDATION_ERRORS[first_reason.kind]
    message = " ".join(verdict.messages)
    return error_class(message, verdict=verdict)


def build_upload_metadata(
    caller_metadata: Mapping[str, str],
    image: ImagePayload,
    verdict: ValidationVerdict,
    compression: CompressionResult,
) -> dict[str, str]:
    """Merge caller metadata with the pipeline's entries; pipeline entries win."""
    pipeline_entries = {
        "final_size_bytes": str(compression.output_size),
        "quality_tier": verdict.quality_tier.value,
        "quality_used": f"{compression.quality_used:.3f}",
        "meets_budget": str(compression.meets_budget).lower(),
        "savings_percent": f"{compression.savings_percent:.1f}",
        "original_width": str(image.width),
        "original_height": str(image.height),
    }
    return {**caller_metadata, **pipeline_entries}
