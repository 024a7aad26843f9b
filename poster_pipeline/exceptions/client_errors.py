"""Client error exceptions: the caller can recover by changing its input."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from poster_pipeline.exceptions.base import PosterPipelineError

if TYPE_CHECKING:
    from poster_pipeline.validation.models import FailureReason, ValidationVerdict


class ClientError(PosterPipelineError):
    """Base class for all errors caused by caller input."""

    error_code: ClassVar[str] = "CLIENT_ERROR"
    is_recoverable: ClassVar[bool] = True


class PosterValidationError(ClientError):
    """Poster image failed resolution, aspect ratio, or file size policy.

    Carries the full verdict so the UI layer can render every failure
    reason verbatim.
    """

    error_code: ClassVar[str] = "VALIDATION_FAILED"

    def __init__(
        self,
        message: str,
        *,
        verdict: ValidationVerdict | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with the verdict that produced it.

        Args:
            message: Description of the validation failure.
            verdict: Verdict whose failure reasons caused the error.
            context: Additional context information.
        """
        context_dict = context or {}
        if verdict is not None:
            context_dict["failure_reasons"] = [
                reason.model_dump(mode="json") for reason in verdict.failure_reasons
            ]
            context_dict["quality_tier"] = verdict.quality_tier.value
        super().__init__(message, context=context_dict)
        self.verdict = verdict

    @property
    def failure_reasons(self) -> tuple[FailureReason, ...]:
        """Return the failure reasons of the attached verdict."""
        if self.verdict is None:
            return ()
        return self.verdict.failure_reasons


class ResolutionTooLowError(PosterValidationError):
    """Image is smaller than the minimum poster resolution."""

    error_code: ClassVar[str] = "RESOLUTION_TOO_LOW"


class AspectRatioMismatchError(PosterValidationError):
    """Image aspect ratio is outside the accepted poster ratios."""

    error_code: ClassVar[str] = "ASPECT_RATIO_MISMATCH"


class FileSizeTooLargeError(PosterValidationError):
    """Image bytes exceed the upload size ceiling."""

    error_code: ClassVar[str] = "FILE_SIZE_TOO_LARGE"

    def __init__(
        self,
        message: str,
        *,
        actual_bytes: int | None = None,
        maximum_bytes: int | None = None,
        verdict: ValidationVerdict | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize file size error with optional byte counts.

        Args:
            message: Description of the failure.
            actual_bytes: Size that exceeded the ceiling.
            maximum_bytes: Configured ceiling.
            verdict: Verdict whose failure reasons caused the error.
            context: Additional context information.
        """
        context_dict = context or {}
        if actual_bytes is not None:
            context_dict["actual_bytes"] = actual_bytes
        if maximum_bytes is not None:
            context_dict["maximum_bytes"] = maximum_bytes
        super().__init__(message, verdict=verdict, context=context_dict)


class ImageDecodeError(ClientError):
    """Input bytes could not be decoded as an image."""

    error_code: ClassVar[str] = "INVALID_IMAGE_FORMAT"


class ConcurrentUploadRejectedError(ClientError):
    """An upload was requested while another is active on the same orchestrator.

    This is a usage error: callers needing concurrent uploads must use
    separate orchestrator instances.
    """

    error_code: ClassVar[str] = "CONCURRENT_UPLOAD_REJECTED"
    is_recoverable: ClassVar[bool] = False

    def __init__(
        self,
        message: str,
        *,
        active_upload_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the rejection with the identifier of the active upload.

        Args:
            message: Description of the rejection.
            active_upload_id: Identifier of the upload already in flight.
            context: Additional context information.
        """
        context_dict = context or {}
        if active_upload_id is not None:
            context_dict["active_upload_id"] = active_upload_id
        super().__init__(message, context=context_dict)
