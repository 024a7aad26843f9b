"""Server-side exceptions: failures inside the pipeline or its collaborators."""

from typing import Any, ClassVar

from poster_pipeline.exceptions.base import PosterPipelineError


class ServerError(PosterPipelineError):
    """Base class for all pipeline-side errors."""

    error_code: ClassVar[str] = "SERVER_ERROR"


class CompressionFailedError(ServerError):
    """The encoder could not produce output for the pixel buffer.

    Raised for corrupt or unsupported pixel data. Not retried internally;
    the caller can recover by supplying a different image.
    """

    error_code: ClassVar[str] = "COMPRESSION_FAILED"
    is_recoverable: ClassVar[bool] = True

    def __init__(
        self,
        message: str,
        *,
        quality: float | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize compression error.

        Args:
            message: Description of the failure.
            quality: Quality level of the encode attempt that failed.
            context: Additional context information.
        """
        context_dict = context or {}
        if quality is not None:
            context_dict["quality"] = quality
        super().__init__(message, context=context_dict)


class StorageError(ServerError):
    """A storage backend operation failed."""

    error_code: ClassVar[str] = "STORAGE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        backend_name: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize storage error.

        Args:
            message: Description of the failure.
            path: Destination path of the failed operation.
            backend_name: Name of the backend that failed.
            context: Additional context information.
        """
        context_dict = context or {}
        if path is not None:
            context_dict["path"] = path
        if backend_name is not None:
            context_dict["backend_name"] = backend_name
        super().__init__(message, context=context_dict)


class ConfigurationError(ServerError):
    """Configuration is invalid or missing."""

    error_code: ClassVar[str] = "CONFIGURATION_ERROR"
