"""Poster pipeline exception hierarchy.

Architecture:
    PosterPipelineError (base)
    ├── ClientError
    │   ├── PosterValidationError
    │   │   ├── ResolutionTooLowError
    │   │   ├── AspectRatioMismatchError
    │   │   └── FileSizeTooLargeError
    │   ├── ImageDecodeError
    │   └── ConcurrentUploadRejectedError
    └── ServerError
        ├── CompressionFailedError
        ├── StorageError
        └── ConfigurationError

Usage:
    from poster_pipeline.exceptions import PosterValidationError

    state = await handle.wait()
    if isinstance(state.error, PosterValidationError):
        for reason in state.error.failure_reasons:
            render(reason.message)
"""

from poster_pipeline.exceptions.base import PosterPipelineError
from poster_pipeline.exceptions.client_errors import (
    AspectRatioMismatchError,
    ClientError,
    ConcurrentUploadRejectedError,
    FileSizeTooLargeError,
    ImageDecodeError,
    PosterValidationError,
    ResolutionTooLowError,
)
from poster_pipeline.exceptions.server_errors import (
    CompressionFailedError,
    ConfigurationError,
    ServerError,
    StorageError,
)

__all__ = [
    "AspectRatioMismatchError",
    "ClientError",
    "CompressionFailedError",
    "ConcurrentUploadRejectedError",
    "ConfigurationError",
    "FileSizeTooLargeError",
    "ImageDecodeError",
    "PosterPipelineError",
    "PosterValidationError",
    "ResolutionTooLowError",
    "ServerError",
    "StorageError",
]
