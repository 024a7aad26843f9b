"""Poster upload orchestration and its state machine."""

from poster_pipeline.upload.models import (
    VALID_TRANSITIONS,
    CompressionStats,
    UploadPhase,
    UploadResult,
    UploadState,
    can_transition,
)
from poster_pipeline.upload.orchestrator import (
    PosterUploadOrchestrator,
    StateObserver,
    UploadHandle,
    build_upload_metadata,
    build_validation_error,
)

__all__ = [
    "CompressionStats",
    "PosterUploadOrchestrator",
    "StateObserver",
    "UploadHandle",
    "UploadPhase",
    "UploadResult",
    "UploadState",
    "VALID_TRANSITIONS",
    "build_upload_metadata",
    "build_validation_error",
    "can_transition",
]
