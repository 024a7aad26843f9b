"""Upload state machine models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from poster_pipeline.compression.models import CompressionResult
from poster_pipeline.validation.models import ValidationVerdict


class UploadPhase(StrEnum):
    """Phase of a poster upload attempt."""

    IDLE = "idle"
    VALIDATING = "validating"
    COMPRESSING = "compressing"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transitions are possible."""
        return self in _TERMINAL_PHASES

    @property
    def is_active(self) -> bool:
        """Whether an upload in this phase blocks new requests."""
        return self in _ACTIVE_PHASES


_TERMINAL_PHASES: frozenset[UploadPhase] = frozenset(
    {UploadPhase.SUCCEEDED, UploadPhase.FAILED, UploadPhase.CANCELLED}
)
_ACTIVE_PHASES: frozenset[UploadPhase] = frozenset(
    {UploadPhase.VALIDATING, UploadPhase.COMPRESSING, UploadPhase.UPLOADING}
)

# Valid phase transitions
VALID_TRANSITIONS: dict[UploadPhase, set[UploadPhase]] = {
    UploadPhase.IDLE: {UploadPhase.VALIDATING, UploadPhase.FAILED, UploadPhase.CANCELLED},
    UploadPhase.VALIDATING: {UploadPhase.COMPRESSING, UploadPhase.FAILED, UploadPhase.CANCELLED},
    UploadPhase.COMPRESSING: {UploadPhase.UPLOADING, UploadPhase.FAILED, UploadPhase.CANCELLED},
    UploadPhase.UPLOADING: {UploadPhase.SUCCEEDED, UploadPhase.FAILED, UploadPhase.CANCELLED},
    UploadPhase.SUCCEEDED: set(),
    UploadPhase.FAILED: set(),
    UploadPhase.CANCELLED: set(),
}


def can_transition(current: UploadPhase, target: UploadPhase) -> bool:
    """Check if an upload phase transition is valid.

    Args:
        current: Current upload phase.
        target: Target upload phase.

    Returns:
        True if the transition is valid.
    """
    return target in VALID_TRANSITIONS.get(current, set())


class CompressionStats(BaseModel):
    """Compression statistics of an upload, without the encoded bytes."""

    model_config = ConfigDict(frozen=True)

    input_size: int
    output_size: int
    quality_used: float
    meets_budget: bool
    savings_percent: float
    attempt_count: int

    @classmethod
    def from_result(cls, result: CompressionResult) -> CompressionStats:
        """Copy the statistics of a compression result."""
        return cls(
            input_size=result.input_size,
            output_size=result.output_size,
            quality_used=result.quality_used,
            meets_budget=result.meets_budget,
            savings_percent=result.savings_percent,
            attempt_count=result.attempt_count,
        )


class UploadResult(BaseModel):
    """Successful outcome of an upload."""

    model_config = ConfigDict(frozen=True)

    locator: str
    path: str
    metadata: dict[str, str] = Field(default_factory=dict)
    duration_seconds: float = Field(ge=0.0)


class UploadState(BaseModel):
    """Immutable snapshot of an orchestrator's upload attempt.

    The orchestrator replaces its snapshot on every transition, so a
    snapshot handed to an observer never changes afterwards.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    upload_id: str = ""
    destination_id: str = ""
    phase: UploadPhase = UploadPhase.IDLE
    progress: float = Field(default=0.0, ge=0.0, le=1.0)
    result: UploadResult | None = None
    error: BaseException | None = None
    verdict: ValidationVerdict | None = None
    compression: CompressionStats | None = None

    @property
    def is_terminal(self) -> bool:
        """Whether the attempt has finished."""
        return self.phase.is_terminal

    @property
    def is_active(self) -> bool:
        """Whether the attempt is still validating, compressing or uploading."""
        return self.phase.is_active

    @property
    def locator(self) -> str | None:
        """Locator of the stored poster once the upload succeeded."""
        if self.result is None:
            return None
        return self.result.locator
