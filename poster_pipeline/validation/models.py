"""Validation verdict models."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class QualityTier(StrEnum):
    """Coarse fitness classification of a poster by pixel width."""

    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    REJECTED = "rejected"


class FailureKind(StrEnum):
    """Policy check that an image failed."""

    RESOLUTION_TOO_LOW = "resolution_too_low"
    ASPECT_RATIO_MISMATCH = "aspect_ratio_mismatch"
    FILE_SIZE_TOO_LARGE = "file_size_too_large"


class FailureReason(BaseModel):
    """One failed policy check with the values needed to explain it."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    actual_value: str
    required_value: str
    message: str


class ValidationVerdict(BaseModel):
    """Outcome of validating a poster image against a policy."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    quality_tier: QualityTier
    failure_reasons: tuple[FailureReason, ...] = Field(default=())
    advisories: tuple[FailureReason, ...] = Field(default=())
    quality_feedback: str = ""

    @property
    def failure_kinds(self) -> tuple[FailureKind, ...]:
        """Kinds of the failure reasons, in check order."""
        return tuple(reason.kind for reason in self.failure_reasons)

    @property
    def messages(self) -> list[str]:
        """Failure messages ready for display, in check order."""
        return [reason.message for reason in self.failure_reasons]
