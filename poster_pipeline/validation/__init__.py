"""Poster validation: policy checks and quality classification."""

from poster_pipeline.validation.models import (
    FailureKind,
    FailureReason,
    QualityTier,
    ValidationVerdict,
)
from poster_pipeline.validation.validator import (
    classify_quality,
    describe_quality,
    meets_minimum_resolution,
    meets_recommended_resolution,
    validate,
)

__all__ = [
    "FailureKind",
    "FailureReason",
    "QualityTier",
    "ValidationVerdict",
    "classify_quality",
    "describe_quality",
    "meets_minimum_resolution",
    "meets_recommended_resolution",
    "validate",
]
