"""Poster image validation against resolution, aspect ratio and size policy.

Every function here is a pure function of its arguments and the policy:
no I/O, no shared mutable state, safe to call from any thread.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from poster_pipeline.config import get_policy
from poster_pipeline.formatting import format_byte_count, format_dimensions
from poster_pipeline.validation.models import (
    FailureKind,
    FailureReason,
    QualityTier,
    ValidationVerdict,
)

if TYPE_CHECKING:
    from poster_pipeline.config import PosterPolicy
    from poster_pipeline.image.models import ImagePayload

logger = logging.getLogger(__name__)

# Absorbs float rounding so a ratio exactly on the tolerance boundary passes.
_ASPECT_COMPARISON_SLACK: float = 1e-9

_QUALITY_FEEDBACK: dict[QualityTier, str] = {
    QualityTier.EXCELLENT: "Excellent quality",
    QualityTier.GOOD: "Good quality",
    QualityTier.ACCEPTABLE: "Acceptable quality",
    QualityTier.REJECTED: "Low quality",
}


def validate(
    image: ImagePayload,
    raw_byte_size: int,
    policy: PosterPolicy | None = None,
    *,
    enforce_file_size: bool = True,
) -> ValidationVerdict:
    """Validate a poster image and classify its quality.

    Checks run in a fixed order (resolution, aspect ratio, file size) and
    every failing check contributes one reason, so callers can show all
    problems at once. The quality tier is computed regardless of failures.

    Args:
        image: Decoded poster image.
        raw_byte_size: Size of the image bytes before compression.
        policy: Policy to validate against. Defaults to the cached policy.
        enforce_file_size: When False, an oversized file is recorded as an
            advisory instead of a failure, because compression may still
            bring it under the budget.

    Returns:
        A verdict that is valid iff no check failed and the tier is not rejected.
    """
    if policy is None:
        policy = get_policy()

    failure_reasons: list[FailureReason] = []
    advisories: list[FailureReason] = []

    resolution_failure = check_resolution(image.width, image.height, policy)
    if resolution_failure is not None:
        failure_reasons.append(resolution_failure)

    aspect_failure = check_aspect_ratio(image.width, image.height, policy)
    if aspect_failure is not None:
        failure_reasons.append(aspect_failure)

    size_failure = check_file_size(raw_byte_size, policy)
    if size_failure is not None:
        if enforce_file_size:
            failure_reasons.append(size_failure)
        else:
            advisories.append(size_failure)

    quality_tier = classify_quality(image.width, policy)
    is_valid = not failure_reasons and quality_tier != QualityTier.REJECTED

    logger.debug(
        "Validated %s image (%d bytes): valid=%s tier=%s failures=%d",
        format_dimensions(image.width, image.height),
        raw_byte_size,
        is_valid,
        quality_tier,
        len(failure_reasons),
    )

    return ValidationVerdict(
        is_valid=is_valid,
        quality_tier=quality_tier,
        failure_reasons=tuple(failure_reasons),
        advisories=tuple(advisories),
        quality_feedback=describe_quality(quality_tier),
    )


def check_resolution(width: int, height: int, policy: PosterPolicy) -> FailureReason | None:
    """Check both dimensions against the policy minimum.

    Returns:
        A RESOLUTION_TOO_LOW reason, or None if the image is large enough.
    """
    if width >= policy.min_width and height >= policy.min_height:
        return None

    actual = format_dimensions(width, height)
    required = format_dimensions(policy.min_width, policy.min_height)
    return FailureReason(
        kind=FailureKind.RESOLUTION_TOO_LOW,
        actual_value=actual,
        required_value=required,
        message=(
            f"Image resolution is too low. Current: {actual} pixels. "
            f"Required: {required} pixels. Please select a higher quality image."
        ),
    )


def check_aspect_ratio(width: int, height: int, policy: PosterPolicy) -> FailureReason | None:
    """Check the width/height ratio against every accepted ratio.

    A ratio is accepted when its relative deviation from any accepted ratio
    is at most ``policy.aspect_tolerance``.

    Returns:
        An ASPECT_RATIO_MISMATCH reason, or None if some ratio matches.
    """
    actual_ratio = width / height
    if any(
        is_within_tolerance(actual_ratio, target_ratio, policy.aspect_tolerance)
        for target_ratio in policy.accepted_aspect_ratios
    ):
        return None

    accepted = " or ".join(f"{ratio:.3f}" for ratio in policy.accepted_aspect_ratios)
    required = f"{accepted} (±{policy.aspect_tolerance:.0%})"
    return FailureReason(
        kind=FailureKind.ASPECT_RATIO_MISMATCH,
        actual_value=f"{actual_ratio:.3f}",
        required_value=required,
        message=(
            f"Image aspect ratio {actual_ratio:.3f} does not match a poster format. "
            f"Accepted width/height ratios: {required}. Please crop the image."
        ),
    )


def check_file_size(raw_byte_size: int, policy: PosterPolicy) -> FailureReason | None:
    """Check the raw byte size against the upload ceiling.

    Returns:
        A FILE_SIZE_TOO_LARGE reason, or None if the size is within the ceiling.
    """
    if raw_byte_size <= policy.max_bytes:
        return None

    return FailureReason(
        kind=FailureKind.FILE_SIZE_TOO_LARGE,
        actual_value=str(raw_byte_size),
        required_value=str(policy.max_bytes),
        message=(
            f"Image file size is too large. Current: {format_byte_count(raw_byte_size)}. "
            f"Maximum: {format_byte_count(policy.max_bytes)}. Please select a smaller image."
        ),
    )


def is_within_tolerance(actual_ratio: float, target_ratio: float, tolerance: float) -> bool:
    """Return whether actual_ratio deviates from target_ratio by at most tolerance (relative)."""
    deviation = abs(actual_ratio - target_ratio) / target_ratio
    return deviation <= tolerance + _ASPECT_COMPARISON_SLACK


def classify_quality(width: int, policy: PosterPolicy) -> QualityTier:
    """Classify a poster by width against the configured tier thresholds."""
    excellent_width, good_width, acceptable_width = policy.quality_tier_thresholds
    if width >= excellent_width:
        return QualityTier.EXCELLENT
    if width >= good_width:
        return QualityTier.GOOD
    if width >= acceptable_width:
        return QualityTier.ACCEPTABLE
    return QualityTier.REJECTED


def describe_quality(tier: QualityTier) -> str:
    """Return the display label for a quality tier."""
    return _QUALITY_FEEDBACK[tier]


def meets_minimum_resolution(image: ImagePayload, policy: PosterPolicy | None = None) -> bool:
    """Return whether the image reaches the minimum poster resolution."""
    if policy is None:
        policy = get_policy()
    return image.width >= policy.min_width and image.height >= policy.min_height


def meets_recommended_resolution(image: ImagePayload, policy: PosterPolicy | None = None) -> bool:
    """Return whether the image reaches the recommended poster resolution."""
    if policy is None:
        policy = get_policy()
    return image.width >= policy.recommended_width and image.height >= policy.recommended_height
