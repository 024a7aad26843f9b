"""Adaptive poster compression.

Encodes a poster at a starting quality and, while the output exceeds the
byte budget, re-encodes at multiplicatively reduced quality. The loop is
bounded by the policy's attempt cap and quality floor, so compression
always terminates; running out of attempts is reported through
``meets_budget`` rather than raised.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from PIL import Image

from poster_pipeline.compression.encoder import JpegEncoder
from poster_pipeline.compression.models import CompressionAttempt, CompressionResult
from poster_pipeline.config import get_policy
from poster_pipeline.exceptions.server_errors import CompressionFailedError

if TYPE_CHECKING:
    from collections.abc import Callable

    from poster_pipeline.compression.encoder import ImageEncoder
    from poster_pipeline.config import PosterPolicy
    from poster_pipeline.image.models import ImagePayload

logger = logging.getLogger(__name__)


class Compressor:
    """Adaptive compressor that searches for an encoding within a byte budget.

    Holds no per-call state, so one instance may serve several
    orchestrators and threads.
    """

    def __init__(self, encoder: ImageEncoder | None = None) -> None:
        """Initialize the compressor.

        Args:
            encoder: Encode primitive. Defaults to the Pillow JPEG encoder.
        """
        self._encoder = encoder or JpegEncoder()

    @property
    def content_type(self) -> str:
        """MIME type of the bytes this compressor produces."""
        return self._encoder.content_type

    def compress(
        self,
        image: ImagePayload,
        budget: int,
        start_quality: float | None = None,
        *,
        policy: PosterPolicy | None = None,
        max_dimension: int | None = None,
        on_attempt: Callable[[CompressionAttempt], None] | None = None,
    ) -> CompressionResult:
        """Compress an image to fit a byte budget.

        Quality sequence: start_quality, then quality * quality_decay after
        every oversized attempt, never below quality_floor. Stops at the
        first attempt within budget, after max_compression_attempts encodes,
        or once an attempt at the floor has been made.

        Args:
            image: Decoded poster image.
            budget: Maximum acceptable output size in bytes.
            start_quality: Quality of the first attempt. Defaults to the
                policy's default_quality.
            policy: Step-down policy. Defaults to the cached policy.
            max_dimension: Downscale so the longest side is at most this many
                pixels before encoding. Defaults to the policy's max_dimension.
            on_attempt: Called after every encode with the attempt statistics.

        Returns:
            The smallest encoding obtained, flagged with whether it meets the budget.

        Raises:
            CompressionFailedError: If the encoder cannot produce output.
            ValueError: If budget or start_quality is out of range.
        """
        if policy is None:
            policy = get_policy()
        quality = policy.default_quality if start_quality is None else start_quality
        if budget < 1:
            error_message = f"budget must be at least 1 byte, got {budget}"
            raise ValueError(error_message)
        if not 0.0 < quality <= 1.0:
            error_message = f"start_quality must be in (0, 1], got {quality}"
            raise ValueError(error_message)

        source = _downscale(image.image, max_dimension or policy.max_dimension)

        attempts: list[CompressionAttempt] = []
        best_bytes: bytes | None = None
        best_quality = quality
        attempt_number = 0

        while attempt_number < policy.max_compression_attempts:
            attempt_number += 1
            encoded = self._encode(source, quality)

            attempt = CompressionAttempt(
                attempt_number=attempt_number,
                quality=quality,
                output_size=len(encoded),
            )
            attempts.append(attempt)
            logger.debug(
                "Compression attempt %d/%d at quality %.3f: %d bytes (budget=%d)",
                attempt_number,
                policy.max_compression_attempts,
                quality,
                len(encoded),
                budget,
            )
            if on_attempt is not None:
                on_attempt(attempt)

            if best_bytes is None or len(encoded) < len(best_bytes):
                best_bytes = encoded
                best_quality = quality

            if len(encoded) <= budget or quality <= policy.quality_floor:
                break

            quality = max(quality * policy.quality_decay, policy.quality_floor)

        if best_bytes is None:
            raise CompressionFailedError("Failed to compress image: no encode attempt was made")

        output_size = len(best_bytes)
        result = CompressionResult(
            output_bytes=best_bytes,
            output_size=output_size,
            input_size=image.byte_size,
            quality_used=best_quality,
            meets_budget=output_size <= budget,
            savings_percent=calculate_savings_percent(image.byte_size, output_size),
            output_width=source.width,
            output_height=source.height,
            attempts=tuple(attempts),
        )

        if result.meets_budget:
            logger.info(
                "Compressed poster %s -> %s (%s, quality=%.3f, attempts=%d)",
                result.readable_input_size,
                result.readable_output_size,
                result.summary(),
                result.quality_used,
                result.attempt_count,
            )
        else:
            logger.warning(
                "Poster compression did not meet budget: best %d bytes > %d bytes "
                "after %d attempts (quality=%.3f)",
                output_size,
                budget,
                result.attempt_count,
                result.quality_used,
            )

        return result

    def _encode(self, source: Image.Image, quality: float) -> bytes:
        """Run one encode call, converting encoder faults to CompressionFailedError."""
        try:
            encoded = self._encoder.encode(source, quality)
        except (OSError, ValueError) as error:
            logger.warning("Encoder failed at quality %.3f: %s", quality, error)
            raise CompressionFailedError(
                f"Failed to compress image: {error}",
                quality=quality,
            ) from error

        if not encoded:
            raise CompressionFailedError(
                "Failed to compress image: encoder produced no output",
                quality=quality,
            )
        return encoded


def calculate_savings_percent(input_size: int, output_size: int) -> float:
    """Return the size reduction in percent, clamped to [0, 100]."""
    if input_size <= 0:
        return 0.0
    savings = (input_size - output_size) / input_size * 100
    return max(0.0, savings)


def _downscale(image: Image.Image, max_dimension: int | None) -> Image.Image:
    """Shrink so the longest side is at most max_dimension; never upscales."""
    if max_dimension is None or max(image.width, image.height) <= max_dimension:
        return image

    resized = image.copy()
    resized.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
    logger.debug(
        "Downscaled poster from %dx%d to %dx%d",
        image.width,
        image.height,
        resized.width,
        resized.height,
    )
    return resized
