"""Decoded poster images."""

from poster_pipeline.image.models import ImagePayload

__all__ = ["ImagePayload"]
