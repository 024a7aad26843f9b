"""Adaptive poster compression."""

from poster_pipeline.compression.compressor import Compressor, calculate_savings_percent
from poster_pipeline.compression.encoder import ImageEncoder, JpegEncoder
from poster_pipeline.compression.models import CompressionAttempt, CompressionResult

__all__ = [
    "CompressionAttempt",
    "CompressionResult",
    "Compressor",
    "ImageEncoder",
    "JpegEncoder",
    "calculate_savings_percent",
]
