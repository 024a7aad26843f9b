"""Lossy encode primitives used by the compressor."""

from __future__ import annotations

import io
from typing import Protocol

from PIL import Image

_JPEG_FORMAT: str = "JPEG"
_JPEG_NATIVE_MODES: frozenset[str] = frozenset({"L", "RGB", "CMYK"})
# Pillow discourages JPEG quality above 95: files grow with no visible gain.
_MAX_JPEG_QUALITY: int = 95
_MIN_JPEG_QUALITY: int = 1


class ImageEncoder(Protocol):
    """Encodes a pixel buffer to a lossy format at a quality in (0, 1]."""

    @property
    def content_type(self) -> str:
        """MIME type of the encoded bytes."""
        ...

    def encode(self, image: Image.Image, quality: float) -> bytes:
        """Encode the image.

        Raises:
            OSError: If the encoder cannot write the pixel data.
            ValueError: If the image mode cannot be converted.
        """
        ...


class JpegEncoder:
    """Pillow JPEG encoder.

    Output is deterministic for a given image and quality: no timestamps or
    random state are written into the file.
    """

    def __init__(self, *, progressive: bool = False, optimize: bool = True) -> None:
        """Initialize the encoder.

        Args:
            progressive: Write a progressive JPEG (renders coarse-to-fine in browsers).
            optimize: Compute optimal Huffman tables (smaller files, slower encode).
        """
        self._progressive = progressive
        self._optimize = optimize

    @property
    def content_type(self) -> str:
        """MIME type of the encoded bytes."""
        return "image/jpeg"

    def encode(self, image: Image.Image, quality: float) -> bytes:
        """Encode the image as JPEG.

        Modes JPEG cannot store (RGBA, P, LA, ...) are converted to RGB
        first; the source image is never modified.

        Args:
            image: Pixel buffer to encode.
            quality: Quality in (0, 1], mapped onto Pillow's 1-95 scale.

        Returns:
            JPEG bytes.
        """
        if image.mode not in _JPEG_NATIVE_MODES:
            image = image.convert("RGB")

        buffer = io.BytesIO()
        image.save(
            buffer,
            format=_JPEG_FORMAT,
            quality=to_jpeg_quality(quality),
            optimize=self._optimize,
            progressive=self._progressive,
        )
        return buffer.getvalue()


def to_jpeg_quality(quality: float) -> int:
    """Map a quality in (0, 1] onto Pillow's integer JPEG quality scale."""
    return max(_MIN_JPEG_QUALITY, min(_MAX_JPEG_QUALITY, round(quality * 100)))
