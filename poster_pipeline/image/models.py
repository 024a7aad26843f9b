"""Poster image payload model."""

from __future__ import annotations

import io

from PIL import Image, ImageOps, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict, Field

from poster_pipeline.exceptions.client_errors import ImageDecodeError

_LOSSLESS_SIZE_FORMAT: str = "PNG"
_LOSSLESS_MODES: frozenset[str] = frozenset({"1", "L", "LA", "I", "P", "RGB", "RGBA"})


class ImagePayload(BaseModel):
    """A decoded poster image and the size of the bytes it came from.

    The wrapped Pillow image is a private copy; the pipeline never mutates
    it, so one payload can be validated and compressed any number of times.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    image: Image.Image = Field(repr=False)
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    byte_size: int = Field(ge=0)
    source_format: str | None = None

    @classmethod
    def from_bytes(cls, data: bytes) -> ImagePayload:
        """Decode an image container (JPEG, PNG, HEIF plugins, ...).

        EXIF orientation is applied so that width and height are the
        dimensions the poster is displayed at.

        Args:
            data: Encoded image bytes as supplied by the user.

        Returns:
            Payload whose byte_size is the length of the supplied bytes.

        Raises:
            ImageDecodeError: If the bytes are not a decodable image.
        """
        try:
            with Image.open(io.BytesIO(data)) as opened:
                source_format = opened.format
                opened.load()
                decoded = ImageOps.exif_transpose(opened)
        except (UnidentifiedImageError, OSError, ValueError) as error:
            raise ImageDecodeError(
                f"Invalid image format: {error}",
                context={"byte_size": len(data)},
            ) from error

        return cls(
            image=decoded,
            width=decoded.width,
            height=decoded.height,
            byte_size=len(data),
            source_format=source_format,
        )

    @classmethod
    def from_image(cls, image: Image.Image, *, byte_size: int | None = None) -> ImagePayload:
        """Wrap an already decoded image.

        Args:
            image: Pillow image; it is copied, later edits by the caller are not seen.
            byte_size: Size of the source bytes. Defaults to the size of a
                lossless PNG encoding of the image.

        Returns:
            Payload wrapping a private copy of the image.
        """
        snapshot = image.copy()
        if byte_size is None:
            byte_size = _measure_lossless_size(snapshot)

        return cls(
            image=snapshot,
            width=snapshot.width,
            height=snapshot.height,
            byte_size=byte_size,
            source_format=image.format,
        )

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @property
    def dimensions(self) -> str:
        """Dimensions formatted as WIDTHxHEIGHT."""
        return f"{self.width}x{self.height}"


def _measure_lossless_size(image: Image.Image) -> int:
    if image.mode not in _LOSSLESS_MODES:
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=_LOSSLESS_SIZE_FORMAT)
    return buffer.tell()
