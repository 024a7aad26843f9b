"""Compression result models."""

from pydantic import BaseModel, ConfigDict, Field

from poster_pipeline.formatting import format_byte_count


class CompressionAttempt(BaseModel):
    """One encode call made by the adaptive compression loop."""

    model_config = ConfigDict(frozen=True)

    attempt_number: int = Field(ge=1)
    quality: float = Field(gt=0.0, le=1.0)
    output_size: int = Field(ge=0)


class CompressionResult(BaseModel):
    """Smallest encoding produced for an image, with comparison statistics.

    ``meets_budget`` is False when every attempt stayed above the budget;
    the bytes are then the best that could be achieved and the caller
    decides whether to accept the shortfall.
    """

    model_config = ConfigDict(frozen=True)

    output_bytes: bytes = Field(repr=False)
    output_size: int = Field(ge=0)
    input_size: int = Field(ge=0)
    quality_used: float = Field(gt=0.0, le=1.0)
    meets_budget: bool
    savings_percent: float = Field(ge=0.0, le=100.0)
    output_width: int = Field(ge=1)
    output_height: int = Field(ge=1)
    attempts: tuple[CompressionAttempt, ...] = Field(default=())

    @property
    def compression_ratio(self) -> float:
        """Output size divided by input size (0.0 for an empty input)."""
        if self.input_size == 0:
            return 0.0
        return self.output_size / self.input_size

    @property
    def attempt_count(self) -> int:
        """Number of encode calls made."""
        return len(self.attempts)

    @property
    def readable_input_size(self) -> str:
        """Input size for display, e.g. "6.3 MB"."""
        return format_byte_count(self.input_size)

    @property
    def readable_output_size(self) -> str:
        """Output size for display, e.g. "812 KB"."""
        return format_byte_count(self.output_size)

    def summary(self) -> str:
        """Return the savings as a short phrase, e.g. "41.3% smaller"."""
        return f"{self.savings_percent:.1f}% smaller"
