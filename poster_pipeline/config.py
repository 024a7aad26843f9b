"""Poster pipeline configuration using Pydantic BaseSettings.

All settings are loaded from POSTER_* environment variables and can be
overridden per orchestrator or per call with ``model_copy(update=...)``.

Usage:
    from poster_pipeline.config import get_policy

    policy = get_policy()
    strict_policy = policy.model_copy(update={"aspect_tolerance": 0.05})
"""

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

STANDARD_ASPECT_RATIO: float = 4.0 / 5.0
ALTERNATIVE_ASPECT_RATIO: float = 1.0 / 1.4
MEBIBYTE: int = 1024 * 1024


class PosterPolicy(BaseSettings):
    """Validation and compression policy for poster images.

    Attributes:
        min_width: Minimum accepted width in pixels.
        min_height: Minimum accepted height in pixels.
        recommended_width: Width considered optimal for display.
        recommended_height: Height considered optimal for display.
        accepted_aspect_ratios: Width/height ratios a poster may have.
        aspect_tolerance: Relative deviation allowed from an accepted ratio.
        max_bytes: Upload size ceiling and compression budget.
        default_quality: Quality of the first encode attempt.
        quality_floor: Lowest quality the compressor will try.
        quality_decay: Factor applied to the quality after each oversized attempt.
        max_compression_attempts: Upper bound on encode calls per compression.
        quality_tier_thresholds: Minimum widths for excellent, good, acceptable.
        max_dimension: Longest side to downscale to before encoding, if set.
    """

    model_config = SettingsConfigDict(
        env_prefix="POSTER_",
        case_sensitive=False,
        extra="ignore",
    )

    # Resolution
    min_width: int = Field(default=900, ge=1)
    min_height: int = Field(default=1125, ge=1)
    recommended_width: int = Field(default=1200, ge=1)
    recommended_height: int = Field(default=1500, ge=1)

    # Aspect ratio
    accepted_aspect_ratios: list[float] = Field(
        default_factory=lambda: [STANDARD_ASPECT_RATIO, ALTERNATIVE_ASPECT_RATIO],
        min_length=1,
    )
    aspect_tolerance: float = Field(default=0.10, ge=0.0, lt=1.0)

    # Size budget
    max_bytes: int = Field(default=5 * MEBIBYTE, ge=1)

    # Adaptive compression
    default_quality: float = Field(default=0.85, gt=0.0, le=1.0)
    quality_floor: float = Field(default=0.4, gt=0.0, le=1.0)
    quality_decay: float = Field(default=0.85, gt=0.0, lt=1.0)
    max_compression_attempts: int = Field(default=5, ge=1, le=20)
    max_dimension: int | None = Field(default=None, ge=1)

    # Quality tiers (excellent, good, acceptable)
    quality_tier_thresholds: tuple[int, int, int] = Field(default=(1200, 1080, 900))

    @field_validator("accepted_aspect_ratios")
    @classmethod
    def validate_aspect_ratios(cls, value: list[float]) -> list[float]:
        """Validate every accepted ratio is positive."""
        if any(ratio <= 0 for ratio in value):
            error_message = f"accepted_aspect_ratios must be positive, got {value}"
            raise ValueError(error_message)
        return value

    @field_validator("quality_tier_thresholds")
    @classmethod
    def validate_tier_thresholds(cls, value: tuple[int, int, int]) -> tuple[int, int, int]:
        """Validate thresholds are ordered excellent >= good >= acceptable."""
        excellent, good, acceptable = value
        if not excellent >= good >= acceptable:
            error_message = f"quality_tier_thresholds must be non-increasing, got {value}"
            raise ValueError(error_message)
        return value

    @model_validator(mode="after")
    def validate_quality_range(self) -> "PosterPolicy":
        """Validate the quality floor does not exceed the starting quality."""
        if self.quality_floor > self.default_quality:
            error_message = (
                f"quality_floor ({self.quality_floor}) must not exceed "
                f"default_quality ({self.default_quality})"
            )
            raise ValueError(error_message)
        return self


class PipelineSettings(BaseSettings):
    """Runtime settings for the upload orchestrator and storage backends.

    Attributes:
        storage_bucket_name: S3 bucket receiving poster uploads.
        aws_region: AWS region of the bucket.
        public_base_url: Base URL for locators; derived from bucket when empty.
        poster_path_template: Storage path template, formatted with destination_id.
        accept_budget_shortfall: Upload the smallest result when the budget is not met.
    """

    model_config = SettingsConfigDict(
        env_prefix="POSTER_",
        case_sensitive=False,
        extra="ignore",
        str_strip_whitespace=True,
    )

    # Storage
    storage_bucket_name: str = Field(default="event-posters-development", min_length=1)
    aws_region: str = Field(default="us-east-1", min_length=1)
    public_base_url: str = Field(default="")
    poster_path_template: str = Field(default="event_posters/{destination_id}/poster.jpg")

    # Orchestration
    accept_budget_shortfall: bool = Field(default=True)

    @field_validator("poster_path_template")
    @classmethod
    def validate_path_template(cls, value: str) -> str:
        """Validate the template names the destination placeholder."""
        if "{destination_id}" not in value:
            error_message = f"poster_path_template must contain '{{destination_id}}', got '{value}'"
            raise ValueError(error_message)
        return value

    def build_poster_path(self, destination_id: str) -> str:
        """Return the storage path for an event's poster."""
        return self.poster_path_template.format(destination_id=destination_id)


@lru_cache
def get_policy() -> PosterPolicy:
    """Get cached poster policy instance.

    Returns:
        Cached PosterPolicy instance.
    """
    return PosterPolicy()


@lru_cache
def get_pipeline_settings() -> PipelineSettings:
    """Get cached pipeline settings instance.

    Returns:
        Cached PipelineSettings instance.
    """
    return PipelineSettings()
