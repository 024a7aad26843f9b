"""Tests for poster policy and pipeline settings."""

import pytest
from pydantic import ValidationError

from poster_pipeline.config import (
    ALTERNATIVE_ASPECT_RATIO,
    MEBIBYTE,
    STANDARD_ASPECT_RATIO,
    PipelineSettings,
    PosterPolicy,
    get_pipeline_settings,
    get_policy,
)


class TestPosterPolicyDefaults:
    def test_minimum_resolution(self):
        policy = PosterPolicy()
        assert (policy.min_width, policy.min_height) == (900, 1125)

    def test_recommended_resolution(self):
        policy = PosterPolicy()
        assert (policy.recommended_width, policy.recommended_height) == (1200, 1500)

    def test_accepted_aspect_ratios(self):
        policy = PosterPolicy()
        assert policy.accepted_aspect_ratios == [STANDARD_ASPECT_RATIO, ALTERNATIVE_ASPECT_RATIO]

    def test_aspect_tolerance(self):
        assert PosterPolicy().aspect_tolerance == 0.10

    def test_max_bytes(self):
        assert PosterPolicy().max_bytes == 5 * MEBIBYTE

    def test_compression_defaults(self):
        policy = PosterPolicy()
        assert policy.default_quality == 0.85
        assert policy.quality_floor == 0.4
        assert policy.quality_decay == 0.85
        assert policy.max_compression_attempts == 5
        assert policy.max_dimension is None

    def test_quality_tier_thresholds(self):
        assert PosterPolicy().quality_tier_thresholds == (1200, 1080, 900)


class TestPosterPolicyFromEnvironment:
    def test_custom_max_bytes(self, monkeypatch):
        monkeypatch.setenv("POSTER_MAX_BYTES", "1048576")
        assert PosterPolicy().max_bytes == MEBIBYTE

    def test_custom_aspect_ratios(self, monkeypatch):
        monkeypatch.setenv("POSTER_ACCEPTED_ASPECT_RATIOS", "[0.75]")
        assert PosterPolicy().accepted_aspect_ratios == [0.75]

    def test_custom_max_dimension(self, monkeypatch):
        monkeypatch.setenv("POSTER_MAX_DIMENSION", "2400")
        assert PosterPolicy().max_dimension == 2400


class TestPosterPolicyValidation:
    def test_rejects_non_positive_ratio(self):
        with pytest.raises(ValidationError, match="positive"):
            PosterPolicy(accepted_aspect_ratios=[0.8, 0.0])

    def test_rejects_empty_ratio_list(self):
        with pytest.raises(ValidationError):
            PosterPolicy(accepted_aspect_ratios=[])

    def test_rejects_increasing_tier_thresholds(self):
        with pytest.raises(ValidationError, match="non-increasing"):
            PosterPolicy(quality_tier_thresholds=(900, 1080, 1200))

    def test_rejects_floor_above_default_quality(self):
        with pytest.raises(ValidationError, match="quality_floor"):
            PosterPolicy(default_quality=0.5, quality_floor=0.6)

    def test_rejects_decay_of_one(self):
        with pytest.raises(ValidationError):
            PosterPolicy(quality_decay=1.0)

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValidationError):
            PosterPolicy(max_compression_attempts=0)

    def test_per_call_override(self):
        strict_policy = PosterPolicy().model_copy(update={"aspect_tolerance": 0.05})
        assert strict_policy.aspect_tolerance == 0.05


class TestPipelineSettings:
    def test_default_path_template(self):
        settings = PipelineSettings()
        assert settings.poster_path_template == "event_posters/{destination_id}/poster.jpg"

    def test_build_poster_path(self):
        settings = PipelineSettings()
        assert settings.build_poster_path("evt-42") == "event_posters/evt-42/poster.jpg"

    def test_accepts_budget_shortfall_by_default(self):
        assert PipelineSettings().accept_budget_shortfall is True

    def test_custom_bucket(self, monkeypatch):
        monkeypatch.setenv("POSTER_STORAGE_BUCKET_NAME", "my-posters")
        assert PipelineSettings().storage_bucket_name == "my-posters"

    def test_strips_whitespace(self, monkeypatch):
        monkeypatch.setenv("POSTER_AWS_REGION", "  eu-west-1  ")
        assert PipelineSettings().aws_region == "eu-west-1"

    def test_rejects_template_without_placeholder(self):
        with pytest.raises(ValidationError, match="destination_id"):
            PipelineSettings(poster_path_template="posters/poster.jpg")


class TestCachedGetters:
    def test_get_policy_cached(self):
        assert get_policy() is get_policy()

    def test_get_pipeline_settings_cached(self):
        assert get_pipeline_settings() is get_pipeline_settings()

    def test_cache_clear_reloads(self, monkeypatch):
        first = get_policy()
        monkeypatch.setenv("POSTER_MIN_WIDTH", "1000")
        get_policy.cache_clear()
        assert get_policy() is not first
        assert get_policy().min_width == 1000
