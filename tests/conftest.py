"""Shared test fixtures."""

import io
import random

import pytest
from PIL import Image

from poster_pipeline.config import get_pipeline_settings, get_policy
from poster_pipeline.image.models import ImagePayload
from poster_pipeline.logging.config import get_logging_config
from poster_pipeline.logging.context import clear_context


@pytest.fixture(autouse=True)
def _clear_environment(monkeypatch):
    """Clear environment variables that affect settings."""
    env_vars_to_clear = [
        "POSTER_MIN_WIDTH",
        "POSTER_MIN_HEIGHT",
        "POSTER_RECOMMENDED_WIDTH",
        "POSTER_RECOMMENDED_HEIGHT",
        "POSTER_ACCEPTED_ASPECT_RATIOS",
        "POSTER_ASPECT_TOLERANCE",
        "POSTER_MAX_BYTES",
        "POSTER_DEFAULT_QUALITY",
        "POSTER_QUALITY_FLOOR",
        "POSTER_QUALITY_DECAY",
        "POSTER_MAX_COMPRESSION_ATTEMPTS",
        "POSTER_MAX_DIMENSION",
        "POSTER_QUALITY_TIER_THRESHOLDS",
        "POSTER_STORAGE_BUCKET_NAME",
        "POSTER_AWS_REGION",
        "POSTER_PUBLIC_BASE_URL",
        "POSTER_POSTER_PATH_TEMPLATE",
        "POSTER_ACCEPT_BUDGET_SHORTFALL",
        "POSTER_LOG_LEVEL",
        "POSTER_LOG_FORMAT",
        "POSTER_SERVICE_NAME",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)

    get_policy.cache_clear()
    get_pipeline_settings.cache_clear()
    get_logging_config.cache_clear()
    clear_context()
    yield
    get_policy.cache_clear()
    get_pipeline_settings.cache_clear()
    get_logging_config.cache_clear()


@pytest.fixture()
def make_image():
    """Factory for solid-color RGB images."""

    def _make_image(width=1200, height=1500, color=(200, 40, 90), mode="RGB"):
        if mode == "RGBA":
            return Image.new(mode, (width, height), (*color, 128))
        return Image.new(mode, (width, height), color)

    return _make_image


@pytest.fixture()
def make_noise_image():
    """Factory for reproducible noise images, which JPEG compresses poorly."""

    def _make_noise_image(width=1200, height=1500, seed=7):
        pixels = random.Random(seed).randbytes(width * height * 3)
        return Image.frombytes("RGB", (width, height), pixels)

    return _make_noise_image


@pytest.fixture()
def make_payload(make_image):
    """Factory for image payloads with an explicit raw byte size."""

    def _make_payload(width=1200, height=1500, byte_size=1_000_000):
        return ImagePayload.from_image(make_image(width, height), byte_size=byte_size)

    return _make_payload


@pytest.fixture()
def encode_image():
    """Encode a Pillow image to container bytes."""

    def _encode_image(image, image_format="JPEG", **save_options):
        buffer = io.BytesIO()
        image.save(buffer, format=image_format, **save_options)
        return buffer.getvalue()

    return _encode_image


@pytest.fixture()
def poster_payload(make_payload):
    """A valid 1200x1500 poster payload."""
    return make_payload()
