"""Tests for server error exceptions."""

from poster_pipeline.exceptions.server_errors import (
    CompressionFailedError,
    ConfigurationError,
    ServerError,
    StorageError,
)


class TestServerError:
    def test_error_code(self):
        assert ServerError("boom").error_code == "SERVER_ERROR"

    def test_not_recoverable(self):
        assert ServerError("boom").is_recoverable is False


class TestCompressionFailedError:
    def test_error_code(self):
        assert CompressionFailedError("failed").error_code == "COMPRESSION_FAILED"

    def test_is_recoverable(self):
        assert CompressionFailedError("failed").is_recoverable is True

    def test_quality_in_context(self):
        error = CompressionFailedError("failed", quality=0.4)
        assert error.context["quality"] == 0.4

    def test_no_quality(self):
        assert CompressionFailedError("failed").context == {}


class TestStorageError:
    def test_error_code(self):
        assert StorageError("upload failed").error_code == "STORAGE_ERROR"

    def test_path_and_backend_in_context(self):
        error = StorageError("upload failed", path="event_posters/e1/poster.jpg", backend_name="s3")
        assert error.context == {"path": "event_posters/e1/poster.jpg", "backend_name": "s3"}


class TestConfigurationError:
    def test_error_code(self):
        assert ConfigurationError("missing").error_code == "CONFIGURATION_ERROR"
