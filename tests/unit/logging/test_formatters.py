"""Tests for log formatters."""

import json
import logging
import sys

from poster_pipeline.exceptions.server_errors import StorageError
from poster_pipeline.logging.context import clear_context, set_correlation_id, set_extra_context
from poster_pipeline.logging.formatters import HumanFormatter, JSONFormatter


def _make_record(message="test message", level=logging.INFO):
    """Create a test log record."""
    return logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=42,
        msg=message,
        args=(),
        exc_info=None,
    )


def _format_json(record, **formatter_options):
    return json.loads(JSONFormatter(**formatter_options).format(record))


class TestJSONFormatter:
    def setup_method(self):
        clear_context()

    def test_includes_message(self):
        parsed = _format_json(_make_record("hello world"))
        assert parsed["message"] == "hello world"

    def test_includes_level(self):
        parsed = _format_json(_make_record(level=logging.ERROR))
        assert parsed["level"] == "ERROR"

    def test_includes_timestamp(self):
        parsed = _format_json(_make_record())
        assert "timestamp" in parsed

    def test_excludes_timestamp_when_disabled(self):
        parsed = _format_json(_make_record(), include_timestamp=False)
        assert "timestamp" not in parsed

    def test_default_service_name(self):
        parsed = _format_json(_make_record())
        assert parsed["service"] == "poster-pipeline"

    def test_includes_location(self):
        parsed = _format_json(_make_record())
        assert parsed["line"] == 42

    def test_excludes_location_when_disabled(self):
        parsed = _format_json(_make_record(), include_location=False)
        assert "line" not in parsed

    def test_includes_correlation_id(self):
        set_correlation_id("upload-123")
        parsed = _format_json(_make_record())
        assert parsed["correlation_id"] == "upload-123"

    def test_includes_extra_context(self):
        set_extra_context(destination_id="evt-001")
        parsed = _format_json(_make_record())
        assert parsed["destination_id"] == "evt-001"

    def test_includes_record_extras(self):
        record = _make_record()
        record.output_size = 412_233
        parsed = _format_json(record)
        assert parsed["output_size"] == 412_233

    def test_includes_exception_info(self):
        record = _make_record()
        try:
            raise ValueError("test error")  # noqa: TRY301
        except ValueError:
            record.exc_info = sys.exc_info()
        parsed = _format_json(record)
        assert parsed["exception"]["type"] == "ValueError"
        assert parsed["exception"]["message"] == "test error"
        assert "error_code" not in parsed["exception"]

    def test_includes_pipeline_error_code(self):
        record = _make_record()
        try:
            raise StorageError("upload failed", path="a/b.jpg")  # noqa: TRY301
        except StorageError:
            record.exc_info = sys.exc_info()
        parsed = _format_json(record)
        assert parsed["exception"]["error_code"] == "STORAGE_ERROR"
        assert parsed["exception"]["context"] == {"path": "a/b.jpg"}


class TestHumanFormatter:
    def setup_method(self):
        clear_context()

    def test_outputs_pipe_separated(self):
        output = HumanFormatter(use_colors=False).format(_make_record())
        assert "|" in output

    def test_includes_message(self):
        output = HumanFormatter(use_colors=False).format(_make_record("hello world"))
        assert "hello world" in output

    def test_includes_level(self):
        output = HumanFormatter(use_colors=False).format(_make_record(level=logging.WARNING))
        assert "WARNING" in output

    def test_colors_enabled(self):
        output = HumanFormatter(use_colors=True).format(_make_record())
        assert "\033[" in output

    def test_colors_disabled(self):
        output = HumanFormatter(use_colors=False).format(_make_record())
        assert "\033[" not in output

    def test_truncates_long_logger_name(self):
        record = _make_record()
        record.name = "poster_pipeline.upload.orchestrator.with.a.long.suffix"
        output = HumanFormatter(use_colors=False).format(record)
        assert "..." in output

    def test_tags_message_with_short_upload_id(self):
        set_correlation_id("3f2a9c1d7e6b")
        output = HumanFormatter(use_colors=False).format(_make_record("uploaded"))
        assert "[3f2a9c1d] uploaded" in output
        assert "correlation_id" not in output

    def test_includes_extra_context(self):
        set_extra_context(destination_id="evt-1")
        output = HumanFormatter(use_colors=False).format(_make_record())
        assert output.endswith("| destination_id=evt-1")
