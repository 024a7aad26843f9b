"""Log formatters for JSON (aggregated) and terminal output."""

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any, ClassVar

from poster_pipeline.exceptions.base import PosterPipelineError
from poster_pipeline.logging.context import get_correlation_id, get_extra_context

# Attributes every LogRecord has; anything else was passed via ``extra=``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_LOGGER_NAME_WIDTH = 30
_UPLOAD_TAG_LENGTH = 8


def _collect_context(record: logging.LogRecord) -> dict[str, Any]:
    """Merge correlation ID, upload context and record extras, in that order."""
    collected: dict[str, Any] = {}

    upload_id = get_correlation_id()
    if upload_id:
        collected["correlation_id"] = upload_id

    collected.update(get_extra_context())
    for key, value in record.__dict__.items():
        if key not in _RECORD_ATTRS and not key.startswith("_"):
            collected[key] = value
    return collected


def _describe_exception(record: logging.LogRecord) -> dict[str, Any]:
    """Build the exception section of a JSON log entry."""
    exception_type, exception, _ = record.exc_info or (None, None, None)
    description: dict[str, Any] = {
        "type": exception_type.__name__ if exception_type else "Unknown",
        "message": str(exception) if exception else "",
        "traceback": traceback.format_exception(*record.exc_info) if record.exc_info else [],
    }
    if isinstance(exception, PosterPipelineError):
        description["error_code"] = exception.error_code
        description["context"] = exception.context
    return description


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line.

    Pipeline errors attached to a record contribute their ``error_code``
    and context, so failed uploads can be grouped by cause.
    """

    def __init__(
        self,
        *,
        service_name: str = "poster-pipeline",
        include_timestamp: bool = True,
        include_location: bool = True,
    ) -> None:
        """Initialize the JSON formatter.

        Args:
            service_name: Service identifier for log aggregation.
            include_timestamp: Whether to include timestamp field.
            include_location: Whether to include module/function/line fields.
        """
        super().__init__()
        self._service_name = service_name
        self._include_timestamp = include_timestamp
        self._include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a JSON string."""
        log_entry: dict[str, Any] = {}
        if self._include_timestamp:
            created = datetime.fromtimestamp(record.created, UTC)
            log_entry["timestamp"] = created.isoformat(timespec="milliseconds")

        log_entry.update(
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            service=self._service_name,
        )
        if self._include_location:
            log_entry.update(module=record.module, function=record.funcName, line=record.lineno)

        log_entry.update(_collect_context(record))
        if record.exc_info:
            log_entry["exception"] = _describe_exception(record)

        return json.dumps(log_entry, default=str)


class HumanFormatter(logging.Formatter):
    """Format log records as pipe-separated terminal lines.

    Records logged inside an upload are tagged with the first characters
    of the upload id, which is enough to tell concurrent uploads apart.
    """

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self, *, use_colors: bool = True) -> None:
        """Initialize the human formatter.

        Args:
            use_colors: Whether to use ANSI colors in output.
        """
        super().__init__()
        self._use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a single line plus any traceback."""
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")

        level = f"{record.levelname:<8}"
        if self._use_colors:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        logger_name = record.name
        if len(logger_name) > _LOGGER_NAME_WIDTH:
            logger_name = "..." + logger_name[-(_LOGGER_NAME_WIDTH - 3) :]

        context = _collect_context(record)
        upload_id = context.pop("correlation_id", "")
        message = record.getMessage()
        if upload_id:
            message = f"[{upload_id[:_UPLOAD_TAG_LENGTH]}] {message}"

        line = " | ".join([timestamp, level, f"{logger_name:<{_LOGGER_NAME_WIDTH}}", message])
        if context:
            line += " | " + " ".join(f"{key}={value}" for key, value in context.items())

        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info))
        return line
