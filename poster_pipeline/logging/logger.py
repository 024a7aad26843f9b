"""Logging setup for applications embedding the poster pipeline."""

import logging
import sys
from dataclasses import dataclass, field
from typing import TextIO

from poster_pipeline.logging.config import LogFormat, LoggingConfig, get_logging_config
from poster_pipeline.logging.formatters import HumanFormatter, JSONFormatter

# Transfer and imaging libraries log every request and decoder step at DEBUG.
_LIBRARY_LOGGERS: tuple[str, ...] = ("boto3", "botocore", "s3transfer", "urllib3", "PIL")


@dataclass
class LoggingState:
    """Internal state for logging configuration."""

    configured: bool = field(default=False)
    handler: logging.Handler | None = field(default=None)


_state = LoggingState()


def build_formatter(config: LoggingConfig, stream: TextIO) -> logging.Formatter:
    """Create the formatter selected by the config.

    Colors are only used for the human format on an interactive stream.
    """
    if config.log_format == LogFormat.HUMAN:
        return HumanFormatter(use_colors=stream.isatty())
    return JSONFormatter(
        service_name=config.service_name,
        include_timestamp=config.include_timestamp,
        include_location=config.include_location,
    )


def setup_logging(
    config: LoggingConfig | None = None,
    stream: TextIO | None = None,
    *,
    force: bool = False,
) -> None:
    """Install a single stream handler on the root logger.

    Args:
        config: Optional LoggingConfig instance. Loads from environment if not provided.
        stream: Output stream for logs. Defaults to sys.stdout.
        force: If True, reconfigure even if already configured.
    """
    if _state.configured and not force:
        return

    config = config or get_logging_config()
    stream = stream or sys.stdout

    root_logger = logging.getLogger()
    for existing_handler in list(root_logger.handlers):
        root_logger.removeHandler(existing_handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(build_formatter(config, stream))
    root_logger.addHandler(handler)
    root_logger.setLevel(config.log_level.value)

    library_level = max(logging.WARNING, root_logger.level)
    for library_logger in _LIBRARY_LOGGERS:
        logging.getLogger(library_logger).setLevel(library_level)

    _state.configured = True
    _state.handler = handler


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, typically ``get_logger(__name__)``."""
    return logging.getLogger(name)


def reset_logging() -> None:
    """Remove the installed handler and forget the cached config. Used by tests."""
    root_logger = logging.getLogger()
    for existing_handler in list(root_logger.handlers):
        root_logger.removeHandler(existing_handler)

    _state.configured = False
    _state.handler = None
    get_logging_config.cache_clear()
