"""Structured logging for the poster pipeline.

Usage:
    from poster_pipeline.logging import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Compressed poster", extra={"output_size": 412_233})
"""

from poster_pipeline.logging.adapters.upload_adapter import set_upload_context
from poster_pipeline.logging.config import LoggingConfig
from poster_pipeline.logging.context import (
    bind_context,
    clear_context,
    correlation_id,
    get_correlation_id,
    get_extra_context,
    set_correlation_id,
    set_extra_context,
)
from poster_pipeline.logging.formatters import HumanFormatter, JSONFormatter
from poster_pipeline.logging.logger import get_logger, reset_logging, setup_logging

__all__ = [
    "HumanFormatter",
    "JSONFormatter",
    "LoggingConfig",
    "bind_context",
    "clear_context",
    "correlation_id",
    "get_correlation_id",
    "get_extra_context",
    "get_logger",
    "reset_logging",
    "set_correlation_id",
    "set_extra_context",
    "set_upload_context",
    "setup_logging",
]
