"""Settings that decide how the poster pipeline's log records are rendered."""

from enum import StrEnum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(StrEnum):
    """Root logger level; transfer and imaging libraries never go below WARNING."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(StrEnum):
    JSON = "json"
    HUMAN = "human"


class LoggingConfig(BaseSettings):
    """Read from POSTER_-prefixed variables such as POSTER_LOG_FORMAT.

    DEBUG adds every compression attempt and phase change; INFO keeps to
    upload requests, outcomes and cancellations.

    Attributes:
        log_level: Root logger level.
        log_format: json for aggregated service logs, human for local runs.
        service_name: Value of the ``service`` key on every JSON record.
        include_timestamp: Add an ISO-8601 ``timestamp`` key to JSON records.
        include_location: Add ``module``, ``function`` and ``line`` keys to JSON records.
    """

    model_config = SettingsConfigDict(
        env_prefix="POSTER_",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_format: LogFormat = Field(default=LogFormat.JSON)
    service_name: str = Field(default="poster-pipeline", min_length=1)
    include_timestamp: bool = Field(default=True)
    include_location: bool = Field(default=True)


@lru_cache
def get_logging_config() -> LoggingConfig:
    """Return the process-wide logging config; cleared by reset_logging."""
    return LoggingConfig()
