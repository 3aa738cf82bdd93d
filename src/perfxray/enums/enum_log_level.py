"""Log level enum for perfxray runtime configuration."""

import logging
from enum import StrEnum


class EnumLogLevel(StrEnum):
    """Log level accepted by ModelPerfXrayConfig."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_logging_level(self) -> int:
        """Return the numeric level understood by the logging module."""
        return logging.getLevelName(self.value)


__all__ = ["EnumLogLevel"]
