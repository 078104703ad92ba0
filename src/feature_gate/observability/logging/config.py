"""Logging configuration and setup."""

import logging
import sys
from enum import Enum
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Logging formats."""

    JSON = "json"
    CONSOLE = "console"


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    format_type: LogFormat = LogFormat.JSON,
    log_file: str | None = None,
    enable_colors: bool = True,
    include_timestamps: bool = True,
) -> None:
    """Setup structured logging configuration."""

    # Configure standard library logging
    logging.basicConfig(
        level=getattr(logging, level.value),
        format="%(message)s",
        handlers=[
            (
                logging.StreamHandler(sys.stdout)
                if not log_file
                else logging.FileHandler(log_file)
            )
        ],
        force=True,
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamps:
        processors.append(structlog.processors.TimeStamper(fmt="ISO"))

    if format_type == LogFormat.JSON:
        processors.append(structlog.processors.JSONRenderer(default=str))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=enable_colors))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    logger = structlog.get_logger(name)
    return logger  # type: ignore[no-any-return]


def setup_testing_logging() -> None:
    """Setup logging for testing environment."""
    setup_logging(
        level=LogLevel.WARNING,
        format_type=LogFormat.CONSOLE,
        enable_colors=False,
        include_timestamps=False,
    )
