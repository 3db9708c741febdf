"""Structured Logging.

Provides structured JSON logging, per-operation context binding,
secret redaction and timing for outbound provider calls.
"""

from src.logging_config.config import LOG_LEVELS, LogFormat, LoggingConfig
from src.logging_config.context import LogContext, generate_operation_id
from src.logging_config.performance import PerformanceTimer
from src.logging_config.setup import (
    SecretRedactionFilter,
    configure_logging,
    get_logger,
    redact,
)

__all__ = [
    "LogFormat",
    "LOG_LEVELS",
    "LoggingConfig",
    "LogContext",
    "PerformanceTimer",
    "SecretRedactionFilter",
    "configure_logging",
    "generate_operation_id",
    "get_logger",
    "redact",
]
