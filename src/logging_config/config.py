"""Logging Configuration.

Output format, level and redaction switches for the credential engine.
"""

from dataclasses import dataclass
from enum import Enum

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


@dataclass
class LoggingConfig:
    """Structured logging configuration."""

    level: str = "INFO"
    format: LogFormat = LogFormat.JSON
    include_caller: bool = True
    # Provider checks slower than this are logged at WARNING
    slow_threshold_ms: float = 3000.0
    redact_secrets: bool = True
    service_name: str = "keyforge"
    quiet_loggers: tuple[str, ...] = ("asyncio", "aiohttp", "sqlalchemy.engine")


DEFAULT_LOGGING_CONFIG = LoggingConfig()
