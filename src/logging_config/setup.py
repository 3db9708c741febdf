"""Logging Setup.

One-call configuration for the credential engine's logs: JSON lines in
production, a compact colored line in development. A redaction filter
scrubs anything shaped like a provider key or a stored ciphertext
before a record reaches the handler.
"""

import json
import logging
import os
import re
import sys
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG, LOG_LEVELS, LogFormat, LoggingConfig
from src.logging_config.context import get_context_dict

REDACTED = "[REDACTED]"

_SECRET_PATTERNS = [
    re.compile(r"sk-[A-Za-z0-9_\-]{8,}"),          # OpenAI / Anthropic / OpenRouter / DeepSeek
    re.compile(r"gsk_[A-Za-z0-9]{8,}"),            # Groq
    re.compile(r"AIza[0-9A-Za-z_\-]{20,}"),        # Google
    re.compile(r"gAAAAA[A-Za-z0-9_\-=]{20,}"),     # Fernet tokens (stored ciphertext)
]

# Record attributes copied into the JSON payload when a caller passes them via ``extra``
_EXTRA_FIELDS = ("duration_ms", "error_kind", "provider", "user_id", "outcome", "extra_data")

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


def redact(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text


class SecretRedactionFilter(logging.Filter):
    """Rewrites record messages so key material never reaches output."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Always carries timestamp, level, logger, message and service; adds the
    bound ``LogContext`` fields and any known ``extra`` attributes.
    """

    def __init__(self, service_name: str = "keyforge", include_caller: bool = True):
        super().__init__()
        self.service_name = service_name
        self.include_caller = include_caller

    def _payload(self, record: logging.LogRecord) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }
        if self.include_caller:
            payload.update(module=record.module, function=record.funcName, line=record.lineno)
        payload.update(get_context_dict())
        payload.update(
            {key: getattr(record, key) for key in _EXTRA_FIELDS if hasattr(record, key)}
        )
        return payload

    def format(self, record: logging.LogRecord) -> str:
        payload = self._payload(record)
        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": redact(str(exc_value)),
            }
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, _RESET)
        stamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        line = f"{color}{stamp} {record.levelname:8s}{_RESET} {record.name}: {record.getMessage()}"

        context = get_context_dict()
        if context:
            line += " [" + ", ".join(f"{k}={v}" for k, v in context.items()) + "]"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + redact(self.formatException(record.exc_info))
        return line


def _apply_env_overrides(config: LoggingConfig) -> LoggingConfig:
    level = os.environ.get("KEYFORGE_LOG_LEVEL", "").upper()
    if level in LOG_LEVELS:
        config = replace(config, level=level)
    fmt = os.environ.get("KEYFORGE_LOG_FORMAT", "").lower()
    if fmt in {f.value for f in LogFormat}:
        config = replace(config, format=LogFormat(fmt))
    return config


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Install a single stdout handler on the root logger.

    Call once at process startup. ``KEYFORGE_LOG_LEVEL`` and
    ``KEYFORGE_LOG_FORMAT`` override the given config.
    """
    config = _apply_env_overrides(config or DEFAULT_LOGGING_CONFIG)

    handler = logging.StreamHandler(sys.stdout)
    if config.format == LogFormat.JSON:
        handler.setFormatter(
            StructuredFormatter(config.service_name, config.include_caller)
        )
    else:
        handler.setFormatter(ConsoleFormatter())
    if config.redact_secrets:
        handler.addFilter(SecretRedactionFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(config.level)

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Standard library logger; output goes through configure_logging()."""
    return logging.getLogger(name)
