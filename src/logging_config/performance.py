"""Timing for outbound provider calls.

Every timed block is logged at DEBUG; blocks over the slow threshold are
logged at WARNING so a sluggish provider shows up without debug output.
"""

import logging
import time
from typing import Optional

from src.logging_config.config import DEFAULT_LOGGING_CONFIG

logger = logging.getLogger(__name__)


class PerformanceTimer:
    """Context manager that measures a block in milliseconds.

    Example:
        with PerformanceTimer("validate:openai") as timer:
            await checker.check_auth(session, key, timeout)
        timer.duration_ms
    """

    def __init__(self, operation_name: str, threshold_ms: Optional[float] = None):
        self.operation_name = operation_name
        self.threshold_ms = (
            DEFAULT_LOGGING_CONFIG.slow_threshold_ms if threshold_ms is None else threshold_ms
        )
        self.duration_ms: float = 0.0
        self._started: Optional[float] = None

    def __enter__(self) -> "PerformanceTimer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration_ms = (time.perf_counter() - self._started) * 1000
        self._emit(exc_type.__name__ if exc_type else None)

    def _emit(self, error_kind: Optional[str]) -> None:
        extra = {"duration_ms": round(self.duration_ms, 2)}
        if error_kind:
            extra["error_kind"] = error_kind
            logger.debug("%s ended with %s after %.1fms",
                         self.operation_name, error_kind, self.duration_ms, extra=extra)
        elif self.duration_ms >= self.threshold_ms:
            logger.warning("Slow operation: %s took %.1fms",
                           self.operation_name, self.duration_ms, extra=extra)
        else:
            logger.debug("%s took %.1fms", self.operation_name, self.duration_ms, extra=extra)
