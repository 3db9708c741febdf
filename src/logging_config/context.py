"""Log Context Management.

Binds the user and provider being worked on to every log entry emitted
inside the block. The bound fields live in a single contextvar, so
concurrent validation tasks never see each other's context.
"""

import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any, Optional

_bound_fields: ContextVar[dict[str, str]] = ContextVar("keyforge_log_context", default={})


def generate_operation_id() -> str:
    return uuid.uuid4().hex


def get_context_dict() -> dict[str, Any]:
    """Fields bound by the innermost active LogContext (a copy)."""
    return dict(_bound_fields.get())


@dataclass
class LogContext:
    """Context manager binding user/provider to log entries.

    Nested contexts inherit the outer fields and override the ones they set.

    Example:
        with LogContext(user_id="user_1", provider="openai"):
            logger.info("saving key")  # carries user_id and provider
    """

    user_id: str = ""
    provider: str = ""
    operation_id: str = field(default_factory=generate_operation_id)
    _token: Optional[Token] = field(default=None, repr=False)

    def __enter__(self) -> "LogContext":
        merged = dict(_bound_fields.get())
        own = {
            "operation_id": self.operation_id,
            "user_id": self.user_id,
            "provider": self.provider,
        }
        merged.update({k: v for k, v in own.items() if v})
        self._token = _bound_fields.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _bound_fields.reset(self._token)
            self._token = None
