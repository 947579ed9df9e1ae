"""Scoped logging context backed by contextvars.

Fields pushed here (run_id, alert_id, source, ...) are merged into every log
record emitted inside the scope by ContextualFilter. Worker threads start
with an empty context, so thread-pool tasks open their own scope.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

_log_context: ContextVar[Dict[str, Any]] = ContextVar("alert_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active logging context."""
    return dict(_log_context.get())


def push_log_context(**fields: Any) -> Token:
    """Merge fields into the active context.

    Returns:
        Token for pop_log_context()
    """
    return _log_context.set({**_log_context.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context that was active before push_log_context()."""
    _log_context.reset(token)


def clear_log_context() -> None:
    """Drop all context fields. Mainly for tests."""
    _log_context.set({})


class log_context:
    """Context manager that adds fields to every log record in its scope.

    Example:
        >>> with log_context(run_id="abc123", alert_id=7):
        ...     logger.info("Processing alert")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._token: Optional[Token] = None

    def __enter__(self) -> "log_context":
        self._token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self._token is not None:
            pop_log_context(self._token)
            self._token = None
        return False
