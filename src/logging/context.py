# src/logging/context.py — v2
"""Contextual logging support — attach query_id, user_id, mode, source to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging — set per research query.
_query_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "query_id", default=None
)
_user_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "user_id", default=None
)
_mode: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "mode", default=None
)
_source: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "source", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    query_id: str | None = None
    user_id: str | None = None
    mode: str | None = None
    source: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        query_id=_query_id.get(),
        user_id=_user_id.get(),
        mode=_mode.get(),
        source=_source.get(),
    )


def set_query_context(query_id: str, user_id: str | None, mode: str | None = None) -> None:
    """Set query-level context (called once per research request)."""
    _query_id.set(query_id)
    _user_id.set(user_id)
    _mode.set(mode)


def set_mode_context(mode: str) -> None:
    """Update the mode once the shell has resolved it."""
    _mode.set(mode)


def set_source_context(source: str | None) -> None:
    """Set source-level context (called inside each source task)."""
    _source.set(source)


def clear_context() -> None:
    """Reset all context variables."""
    _query_id.set(None)
    _user_id.set(None)
    _mode.set(None)
    _source.set(None)
