"""Context variables for upload-scoped logging data.

Each upload runs in its own asyncio task, which copies the current context
on creation, so values set inside one upload never leak into another.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

_extra_context: ContextVar[dict[str, Any] | None] = ContextVar("extra_context", default=None)


def get_correlation_id() -> str:
    """Get the current correlation ID (the active upload id, if any)."""
    return correlation_id.get()


def set_correlation_id(value: str) -> None:
    """Set the correlation ID for the current context."""
    correlation_id.set(value)


def get_extra_context() -> dict[str, Any]:
    """Get a copy of the fields attached to every log record in this context."""
    return dict(_extra_context.get() or {})


def set_extra_context(**fields: Any) -> None:
    """Attach fields to every log record in the current context.

    Fields merge with those already set; the stored dict is replaced, never
    mutated, so copies taken by child tasks stay unchanged.
    """
    _extra_context.set({**(_extra_context.get() or {}), **fields})


@contextmanager
def bind_context(**fields: Any) -> Iterator[None]:
    """Attach fields for the duration of a with block, then restore the previous ones."""
    token = _extra_context.set({**(_extra_context.get() or {}), **fields})
    try:
        yield
    finally:
        _extra_context.reset(token)


def clear_context() -> None:
    """Clear all context (correlation ID and extra context)."""
    correlation_id.set("")
    _extra_context.set(None)
