"""Capture ID management for tracing one capture through decode and analysis."""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

# Context variable for capture ID - isolated per thread and per asyncio task
capture_id_var: ContextVar[str] = ContextVar("capture_id", default="")


def generate_capture_id() -> str:
    """Generate a new capture ID."""
    return str(uuid.uuid4())


def get_capture_id() -> str:
    """Get current capture ID from context."""
    return capture_id_var.get()


def set_capture_id(cid: str) -> Token[str]:
    """Set capture ID in context."""
    return capture_id_var.set(cid)


def reset_capture_id(token: Token[str]) -> None:
    """Reset capture ID to previous value."""
    capture_id_var.reset(token)


@contextmanager
def capture_scope(cid: str | None = None) -> Iterator[str]:
    """Bind a capture ID for the duration of the block and yield it."""
    token = set_capture_id(cid or generate_capture_id())
    try:
        yield get_capture_id()
    finally:
        reset_capture_id(token)
