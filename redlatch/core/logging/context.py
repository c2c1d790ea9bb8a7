"""
Holder context management using contextvars for automatic propagation.

The holder id identifies *who* is taking locks (a worker, a job, a request).
It is set once at the start of a unit of work and is picked up by every
ContextLogger created afterwards in the same async context.
"""

from contextvars import ContextVar

_holder_context: ContextVar[str | None] = ContextVar("holder_id", default=None)


def set_holder_context(holder_id: str | None) -> None:
    """
    Set the lock holder id for the current async context.

    Args:
        holder_id: Identifier of the current worker/job, or None to clear it
    """
    _holder_context.set(holder_id)


def get_current_holder_context() -> str | None:
    """
    Get the current holder id from context variables.

    Returns:
        Current holder id, or None if not set
    """
    return _holder_context.get()


def clear_holder_context() -> None:
    """Clear the holder context. Mostly useful in tests."""
    _holder_context.set(None)
