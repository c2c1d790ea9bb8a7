"""Logging module for redlatch."""

from .context import clear_holder_context, get_current_holder_context, set_holder_context
from .logger import get_logger, setup_app_logging, setup_logging

__all__ = [
    "clear_holder_context",
    "get_current_holder_context",
    "get_logger",
    "set_holder_context",
    "setup_app_logging",
    "setup_logging",
]
