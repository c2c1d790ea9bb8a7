"""
Rich-based logging for redlatch with lock-holder context support.

Infrastructure modules (stores, clients) log through plain named loggers.
Lock management logs through ContextLogger so every line carries the id of
the worker that is taking or releasing locks.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from redlatch.core.config.settings import settings


class CompactFormatter(logging.Formatter):
    """Shortens long module names for better readability."""

    def format(self, record):
        if record.name.startswith("redlatch."):
            # redlatch.mutex.mutex -> mutex.mutex
            parts = record.name.split(".")
            if len(parts) > 2:
                record.name = ".".join(parts[-2:])

        return super().format(record)


_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "debug": "dim white",
    }
)
_console = Console(theme=_theme)


class ContextLogger:
    """
    Logger wrapper that prefixes messages with the lock holder id.

    Context is added as a message prefix instead of a format field, so the
    handlers configured by setup_logging() need no special format string.
    """

    def __init__(self, logger: logging.Logger, holder_id: str | None = None):
        self.logger = logger
        self.holder_id = holder_id or "---"

    def _format_message(self, message: str) -> str:
        # Fresh lookup on every call so context set later is still honoured
        from .context import get_current_holder_context

        current_holder = get_current_holder_context() or self.holder_id
        if current_holder and current_holder != "---":
            return f"[H:{current_holder}] {message}"
        return message

    def debug(self, message: str, *args, **kwargs) -> None:
        self.logger.debug(self._format_message(message), *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        self.logger.info(self._format_message(message), *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        self.logger.warning(self._format_message(message), *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        self.logger.error(self._format_message(message), *args, **kwargs)

    def critical(self, message: str, *args, **kwargs) -> None:
        self.logger.critical(self._format_message(message), *args, **kwargs)

    def exception(self, message: str, *args, **kwargs) -> None:
        self.logger.exception(self._format_message(message), *args, **kwargs)

    def bind(self, **kwargs) -> ContextLogger:
        """
        Create a new ContextLogger with an updated holder id.

        Example:
            worker_logger = logger.bind(holder_id="worker-3")
        """
        return ContextLogger(
            self.logger, holder_id=kwargs.get("holder_id", self.holder_id)
        )


def setup_logging(
    *,
    level: str = "INFO",
    mode: str = "PROD",
    log_dir: str | None = None,
    console_fmt: str | None = None,
    file_fmt: str | None = None,
) -> None:
    """
    Initialize the root logger with Rich formatting.

    Parameters
    ----------
    level : str
        Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
    mode : str
        "DEV" creates daily log files + console; anything else → console only
    log_dir : str, optional
        Directory for log files (DEV mode only)
    console_fmt : str, optional
        Console format string
    file_fmt : str, optional
        File format string
    """
    lvl = level.upper()
    lvl = lvl if lvl in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"

    # RichHandler already shows level and time
    console_format = console_fmt or "[%(name)s] %(message)s"
    file_format = file_fmt or "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

    rich_handler = RichHandler(
        console=_console,
        rich_tracebacks=True,
        show_time=True,
        show_level=True,
        markup=False,
    )
    rich_handler.setFormatter(CompactFormatter(console_format))

    handlers: list[logging.Handler] = [rich_handler]

    if mode.upper() == "DEV" and log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logfile = os.path.join(log_dir, f"redlatch_{datetime.now():%Y%m%d}.log")
        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(CompactFormatter(file_format))
        handlers.append(file_handler)

    logging.basicConfig(level=lvl, handlers=handlers, force=True)

    logging.getLogger("RedlatchLoggerSetup").info(
        f"Logging initialized ({lvl}, mode {mode.upper()})"
    )


def setup_app_logging() -> None:
    """Initialize logging from the environment settings."""
    setup_logging(
        level=settings.log_level,
        mode="DEV" if settings.is_development else "PROD",
        log_dir=settings.log_dir if settings.is_development else None,
    )


def get_logger(name: str) -> ContextLogger:
    """
    Get a logger that automatically uses the current holder context.

    Args:
        name: Logger name (usually __name__)

    Returns:
        ContextLogger instance
    """
    from .context import get_current_holder_context

    return ContextLogger(
        logging.getLogger(name), holder_id=get_current_holder_context()
    )
