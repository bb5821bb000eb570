"""
Logging helpers for termshell.

Components obtain a namespaced logger with ``get_logger(__name__)`` and pass
structured values as keyword arguments::

    logger.debug("Evicted history entries", count=len(evicted))

The values are attached to the log record under ``extra["data"]`` and appended
to the rendered message so they survive plain-text handlers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from termshell.config import LoggerSettings

ROOT_NAMESPACE = "termshell"

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class Logger:
    """Thin wrapper around a stdlib logger that accepts structured data."""

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace
        self._logger = logging.getLogger(namespace)

    def _emit(self, level: int, message: str, data: dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if data:
            rendered = ", ".join(f"{key}={value!r}" for key, value in data.items())
            message = f"{message} [{rendered}]"
        self._logger.log(level, message, extra={"data": data}, stacklevel=3)

    def debug(self, message: str, **data: Any) -> None:
        self._emit(logging.DEBUG, message, data)

    def info(self, message: str, **data: Any) -> None:
        self._emit(logging.INFO, message, data)

    def warning(self, message: str, **data: Any) -> None:
        self._emit(logging.WARNING, message, data)

    def error(self, message: str, **data: Any) -> None:
        self._emit(logging.ERROR, message, data)

    def exception(self, message: str, **data: Any) -> None:
        """Log at error level with the active exception's traceback."""
        if data:
            rendered = ", ".join(f"{key}={value!r}" for key, value in data.items())
            message = f"{message} [{rendered}]"
        self._logger.exception(message, extra={"data": data}, stacklevel=2)


_loggers: dict[str, Logger] = {}


def get_logger(namespace: str) -> Logger:
    """Return the cached ``Logger`` for a namespace."""
    logger = _loggers.get(namespace)
    if logger is None:
        logger = Logger(namespace)
        _loggers[namespace] = logger
    return logger


class LoggingConfig:
    """Installs console logging for the ``termshell`` logger hierarchy."""

    _handler: logging.Handler | None = None

    @classmethod
    def configure(cls, settings: LoggerSettings, *, console: Console | None = None) -> None:
        root = logging.getLogger(ROOT_NAMESPACE)
        if cls._handler is not None:
            root.removeHandler(cls._handler)

        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=settings.show_path,
            rich_tracebacks=True,
            markup=False,
        )
        root.addHandler(handler)
        root.setLevel(_LEVELS.get(settings.level, logging.WARNING))
        root.propagate = False
        cls._handler = handler

    @classmethod
    def shutdown(cls) -> None:
        if cls._handler is None:
            return
        root = logging.getLogger(ROOT_NAMESPACE)
        root.removeHandler(cls._handler)
        root.setLevel(logging.NOTSET)
        root.propagate = True
        cls._handler = None
