"""Logging utilities for mercury.

Every module obtains its logger through :func:`get_logger` so that all
optimizer output shares one namespace (``mercury.*``), one format and one
level switch.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

_DEFAULT_LEVEL = logging.WARNING
_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Settings applied to loggers created after configure_logging()
_stream: Optional[TextIO] = None
_format: str = _DEFAULT_FORMAT

_loggers: dict[str, logging.Logger] = {}


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def _make_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(_stream if _stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_format))
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create a logger for the given module name.

    Loggers are cached to avoid duplicate handlers. The logger name should
    typically be ``__name__`` from the calling module.

    Args:
        name: Logger name (typically ``__name__``). If None, returns the
            package logger ``mercury``.

    Returns:
        Configured logger instance.

    Example:
        >>> from mercury.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Starting Gauss-Newton iterations")
    """
    if name is None:
        name = "mercury"

    if name == "mercury" or name.startswith("mercury."):
        logger_name = name
    else:
        logger_name = f"mercury.{name}"

    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)
        logger.addHandler(_make_handler(_DEFAULT_LEVEL))
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the logging level for all mercury loggers.

    Args:
        level: Logging level (``logging.DEBUG``, ``logging.INFO``, ...) or
            its name ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL').
    """
    global _DEFAULT_LEVEL
    level = _coerce_level(level)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    _DEFAULT_LEVEL = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure logging for mercury.

    Replaces the handlers of every cached logger and records the settings
    for loggers created afterwards. It should typically be called once at
    application startup.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, uses the default
            ``[LEVEL] name: message`` layout.
        stream: Output stream (default: sys.stderr).

    Example:
        >>> import logging
        >>> from mercury.logging import configure_logging
        >>> configure_logging(level=logging.INFO)
    """
    global _DEFAULT_LEVEL, _stream, _format
    level = _coerce_level(level)
    _stream = stream
    _format = format_string if format_string is not None else _DEFAULT_FORMAT
    _DEFAULT_LEVEL = level

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(_make_handler(level))


__all__ = ["configure_logging", "get_logger", "set_log_level"]
