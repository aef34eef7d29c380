"""Logging utilities for hmmlab.

Every module obtains its logger through :func:`get_logger` so that all
output is routed through one consistently formatted ``hmmlab.*`` hierarchy.
The default level can be overridden with the ``HMMLAB_LOG_LEVEL``
environment variable.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

_LEVEL_ENV_VAR = "HMMLAB_LOG_LEVEL"
_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

# Loggers handed out so far, keyed by full logger name
_loggers: dict[str, logging.Logger] = {}


def _resolve_level(level: int | str | None, fallback: int = logging.WARNING) -> int:
    """Translate a level name or number into a logging level."""
    if level is None:
        return fallback
    if isinstance(level, str):
        return getattr(logging, level.strip().upper(), fallback)
    return int(level)


_default_level = _resolve_level(os.getenv(_LEVEL_ENV_VAR))


def _make_handler(stream, level: int, format_string: str = _DEFAULT_FORMAT) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string))
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create the logger for a module.

    Args:
        name: Logger name, typically ``__name__``. Names outside the
            ``hmmlab`` namespace are prefixed with ``hmmlab.``. If None,
            the package root logger is returned.

    Returns:
        Logger writing ``[LEVEL] name: message`` lines to stderr.

    Example:
        >>> from hmmlab.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("alpha table computed")
    """
    if name is None:
        logger_name = "hmmlab"
    elif name == "hmmlab" or name.startswith("hmmlab."):
        logger_name = name
    else:
        logger_name = f"hmmlab.{name}"

    cached = _loggers.get(logger_name)
    if cached is not None:
        return cached

    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_default_level)
        logger.addHandler(_make_handler(sys.stderr, _default_level))
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the level of every hmmlab logger and of loggers created later.

    Args:
        level: ``logging.DEBUG``, ``logging.INFO``, ... or the level name.
    """
    global _default_level
    _default_level = _resolve_level(level)

    for logger in _loggers.values():
        logger.setLevel(_default_level)
        for handler in logger.handlers:
            handler.setLevel(_default_level)


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[object] = None,
) -> None:
    """Reconfigure level, format and destination of all hmmlab loggers.

    Existing handlers are replaced, so this is meant to be called once at
    application start-up (or from tests capturing output).

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, uses the default.
        stream: Output stream (default: sys.stderr).
    """
    global _default_level
    _default_level = _resolve_level(level)
    stream = sys.stderr if stream is None else stream
    format_string = format_string or _DEFAULT_FORMAT

    for logger in _loggers.values():
        logger.setLevel(_default_level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(_make_handler(stream, _default_level, format_string))


__all__ = ["get_logger", "set_log_level", "configure_logging"]
