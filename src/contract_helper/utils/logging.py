"""
Structured logging for contract-helper.

Every module obtains its logger through :func:`get_logger` and passes
contextual fields with ``extra={...}``. The library installs a
``NullHandler`` on the package logger so nothing is printed unless the
application configures logging itself or calls :func:`configure_logging`.

Example:
    ```python
    from contract_helper.utils.logging import configure_logging, get_logger

    configure_logging("DEBUG")
    _logger = get_logger(__name__)
    _logger.info("Flushing lazy calls", extra={"size": 3})
    ```
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union

ROOT_LOGGER_NAME = "contract_helper"

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime"}

logging.getLogger(ROOT_LOGGER_NAME).addHandler(logging.NullHandler())


class StructuredFormatter(logging.Formatter):
    """Formatter that appends ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not fields:
            return base
        context = " ".join(f"{key}={value!r}" for key, value in sorted(fields.items()))
        return f"{base} [{context}]"


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger nested under the package logger.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        Logger instance.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    stream: Optional[TextIO] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Handler:
    """
    Attach a stream handler with structured output to the package logger.

    Calling it again replaces the handler installed by a previous call.

    Args:
        level: Log level for the package logger.
        stream: Output stream (defaults to stderr).
        fmt: Format string passed to the formatter.

    Returns:
        The installed handler.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, "_contract_helper_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter(fmt))
    handler._contract_helper_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)
    return handler


def set_level(level: Union[int, str]) -> None:
    """Set the level of the package logger."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


def disable_logging() -> None:
    """Silence every logger under the package."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.CRITICAL + 1)


def enable_debug() -> None:
    """Shortcut for ``configure_logging(logging.DEBUG)``."""
    configure_logging(logging.DEBUG)
