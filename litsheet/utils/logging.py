"""Logging helpers shared by every module.

Loggers render ``extra={...}`` fields as trailing ``key=value`` pairs so the
call sites can attach structured context without a custom adapter.
"""

import logging
import sys
from typing import Optional

_RESERVED_ATTRS = set(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class ExtraFieldsFormatter(logging.Formatter):
    """Formatter that appends non-standard record attributes."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not extras:
            return base
        rendered = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return f"{base} | {rendered}"


def _configure_root_handler() -> logging.Handler:
    root = logging.getLogger("litsheet")
    for handler in root.handlers:
        if getattr(handler, "_litsheet_handler", False):
            return handler

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ExtraFieldsFormatter(_DEFAULT_FORMAT))
    handler._litsheet_handler = True
    root.addHandler(handler)
    root.setLevel(logging.INFO)
    return handler


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a module logger under the ``litsheet`` hierarchy.

    Args:
        name: Logger name, usually ``__name__``
        level: Optional level name applied to the package root logger

    Returns:
        Configured logger instance
    """
    _configure_root_handler()
    if level:
        logging.getLogger("litsheet").setLevel(level.upper())
    return logging.getLogger(name)
