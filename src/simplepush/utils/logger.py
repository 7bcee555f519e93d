# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Logging setup for the SimplePush client.

Every client module logs through :func:`get_logger`, which attaches one managed
handler to the root logger the first time it is called.  Hosts that want other
settings call :func:`setup_logger` (with ``force=True`` to replace an existing
handler).

Three output modes:

* colored text, the default on a terminal;
* plain text, when ``NO_COLOR`` is set;
* one JSON object per line, when ``SIMPLEPUSH_LOG_JSON`` is truthy.

Call sites pass structured fields as ``extra={"context": {...}}``.  JSON records
carry them under ``context``; text records ignore them.  A ``duration_ms``
attribute is rendered as a ``[12.35 ms]`` suffix in text mode.
"""

from __future__ import annotations

import logging
import os
from typing import Any, ClassVar, Final

import orjson as oj


DEFAULT_LOGGER_NAME: Final[str] = "simplepush"
ENV_LOG_LEVEL: Final[str] = "SIMPLEPUSH_LOG_LEVEL"
ENV_LOG_JSON: Final[str] = "SIMPLEPUSH_LOG_JSON"
ENV_NO_COLOR: Final[str] = "NO_COLOR"
DEFAULT_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"

RESET: Final[str] = "\033[0m"
NAME_COLOR: Final[str] = "\033[94m"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class PlainFormatter(logging.Formatter):
    """Text formatter that appends ``duration_ms`` when a record carries it."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        duration = getattr(record, "duration_ms", None)
        if duration is None:
            return text
        return f"{text} [{float(duration):.2f} ms]"


class ColoredFormatter(PlainFormatter):
    """Text formatter that colors the level and logger name."""

    LEVEL_COLORS: ClassVar[dict[int, str]] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[1;31m",
        logging.CRITICAL: "\033[1;35m",
    }

    def format(self, record: logging.LogRecord) -> str:
        levelname, name = record.levelname, record.name
        record.levelname = f"{self.LEVEL_COLORS.get(record.levelno, '')}{levelname}{RESET}"
        record.name = f"{NAME_COLOR}{name}{RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers see the same record.
            record.levelname, record.name = levelname, name


class StructuredJSONFormatter(logging.Formatter):
    """Render each record as a single line of JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        context: dict[str, Any] = {}
        for key, value in vars(record).items():
            if key == "context" and isinstance(value, dict):
                context.update(value)
            elif key not in _RECORD_ATTRS and key != "context":
                context.setdefault(key, value)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return oj.dumps(payload, default=str).decode()


class SimplePushHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Marker for the handler owned by :func:`setup_logger`."""


def _managed_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in root.handlers if isinstance(handler, SimplePushHandler)]


def _env_flag(key: str) -> bool:
    return os.getenv(key, "").strip().lower() in {"1", "true", "yes", "on"}


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(ENV_LOG_LEVEL) or logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    *,
    level: int | str | None = None,
    use_json: bool | None = None,
    use_color: bool | None = None,
    fmt: str = DEFAULT_FORMAT,
    datefmt: str | None = DEFAULT_DATEFMT,
    force: bool = False,
) -> None:
    """Attach the managed handler to the root logger.

    Args:
        level: Log level; defaults to ``SIMPLEPUSH_LOG_LEVEL``, then INFO.
            Unknown names fall back to INFO.
        use_json: Emit JSON lines; defaults to ``SIMPLEPUSH_LOG_JSON``.
        use_color: Color text output; defaults to on unless ``NO_COLOR`` is set.
        fmt: Format string for text output.
        datefmt: Timestamp format for every mode.
        force: Replace a managed handler that is already attached.
    """
    root = logging.getLogger()
    existing = _managed_handlers(root)
    if existing and not force:
        return
    for handler in existing:
        root.removeHandler(handler)
        handler.close()

    resolved_level = _resolve_level(level)
    if use_json is None:
        use_json = _env_flag(ENV_LOG_JSON)
    if use_color is None:
        use_color = not use_json and not os.getenv(ENV_NO_COLOR)

    formatter: logging.Formatter
    if use_json:
        formatter = StructuredJSONFormatter(datefmt=datefmt)
    elif use_color:
        formatter = ColoredFormatter(fmt, datefmt=datefmt)
    else:
        formatter = PlainFormatter(fmt, datefmt=datefmt)

    handler = SimplePushHandler()
    handler.setLevel(resolved_level)
    handler.setFormatter(formatter)
    root.setLevel(resolved_level)
    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the logger *name* (default ``simplepush``), configuring logging on first use."""
    if not _managed_handlers(logging.getLogger()):
        setup_logger()
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "ColoredFormatter",
    "PlainFormatter",
    "SimplePushHandler",
    "StructuredJSONFormatter",
    "get_logger",
    "setup_logger",
]
