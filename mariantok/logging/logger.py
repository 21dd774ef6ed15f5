# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for mariantok.

Every log entry is structured (JSON), timestamped, leveled, and carries the
source module. No human-only text logs, no print().

How this works:
  - We use Python's standard `logging` module under the hood, but replace the
    default formatter with JsonFormatter, which serializes every log record
    into a single JSON line.
  - One handler always goes to stdout, a second one optionally to a file.
  - `get_logger` is the only way to create loggers. Modules call it once at
    import time; `configure_logging` later re-levels every mariantok logger
    when a tokenizer is opened with explicit settings.

The JSON structure looks like:
  {"ts": "2026-...", "level": "INFO", "module": "mariantok.tokenizer.loader", "msg": "...", ...}
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "mariantok"


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Each log entry contains four mandatory fields:
      ts     — ISO 8601 UTC timestamp
      level  — log level name
      module — the logger name (usually the Python module path)
      msg    — the formatted message string

    Anything passed through the `extra` kwarg is merged into the JSON object
    as additional context, e.g. batch sizes or artifact paths.
    """

    _STANDARD_ATTRS = frozenset(
        {
            "name",
            "msg",
            "args",
            "created",
            "relativeCreated",
            "exc_info",
            "exc_text",
            "stack_info",
            "lineno",
            "funcName",
            "pathname",
            "filename",
            "module",
            "levelno",
            "levelname",
            "processName",
            "process",
            "threadName",
            "thread",
            "message",
            "msecs",
            "taskName",
        }
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in self._STANDARD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


def _set_file_handler(logger: logging.Logger, log_file: Path, level: int) -> None:
    """Point the logger at log_file, closing any handler still writing to another file."""
    target = os.path.abspath(log_file)
    current = None
    for handler in list(logger.handlers):
        if not isinstance(handler, logging.FileHandler):
            continue
        if handler.baseFilename == target and current is None:
            current = handler
            continue
        logger.removeHandler(handler)
        handler.close()
    if current is None:
        _attach_file_handler(logger, log_file, level)


def _attach_file_handler(logger: logging.Logger, log_file: Path, level: int) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(JsonFormatter())
    logger.addHandler(file_handler)


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Create a structured JSON logger.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a log file. If provided, logs go to both
                  stdout and the file. A later call with a different
                  path moves the logger to that file and closes the old one.

    Returns:
        A configured logging.Logger that outputs structured JSON.
    """
    logger = logging.getLogger(name)
    level = _resolve_log_level(log_level)
    logger.setLevel(level)

    # Calling get_logger twice for the same name must not stack handlers,
    # but it should still apply the new level.
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        if log_file is not None:
            _set_file_handler(logger, log_file, level)
        return logger

    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(JsonFormatter())
    logger.addHandler(stdout_handler)

    if log_file is not None:
        _attach_file_handler(logger, log_file, level)

    # Don't propagate to the root logger — we handle all output ourselves.
    logger.propagate = False

    return logger


def configure_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Apply one level (and optional log file) to every mariantok logger.

    Module loggers are created at import time with the default level, so
    this is how TokenizerSettings.log_level reaches them after the fact.
    """
    names = [
        name
        for name in list(logging.Logger.manager.loggerDict)
        if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + ".")
    ]
    for name in names:
        get_logger(name, log_level=log_level, log_file=log_file)
