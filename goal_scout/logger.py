"""Logging for GoalScout.

Every module logs through the shared :data:`logger`; the CLI rebuilds its
handlers from the ``--log-*`` options via :func:`init_logging`.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, List, Optional, Union

LOGGER_NAME: Final[str] = "GoalScout"
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# crawl logs of long runs rotate at 5 MB, three files kept
_ROTATE_BYTES: Final[int] = 5 * 1024 * 1024
_ROTATE_BACKUPS: Final[int] = 3


def _handlers(log_format: str, log_file: Optional[Union[str, Path]]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(
                str(log_file), maxBytes=_ROTATE_BYTES, backupCount=_ROTATE_BACKUPS, encoding="utf-8"
            )
        )
    formatter = logging.Formatter(log_format)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: Union[int, str] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Attach console (and optional rotating file) output to the GoalScout logger.

    With ``replace_handlers`` the previous handlers are closed first, so
    repeated CLI invocations in one process never duplicate lines.
    """
    target = logging.getLogger(LOGGER_NAME)
    target.setLevel(level)
    if replace_handlers:
        for old in target.handlers[:]:
            target.removeHandler(old)
            old.close()
    for handler in _handlers(log_format, log_file):
        target.addHandler(handler)
    target.propagate = False
    return target


def init_logging(
    level: Union[int, str] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    return configure(level=level, log_file=log_file, log_format=log_format)


logger: logging.Logger = init_logging()

__all__ = ["LOGGER_NAME", "DEFAULT_FORMAT", "logger", "configure", "init_logging"]
