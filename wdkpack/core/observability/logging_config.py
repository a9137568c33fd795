"""
Logging setup for the wdkpack CLI.

main.py calls ``setup_logging`` once, before any command runs. Console
lines mimic cargo's own diagnostics (``warning: ...``) so wdkpack output
reads naturally next to the cargo and WDK tool output it interleaves with.

Level sources, highest first:
    --debug / -v / -q  >  WDKPACK_LOG_LEVEL  >  INFO

WDKPACK_LOG_FILE adds a full-detail file log; WDKPACK_LOG_FILE_LEVEL
sets its level independently of the console.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LOG_LEVEL = "WDKPACK_LOG_LEVEL"
ENV_LOG_FILE = "WDKPACK_LOG_FILE"
ENV_LOG_FILE_LEVEL = "WDKPACK_LOG_FILE_LEVEL"

_FMT_CONSOLE = "%(levelname)s: %(message)s"
_FMT_DETAIL = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d: %(message)s"
_DATEFMT_CONSOLE_DETAIL = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


class CargoStyleFormatter(logging.Formatter):
    """``warning: message``, matching cargo's lowercase level prefixes."""

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        record.levelname = original.lower()
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console (and optional file) handlers on the root logger.

    Args:
        level: Console level name. None falls back to ``WDKPACK_LOG_LEVEL``,
            then INFO.
        log_file: Path of an extra log file, or None for console only.
        log_file_level: Level for the file. Defaults to the console level.
    """
    console_level = level_number(level or os.environ.get(ENV_LOG_LEVEL))

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    if console_level <= logging.DEBUG:
        console.setFormatter(logging.Formatter(_FMT_DETAIL, datefmt=_DATEFMT_CONSOLE_DETAIL))
    else:
        console.setFormatter(CargoStyleFormatter(_FMT_CONSOLE))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = level_number(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_DETAIL, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(root_level)
    logging.raiseExceptions = False


def level_number(name: str | None) -> int:
    """Numeric level for a name such as ``debug``; unknown names mean INFO."""
    if not name:
        return logging.INFO
    numeric = logging.getLevelName(name.upper())
    return numeric if isinstance(numeric, int) else logging.INFO
