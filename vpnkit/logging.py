"""Leveled logging to an append-only file and a coloured console."""

from __future__ import annotations

import enum
import inspect
import os
import sys
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import IO, Optional, Union


class LogLevel(enum.IntEnum):
    """Severity of a log message."""

    NONE = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    DEBUG = 4
    TRACE = 5

    @classmethod
    def from_int(cls, value: int) -> "LogLevel":
        """Map an integer to a level; unknown values become ERROR."""
        try:
            return cls(value)
        except ValueError:
            return cls.ERROR


_COLORS = {
    LogLevel.ERROR: "\x1b[31m",
    LogLevel.WARNING: "\x1b[33m",
    LogLevel.INFO: "\x1b[32m",
    LogLevel.DEBUG: "\x1b[34m",
    LogLevel.TRACE: "\x1b[36m",
}
_WHITE = "\x1b[37m"
_RESET = "\x1b[0m"


class _State:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.file: Optional[IO[str]] = None
        self.level = LogLevel.ERROR
        self.console = False


_state = _State()


def init_logging(
    filename: Optional[Union[str, os.PathLike]] = None,
    level: LogLevel = LogLevel.ERROR,
    console: bool = False,
) -> None:
    """Configure the log file, threshold level and console output."""
    with _state.lock:
        if filename is not None:
            new_file = open(filename, "a", encoding="utf-8")
            if _state.file is not None:
                _state.file.close()
            _state.file = new_file
        _state.level = LogLevel(level)
        _state.console = bool(console)


def log_message(level: LogLevel, message: str) -> None:
    """Write a message tagged with time and the caller's location.

    Messages whose level is below the configured level are dropped.
    """
    with _state.lock:
        if level < _state.level:
            return

        frame = inspect.currentframe()
        caller = frame.f_back if frame is not None else None
        if caller is not None:
            location = f"{os.path.basename(caller.f_code.co_filename)}:{caller.f_lineno}"
            func = caller.f_code.co_name
        else:
            location, func = "?:0", "?"
        del frame, caller

        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        line = f"[{timestamp}] [{location}] [{func}] {message}"

        if _state.file is not None:
            _state.file.write(line + "\n")
            _state.file.flush()

        if _state.console:
            color = _COLORS.get(LogLevel(level), _WHITE)
            sys.stdout.write(f"{color}{line}{_RESET}\n")
            sys.stdout.flush()


def flush_logging() -> None:
    """Flush the log file, if one is open."""
    with _state.lock:
        if _state.file is not None:
            _state.file.flush()


def close_logging() -> None:
    """Close the log file; later messages go to the console only."""
    with _state.lock:
        if _state.file is not None:
            _state.file.close()
            _state.file = None


def rotate_logs(filename: Union[str, os.PathLike], max_size: int) -> bool:
    """Rename the file to ``<name>.<epoch seconds>`` once it reaches max_size.

    Returns True when the file was rotated.
    """
    path = Path(filename)
    if not path.exists():
        return False
    if path.stat().st_size < max_size:
        return False
    path.rename(f"{path}.{int(time.time())}")
    return True