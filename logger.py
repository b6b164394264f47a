"""
Logging Module for Strategy Portfolio Coverage Optimization.

Every module logs through a named Logger from get_logger(__name__). Solver
progress goes to INFO, constraint counts to DEBUG, recoverable input problems
(missing labels, default composite names, infeasible grid points) to WARNING.
The sweep CLI sets the level and an optional log file once, for all loggers,
through configure_logging().

Usage:
    from logger import get_logger

    logger = get_logger(__name__)
    logger.progress("Optimizing for threshold 60.01", 1, 3)
    logger.debug("Added 12 selection link constraints")
    logger.warning("Missing species label information")
"""

import sys
import traceback
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Optional, TextIO


class LogLevel(IntEnum):
    """Log levels, most severe first; a logger writes every level <= its own."""
    ERROR = 0
    WARNING = 1
    INFO = 2
    DEBUG = 3

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Parse a level name such as "debug" or "WARNING"."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Unknown log level '{name}'. Choose from: "
                f"{', '.join(level.name.lower() for level in cls)}"
            ) from None


class Logger:
    """
    Named logger writing timestamped lines to a stream and an optional file.

    The stream defaults to whatever sys.stderr is when a line is written.
    """

    def __init__(
        self,
        name: str,
        level: LogLevel = LogLevel.INFO,
        file_path: Optional[Path] = None,
        stream: Optional[TextIO] = None
    ):
        """
        Initialize logger.

        Args:
            name: Logger name (typically module name)
            level: Most verbose level that is still written
            file_path: Optional file path for log output
            stream: Output stream (default: stderr at write time)
        """
        self.name = name
        self.level = level
        self.stream = stream
        self.file_path: Optional[Path] = None
        self._file_handle: Optional[TextIO] = None
        self.attach_file(file_path)

    def attach_file(self, file_path: Optional[Path]) -> None:
        """
        Mirror output to a log file, closing any file already attached.

        Args:
            file_path: File to append to (None to stop mirroring)
        """
        self.close()
        self.file_path = file_path
        if file_path is None:
            return
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(file_path, 'a', encoding='utf-8')
        except OSError as e:
            self._emit(LogLevel.ERROR, f"Failed to open log file {file_path}: {e}")

    def _emit(self, level: LogLevel, message: str) -> None:
        """
        Format and write one message regardless of the configured level.

        Args:
            level: Log level shown in the line
            message: Message to write
        """
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        line = f"[{timestamp}] {level.name.ljust(7)} [{self.name}] {message}"
        print(line, file=self.stream if self.stream is not None else sys.stderr)

        if self._file_handle:
            try:
                self._file_handle.write(line + '\n')
                self._file_handle.flush()
            except OSError as e:
                print(f"Error writing to log file {self.file_path}: {e}", file=sys.stderr)

    def is_enabled(self, level: LogLevel) -> bool:
        """
        Check whether messages at a level would be written.

        Args:
            level: Log level to check

        Returns:
            True if level is within the configured level
        """
        return level <= self.level

    def log(self, level: LogLevel, message: str) -> None:
        """
        Write message to output if level is sufficient.

        Args:
            level: Log level of message
            message: Message to write
        """
        if self.is_enabled(level):
            self._emit(level, message)

    def debug(self, message: str) -> None:
        """Log debug message."""
        self.log(LogLevel.DEBUG, message)

    def info(self, message: str) -> None:
        """Log info message."""
        self.log(LogLevel.INFO, message)

    def warning(self, message: str) -> None:
        """Log warning message."""
        self.log(LogLevel.WARNING, message)

    def error(self, message: str) -> None:
        """Log error message."""
        self.log(LogLevel.ERROR, message)

    def exception(self, message: str) -> None:
        """
        Log an error followed by the traceback of the exception being handled.

        Outside an ``except`` block only the message is written.

        Args:
            message: Error message written before the traceback
        """
        if sys.exc_info()[0] is None:
            self.error(message)
        else:
            self.error(f"{message}\n{traceback.format_exc().rstrip()}")

    def section(self, title: str, width: int = 80) -> None:
        """
        Log a section header (always shown, regardless of level).

        Args:
            title: Section title
            width: Width of separator line
        """
        for line in ("=" * width, title.center(width), "=" * width):
            self._emit(LogLevel.INFO, line)

    def progress(self, message: str, current: int, total: int) -> None:
        """
        Log progress message with counter.

        Args:
            message: Progress message
            current: Current item number
            total: Total number of items
        """
        percentage = (current / total * 100) if total > 0 else 0
        self.info(f"[{current}/{total} - {percentage:.1f}%] {message}")

    def close(self) -> None:
        """Close log file if open."""
        if self._file_handle:
            try:
                self._file_handle.close()
            finally:
                self._file_handle = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


# Loggers by name, and the settings new loggers start from
_loggers: dict[str, Logger] = {}
_global_level: LogLevel = LogLevel.INFO
_global_log_file: Optional[Path] = None


def get_logger(
    name: str,
    level: Optional[LogLevel] = None,
    file_path: Optional[Path] = None
) -> Logger:
    """
    Get or create a logger instance.

    Args:
        name: Logger name (typically __name__)
        level: Log level (uses global if not specified)
        file_path: Optional log file path (uses global if not specified)

    Returns:
        Logger instance

    level and file_path only apply when the logger is created.
    """
    if name not in _loggers:
        _loggers[name] = Logger(
            name,
            level if level is not None else _global_level,
            file_path if file_path is not None else _global_log_file,
        )
    return _loggers[name]


def set_global_level(level: LogLevel) -> None:
    """Set the level of every existing and future logger."""
    global _global_level
    _global_level = level
    for logger in _loggers.values():
        logger.level = level


def set_global_log_file(file_path: Optional[Path]) -> None:
    """
    Set global log file for all loggers.

    Args:
        file_path: Path to log file (None to disable file logging)
    """
    global _global_log_file
    _global_log_file = file_path
    for logger in _loggers.values():
        logger.attach_file(file_path)


def configure_logging(
    level: LogLevel = LogLevel.INFO,
    file_path: Optional[Path] = None,
    verbose: bool = False
) -> None:
    """
    Configure global logging settings.

    Args:
        level: Default log level
        file_path: Optional log file path
        verbose: If True, set level to DEBUG
    """
    set_global_level(LogLevel.DEBUG if verbose else level)
    set_global_log_file(file_path)


def close_all_loggers() -> None:
    """Close the log file of every logger."""
    for logger in _loggers.values():
        logger.close()
