#!/usr/bin/env python3
"""Structured logging for tilefilter.

Log calls take keyword context that is rendered after the message as
``key=value`` pairs:

    rules loaded | rule_file=rules.yaml rules=5

Context can also be pushed for a block of code with :meth:`Logger.add_context`.
The pushed context is kept per thread, so decoder workers sharing one logger
only see the context they pushed themselves.

Example:
    >>> logger = get_logger()
    >>> with logger.add_context(rule_file="rules.yaml"):
    ...     logger.debug("Loaded rule set", rules=5)
"""

import logging
import logging.handlers
import threading
from contextlib import contextmanager
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from tilefilter.core.validators import validate_logging_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation defaults for log files
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5


class LogLevel(IntEnum):
    """Log levels matching Python's logging module."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def parse(cls, level: Union["LogLevel", int, str]) -> "LogLevel":
        """Parse a level from a member, a numeric level or a name (any case).

        Raises:
            KeyError: If a name matches no level
        """
        if isinstance(level, str):
            return cls[level.upper()]
        return cls(level)


def _formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


class Logger:
    """Wrapper around a stdlib logger adding key=value context.

    The combined context is also attached to each record as
    ``record.context`` for handlers that want it unformatted.
    """

    _local = threading.local()

    def __init__(
        self,
        name: str = "tilefilter",
        level: Union[LogLevel, str] = LogLevel.INFO,
        handlers: Optional[List[logging.Handler]] = None,
    ):
        """Initialize logger.

        Args:
            name: Name of the underlying stdlib logger
            level: Minimum level to output
            handlers: Handlers to attach (a stderr handler by default)
        """
        self.name = name
        self.logger = logging.getLogger(name)
        self.set_level(level)

        if handlers is None:
            console = logging.StreamHandler()
            console.setFormatter(_formatter())
            handlers = [console]

        # Loggers are process-wide; replace whatever an earlier instance attached
        self.logger.handlers.clear()
        for handler in handlers:
            self.logger.addHandler(handler)
        self.logger.propagate = False

    @staticmethod
    def create_file_handler(
        filename: Union[str, Path],
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
    ) -> logging.handlers.RotatingFileHandler:
        """Create a rotating file handler using the tilefilter format.

        Args:
            filename: Path to log file
            max_bytes: Size at which the file is rotated
            backup_count: Number of rotated files to keep
        """
        handler = logging.handlers.RotatingFileHandler(
            filename, maxBytes=max_bytes, backupCount=backup_count
        )
        handler.setFormatter(_formatter())
        return handler

    def add_handler(self, handler: logging.Handler) -> None:
        self.logger.addHandler(handler)

    def set_level(self, level: Union[LogLevel, str]) -> None:
        self.logger.setLevel(LogLevel.parse(level))

    def get_level(self) -> LogLevel:
        return LogLevel(self.logger.level)

    def is_enabled_for(self, level: Union[LogLevel, str]) -> bool:
        return self.logger.isEnabledFor(LogLevel.parse(level))

    @classmethod
    def _stack(cls) -> List[Dict[str, Any]]:
        stack = getattr(cls._local, "stack", None)
        if stack is None:
            stack = cls._local.stack = []
        return stack

    @contextmanager
    def add_context(self, **context) -> Iterator[None]:
        """Attach context to every message logged by this thread in the block.

        Inner blocks add to (and may shadow) the context of outer ones.

        Example:
            >>> with logger.add_context(rule_file="rules.yaml"):
            ...     logger.info("Loading rules")
        """
        stack = self._stack()
        stack.append(context)
        try:
            yield
        finally:
            stack.pop()

    def _log(self, level: LogLevel, msg: str, context: Mapping[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return

        combined: Dict[str, Any] = {}
        for pushed in self._stack():
            combined.update(pushed)
        combined.update(context)

        if combined:
            msg = f"{msg} | " + " ".join(f"{k}={v}" for k, v in combined.items())
        self.logger.log(level, msg, extra={"context": combined})

    def debug(self, msg: str, **context) -> None:
        self._log(LogLevel.DEBUG, msg, context)

    def info(self, msg: str, **context) -> None:
        self._log(LogLevel.INFO, msg, context)

    def warning(self, msg: str, **context) -> None:
        self._log(LogLevel.WARNING, msg, context)

    def error(self, msg: str, **context) -> None:
        self._log(LogLevel.ERROR, msg, context)


_global_logger: Optional[Logger] = None


def get_logger(name: str = "tilefilter") -> Logger:
    """Return the global logger, creating it on first use.

    Asking for a different name replaces the global logger.
    """
    global _global_logger
    if _global_logger is None or _global_logger.name != name:
        _global_logger = Logger(name=name)
    return _global_logger


def set_global_logger(logger: Optional[Logger]) -> None:
    """Install logger as the global logger (None resets it)."""
    global _global_logger
    _global_logger = logger


def configure_logging(settings: Mapping[str, Any], name: str = "tilefilter") -> Logger:
    """Build the global logger from the ``logging`` section of a rule file.

    Recognized keys: ``level`` (default INFO), ``file`` (adds a rotating
    file handler), ``max_bytes`` and ``backup_count`` (rotation of that file).

    Args:
        settings: The ``logging`` section
        name: Logger name

    Returns:
        The configured logger, also installed as the global logger

    Raises:
        ValidationError: If a setting is unknown or invalid
    """
    validate_logging_config(dict(settings))
    logger = Logger(name=name, level=settings.get("level") or LogLevel.INFO)

    log_file = settings.get("file")
    if log_file:
        logger.add_handler(
            Logger.create_file_handler(
                log_file,
                max_bytes=settings.get("max_bytes") or DEFAULT_MAX_BYTES,
                backup_count=settings.get("backup_count") or DEFAULT_BACKUP_COUNT,
            )
        )

    set_global_logger(logger)
    return logger
