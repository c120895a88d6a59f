"""Logging utilities for pvgit."""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "pvgit"


class PvLogger:
    """Logger with rich console output and a debug log file."""

    _handlers_setup = False

    def __init__(self, name: str = ROOT_LOGGER_NAME, level: Optional[str] = None):
        """Initialize logger with rich formatting.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); module
                loggers default to the root "pvgit" level
        """
        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(getattr(logging, level.upper()))
        elif name == ROOT_LOGGER_NAME:
            # Handlers filter by level; the file log keeps DEBUG records
            self.logger.setLevel(logging.DEBUG)

        # Handlers live on the root "pvgit" logger only
        if not PvLogger._handlers_setup:
            root_logger = logging.getLogger(ROOT_LOGGER_NAME)
            if not root_logger.handlers:
                self._setup_handlers(root_logger)
                PvLogger._handlers_setup = True

        if name != ROOT_LOGGER_NAME and not self.logger.handlers:
            self.logger.propagate = True

    def _setup_handlers(self, logger: logging.Logger) -> None:
        """Setup console and file handlers."""
        console = Console(stderr=True)

        console_handler = RichHandler(
            console=console,
            show_time=False,
            show_path=False,
            rich_tracebacks=True,
        )
        # Commands talk to the user through their own console; keep the
        # log handler for warnings unless --verbose lowers it.
        console_handler.setLevel(logging.WARNING)
        logger.addHandler(console_handler)

        log_dir = Path.home() / ".pvgit" / "logs"
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_dir / "pvgit.log")
        except OSError:
            logger.warning(f"Cannot write log file in {log_dir}; file logging disabled")
            return

        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message."""
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message."""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message."""
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log error message."""
        self.logger.error(message, **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log exception with traceback."""
        self.logger.exception(message, **kwargs)


logger = PvLogger()


def get_logger(name: Optional[str] = None, level: Optional[str] = None) -> PvLogger:
    """Get logger instance.

    Args:
        name: Logger name (defaults to 'pvgit')
        level: Log level

    Returns:
        Logger instance
    """
    if name is None:
        return logger
    return PvLogger(name, level)


def enable_verbose_logging() -> None:
    """Switch the pvgit loggers and the console handler to DEBUG."""
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)

    for name, child_logger in logging.Logger.manager.loggerDict.items():
        if isinstance(child_logger, logging.Logger) and name.startswith(ROOT_LOGGER_NAME):
            child_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(logging.DEBUG)

    root_logger.debug("Verbose logging enabled")
