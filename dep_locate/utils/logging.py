"""Logging utilities for DepLocate."""

import logging
import sys
from pathlib import Path
from typing import Any, Optional
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


class DepLocateLogger:
    """Thin logger wrapper writing through a rich console handler."""

    def __init__(self, name: str, level: int = logging.INFO) -> None:
        self.logger = logging.getLogger(name)
        if self.logger.level == logging.NOTSET:
            self.logger.setLevel(level)
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Attach a rich stderr handler once per logger."""
        if any(isinstance(handler, RichHandler) for handler in self.logger.handlers):
            return

        console = Console(stderr=True, theme=Theme({
            "info": "cyan",
            "warning": "yellow",
            "error": "red",
            "critical": "red bold",
            "debug": "dim",
        }))

        handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter(fmt="%(name)s: %(message)s", datefmt="[%X]"))

        self.logger.addHandler(handler)
        self.logger.propagate = False

    def setLevel(self, level: int) -> None:
        self.logger.setLevel(level)

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""
        self.logger.info(msg, *args, extra=kwargs or None)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        self.logger.warning(msg, *args, extra=kwargs or None)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""
        self.logger.error(msg, *args, extra=kwargs or None)

    def debug(self, msg: str, *args: Any, exc_info: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        self.logger.debug(msg, *args, exc_info=exc_info, extra=kwargs or None)


def setup_logging(
    level: int = logging.WARNING,
    log_file: Optional[Path] = None,
    verbose: bool = False
) -> None:
    """Setup logging configuration for DepLocate.

    Args:
        level: Logging level
        log_file: Optional log file path
        verbose: Enable debug logging
    """
    if verbose:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
            *([logging.FileHandler(log_file)] if log_file else [])
        ]
    )
    logging.getLogger("dep_locate").setLevel(level)
    for name in list(logging.root.manager.loggerDict):
        if name.startswith("dep_locate."):
            logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> DepLocateLogger:
    """Get a DepLocate logger instance.

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    return DepLocateLogger(name)
