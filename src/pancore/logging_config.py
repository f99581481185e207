"""
Logging setup for pancore.

All package modules log through children of the ``pancore`` logger. The CLI
configures that logger once; library users can attach their own handlers
instead.
"""

import functools
import logging
import platform
import sys
import time
from pathlib import Path
from typing import Callable, Optional

PACKAGE_LOGGER = "pancore"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class PerformanceLogger:
    """Context manager logging the start, end and duration of a stage."""

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time: Optional[float] = None
        self.duration: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info("Starting %s", self.operation)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.start_time
        if exc_type is None:
            self.logger.info("Completed %s in %.3fs", self.operation, self.duration)
        else:
            self.logger.error("Failed %s after %.3fs: %s", self.operation, self.duration, exc_val)
        # Never suppress the exception.
        return False


def time_it(operation: Optional[str] = None) -> Callable:
    """Wrap a function in a ``PerformanceLogger`` on its module's logger."""

    def decorator(func: Callable) -> Callable:
        name = operation or func.__qualname__
        logger = logging.getLogger(func.__module__)

        @functools.wraps(func)
        def timed(*args, **kwargs):
            with PerformanceLogger(logger, name):
                return func(*args, **kwargs)

        return timed

    return decorator


def _attach(logger: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """Configure the ``pancore`` logger.

    Console output goes to stderr so that commands printing JSON keep stdout
    parseable. Calling this again replaces the previous handlers.

    Args:
        level: Level name; unknown names fall back to INFO
        log_file: Also write records to this file
        console_output: Attach a stderr handler
        format_string: Record format, ``DEFAULT_FORMAT`` when omitted

    Returns:
        The configured package logger
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console_output:
        _attach(logger, logging.StreamHandler(sys.stderr), numeric_level, formatter)
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        _attach(logger, logging.FileHandler(log_file, encoding="utf-8"), numeric_level, formatter)

    # Handlers live on the package logger only.
    logger.propagate = False
    return logger


def log_system_info(logger: logging.Logger) -> None:
    """Log interpreter and numerical library versions at DEBUG level."""
    import numpy
    import pandas
    import scipy

    from . import __version__

    logger.debug("pancore %s on %s (Python %s)", __version__, platform.platform(), platform.python_version())
    for module in (numpy, scipy, pandas):
        logger.debug("  %s %s", module.__name__, module.__version__)
