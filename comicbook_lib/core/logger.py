"""Logging configuration for the comic book generator.

This module provides centralized logging configuration and utilities.
"""

# Standard library imports
import functools
import logging
import sys
import time
from pathlib import Path
from typing import Optional


# Define log levels
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL
}


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """Set up logging configuration for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        format_string: Optional custom format string

    Returns:
        Configured logger instance
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logger = logging.getLogger("comicbook")
    logger.setLevel(LOG_LEVELS.get(level.upper(), logging.INFO))

    # Remove existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(format_string)

    # Console output goes to stderr so stdout stays free for the JSON result
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Failed to create log file {log_file}: {e}")

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("langchain").setLevel(logging.WARNING)
    logging.getLogger("langchain_core").setLevel(logging.WARNING)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (defaults to module name)

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"comicbook.{name}")
    return logging.getLogger("comicbook")


# Module-level logger instances for common modules
config_logger = get_logger("config")
graph_logger = get_logger("graph")


def track_progress(func):
    """Decorator that logs a workflow step's start, duration and failure.

    The wrapped step keeps its signature so LangGraph can still see the
    ``config`` parameter.
    """
    step_name = func.__name__

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        graph_logger.info(f"Executing step: {step_name}")
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            graph_logger.error(f"Error in step {step_name}: {e}")
            raise
        elapsed = time.time() - start_time
        graph_logger.info(f"Step {step_name} completed in {elapsed:.2f}s")
        return result

    return wrapper
