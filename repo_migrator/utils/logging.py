"""
Logging module for the repository migrator
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any

LOGGER_NAME = "repo_migrator"

_CREDENTIAL_PATTERN = re.compile(r"(https?://)[^/@\s]+@")


class EnhancedFormatter(logging.Formatter):
    """
    Formatter that switches to a detailed layout in verbose mode, where it
    also appends ``[stage=...]`` for records carrying a pipeline stage.
    Credentials embedded in URLs are redacted in every mode.
    """

    def __init__(self, fmt=None, datefmt=None, style="%", verbose=False):
        if verbose:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
        elif not fmt:
            fmt = "%(asctime)s - %(levelname)s - %(message)s"

        super().__init__(fmt, datefmt, style)
        self.verbose = verbose

    def format(self, record):
        result = super().format(record)
        if self.verbose:
            stage = getattr(record, "stage", None)
            if stage:
                result += f" [stage={stage}]"
        return redact(result)


def redact(text: str) -> str:
    """Strip credentials embedded in URLs (``https://token@host``)."""
    return _CREDENTIAL_PATTERN.sub(r"\1***@", text)


def setup_main_log_file(output_dir: str) -> logging.FileHandler:
    """
    Set up a file handler for the main log file that contains records not
    tied to one repository.

    Args:
        output_dir: The output directory path

    Returns:
        The file handler for the main log file
    """
    os.makedirs(output_dir, exist_ok=True)
    log_file = os.path.join(output_dir, "migration.log")

    file_handler = logging.FileHandler(log_file, mode="w")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(EnhancedFormatter("%(asctime)s - %(levelname)s - %(message)s"))

    class MainLogFilter(logging.Filter):
        def filter(self, record):
            return not getattr(record, "repository", None)

    file_handler.addFilter(MainLogFilter())

    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(file_handler)
    logger.info(f"Main log file created at: {log_file}")
    return file_handler


def setup_logger(verbose: bool = False, output_dir: str | None = None) -> logging.Logger:
    """
    Set up and return the logger with appropriate formatting.

    Args:
        verbose: If True, set console handler to DEBUG level; otherwise INFO level
        output_dir: Optional output directory for the main log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Clear any existing handlers to prevent duplicate messages
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(EnhancedFormatter(verbose=verbose))
    logger.addHandler(console_handler)

    if output_dir:
        setup_main_log_file(output_dir)

    # GitPython and urllib3 are chatty at DEBUG
    logging.getLogger("git").setLevel(logging.INFO)
    logging.getLogger("urllib3").setLevel(logging.INFO)

    return logger


def setup_repository_logger(output_dir: str, repository: str) -> logging.FileHandler:
    """
    Set up a file handler for repository-specific logging.

    Args:
        output_dir: The output directory path
        repository: The target repository name

    Returns:
        The file handler for the repository log
    """
    logs_dir = os.path.join(output_dir, "repository_logs")
    os.makedirs(logs_dir, exist_ok=True)
    log_file = os.path.join(logs_dir, f"{repository}_migration.log")

    file_handler = logging.FileHandler(log_file, mode="w")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(EnhancedFormatter(verbose=True))

    class RepositoryFilter(logging.Filter):
        def filter(self, record):
            return getattr(record, "repository", None) == repository

    file_handler.addFilter(RepositoryFilter())

    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(file_handler)
    logger.debug(
        f"Repository log file created at: {log_file}", extra={"repository": repository}
    )
    return file_handler


def close_handler(handler: logging.Handler) -> None:
    """Flush, close and detach a handler created by this module."""
    logger = logging.getLogger(LOGGER_NAME)
    handler.flush()
    handler.close()
    logger.removeHandler(handler)


def log_with_context(level: int, message: str, **kwargs: Any) -> None:
    """
    Log a message with additional context information.

    Args:
        level: The logging level (e.g., logging.INFO)
        message: The log message
        **kwargs: Additional context to include in the log record
    """
    extras = {k: v for k, v in kwargs.items() if v is not None}
    exc_info = extras.pop("exc_info", None)
    logger = logging.getLogger(LOGGER_NAME)
    logger.log(level, message, extra=extras, exc_info=exc_info)


def get_logger():
    """Get the repo_migrator logger, creating it with defaults if needed."""
    migrator_logger = logging.getLogger(LOGGER_NAME)
    if not migrator_logger.handlers:
        migrator_logger.setLevel(logging.INFO)
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        handler.setFormatter(EnhancedFormatter())
        migrator_logger.addHandler(handler)
    return migrator_logger


# Module logger - will be properly initialized when setup_logger is called
logger = get_logger()
