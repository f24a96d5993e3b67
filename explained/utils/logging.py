"""Logging setup for the ``explain`` command line.

Every module of the package logs under the ``explained`` logger
namespace; this configures that logger once per CLI invocation from the
``logging`` section of config.yaml. Messages go to stderr; stdout is
reserved for the source ``explain build`` prints.
"""

import logging
import sys
from typing import Optional

LOGGER_NAME = "explained"


def setup_logging(
    level: str = "INFO",
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Configure the ``explained`` logger for one CLI run.

    Handlers from an earlier call are replaced, so repeated CLI
    invocations in one process (as under CliRunner) log each message once.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Format string for log messages.
        log_file: Optional file path for log output. If None, logs only
            to the console.

    Returns:
        The configured package logger.
    """
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.handlers.clear()

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    package_logger.setLevel(numeric_level)

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.debug("Logging initialized at level %s", level)
    return package_logger
