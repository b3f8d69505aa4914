"""
Logging helper utilities for the imagescan CLI.

Provides consistent banner formatting for scan failures and OS advisories.
"""

import logging
from typing import List, Optional


def _log_section(
    level: int,
    title: str,
    messages: List[str],
    logger: Optional[logging.Logger],
    width: int,
) -> None:
    if logger is None:
        logger = logging.getLogger()

    logger.log(level, "=" * width)
    logger.log(level, title)
    for message in messages:
        logger.log(level, message or "")
    logger.log(level, "=" * width)


def log_error_section(
    title: str,
    messages: List[str],
    logger: Optional[logging.Logger] = None,
    width: int = 60
) -> None:
    """
    Log an error section with separator lines and multiple messages.

    Args:
        title: Title message for the error section
        messages: List of error messages to display (empty strings give blank lines)
        logger: Logger instance (defaults to root logger if not provided)
        width: Width of separator line in characters

    Examples:
        >>> log_error_section(
        ...     "Scan of alpine:3.11 failed",
        ...     ["failed analysis: unable to inspect alpine:3.11: No such image"]
        ... )
        ============================================================
        Scan of alpine:3.11 failed
        failed analysis: unable to inspect alpine:3.11: No such image
        ============================================================
    """
    _log_section(logging.ERROR, title, messages, logger, width)


def log_warning_section(
    title: str,
    messages: List[str],
    logger: Optional[logging.Logger] = None,
    width: int = 60
) -> None:
    """
    Log a warning section with separator lines and multiple messages.

    Examples:
        >>> log_warning_section(
        ...     "This OS version is no longer supported by the distribution",
        ...     ["alpine 3.10.9"]
        ... )
        ============================================================
        This OS version is no longer supported by the distribution
        alpine 3.10.9
        ============================================================
    """
    _log_section(logging.WARNING, title, messages, logger, width)


def log_info_header(
    message: str,
    logger: Optional[logging.Logger] = None,
    width: int = 60,
    char: str = "="
) -> None:
    """Log an informational header between separator lines of ``char``."""
    if logger is None:
        logger = logging.getLogger()

    logger.info(char * width)
    logger.info(message)
    logger.info(char * width)
