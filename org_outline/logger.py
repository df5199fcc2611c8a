"""Logging helpers for org-outline.

The library only emits records; configuring handlers is left to the
application (the CLI does it for ``--verbose``).

Example:
    >>> from org_outline.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("Parsed %d sections", 3)
"""

from __future__ import annotations

import logging

ROOT_LOGGER_NAME = "org_outline"


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under ``org_outline``.

    Args:
        name: Logger name (typically __name__).

    Returns:
        logging.Logger instance.

    Example:
        >>> get_logger("arena").name
        'org_outline.arena'
    """
    if not (name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}.")):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
