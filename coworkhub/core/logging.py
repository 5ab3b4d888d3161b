"""Centralized logging helpers for the application."""

import logging

from coworkhub.core.config import settings

LOGGER_NAMESPACE = "coworkhub"


def setup_logging(level: str | None = None) -> logging.Logger:
    """Return the application root logger with its level applied.

    Handlers and formatters are installed by ``LOGGING_CONFIG``; this only
    adjusts the level so it can be driven from ``Settings.log_level``.

    Args:
        level: The log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to ``settings.log_level``.

    Returns:
        The configured root application logger.
    """
    logger = logging.getLogger(LOGGER_NAMESPACE)
    level_name = (level or settings.log_level).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger under the coworkhub namespace.

    Usage:
        from coworkhub.core.logging import get_logger
        logger = get_logger(__name__)
        logger.info("Auto-matching completed")

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        A child logger with the given name.
    """
    if name.startswith(f"{LOGGER_NAMESPACE}.") or name == LOGGER_NAMESPACE:
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
