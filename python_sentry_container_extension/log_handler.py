"""Bridge from standard logging records to Sentry events."""
import logging
from typing import Union

from sentry_sdk.integrations.logging import EventHandler

# Syslog-style names some configurations use, folded onto stdlib levels.
LEVEL_NAMES = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "NOTICE": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "ALERT": logging.CRITICAL,
    "EMERGENCY": logging.CRITICAL,
}


def to_log_level(level: Union[int, str]) -> int:
    """
    Convert a level name (any case) or number to a stdlib logging level.

    Raises:
        ValueError: If the name is unknown.
    """
    if isinstance(level, int):
        return level
    try:
        return LEVEL_NAMES[level.upper()]
    except KeyError:
        raise ValueError(f'Level "{level}" is not defined, use one of: {", ".join(LEVEL_NAMES)}') from None


class SentryLogHandler(EventHandler):
    """
    Sends records at or above ``level`` to Sentry as events.

    ``bubble`` decides whether records keep propagating to parent loggers
    once a logger has been attached with ``attach``.
    """

    def __init__(self, level: Union[int, str] = logging.DEBUG, bubble: bool = True):
        super().__init__(level=to_log_level(level))
        self.bubble = bubble

    def attach(self, logger: logging.Logger) -> logging.Logger:
        logger.addHandler(self)
        logger.propagate = self.bubble
        return logger
