"""Structlog processors that shape the extension's log lines."""
from typing import Any, Dict

from structlog.types import EventDict, WrappedLogger

STANDARD_FIELDS = {"timestamp", "log_level", "logger", "message", "extension"}

EXTENSION_NAME = "sentry"


def remove_processors_meta_safe(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Remove structlog's internal metadata fields (_record, _from_structlog)
    without raising when they are missing.
    """
    event_dict.pop("_record", None)
    event_dict.pop("_from_structlog", None)
    return event_dict


def add_extension_name(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag every log line with the container extension that emitted it."""
    event_dict.setdefault("extension", EXTENSION_NAME)
    return event_dict


def rename_standard_fields(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Rename 'event' to 'message' and 'level' to an upper-cased 'log_level'.

    Args:
        logger: The wrapped logger instance
        method_name: The name of the method called (e.g., 'info', 'debug')
        event_dict: The current state of the log entry

    Returns:
        The modified event dictionary
    """
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")

    if "level" in event_dict:
        event_dict["log_level"] = event_dict.pop("level").upper()

    return event_dict


def nest_binding_fields(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """
    Move binding details (service ids, option names, tags...) under 'details'
    so the root of each line keeps a fixed shape.
    """
    details: Dict[str, Any] = {}

    for key in list(event_dict.keys()):
        if key.startswith("_"):
            continue
        if key not in STANDARD_FIELDS:
            details[key] = event_dict.pop(key)

    if details:
        event_dict["details"] = details

    return event_dict
