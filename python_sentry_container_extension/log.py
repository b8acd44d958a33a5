"""Logging setup for the extension, built on structlog over the standard library."""
import logging
import sys
from typing import IO, List, Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import Processor

from ._processors import (
    add_extension_name,
    nest_binding_fields,
    remove_processors_meta_safe,
    rename_standard_fields,
)

PACKAGE_LOGGER = __name__.rpartition(".")[0]

_handler: Optional[logging.Handler] = None


def binding_processors() -> List[Processor]:
    """Processors shared by structlog events and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        add_extension_name,
        rename_standard_fields,
        nest_binding_fields,
    ]


def configure_logging(log_level: int = logging.INFO, stream: Optional[IO[str]] = None) -> None:
    """
    Write the extension's logs as JSON lines.

    Only the package logger gets a handler; the host's root logger is left
    alone. Calling it again only updates the level.

    Args:
        log_level: The minimum level written for this package.
        stream: Where lines go, stdout by default.
    """
    global _handler

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(log_level)
    if _handler is not None:
        return

    structlog.configure(
        processors=binding_processors() + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    _handler = logging.StreamHandler(stream or sys.stdout)
    _handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=binding_processors(),
            processors=[remove_processors_meta_safe, structlog.processors.JSONRenderer(ensure_ascii=False)],
        )
    )
    package_logger.addHandler(_handler)


def get_logger(name: str) -> BoundLogger:
    return structlog.get_logger(name)


def reset_configuration() -> None:
    """
    Undo ``configure_logging``. Meant for tests.
    """
    global _handler

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        package_logger.removeHandler(_handler)
        _handler = None
    package_logger.setLevel(logging.NOTSET)
    structlog.reset_defaults()
