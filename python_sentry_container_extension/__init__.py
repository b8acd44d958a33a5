"""
python-sentry-container-extension: wires the Sentry SDK into a service container.

The extension reads the ``sentry`` configuration and turns it into service
definitions, setter calls, listener tags and parameters. The host compiles the
container and builds services from it.

Basic Usage:
    from python_sentry_container_extension import SentryExtension

    container = SentryExtension().load([{"dsn": "https://key@sentry.example/1"}])
    container.compile()
    container.get("sentry.client")
"""
from .capabilities import HostCapabilities, ListenerMethods
from .configuration import SentryConfig, process_configuration
from .container import ContainerBuilder, Definition, Reference
from .errors import ExtensionError, InvalidConfigurationError, LogicError
from .extension import SentryExtension
from .log import configure_logging, get_logger, reset_configuration

__version__ = "0.1.0"
__all__ = [
    "ContainerBuilder",
    "Definition",
    "ExtensionError",
    "HostCapabilities",
    "InvalidConfigurationError",
    "ListenerMethods",
    "LogicError",
    "Reference",
    "SentryConfig",
    "SentryExtension",
    "configure_logging",
    "get_logger",
    "process_configuration",
    "reset_configuration",
]
