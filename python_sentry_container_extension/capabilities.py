"""
What the running host offers, resolved once before binding.

Older kernels dispatch to ``on_kernel_*`` listener methods and expose the
error on ``ExceptionEvent.exception``; newer ones use ``on_*`` and
``ExceptionEvent.throwable``. The log handler also needs both the Sentry
logging integration and structlog to be importable.
"""
import importlib
import importlib.util
from dataclasses import dataclass
from typing import Any, Optional

from .container import import_string

HANDLER_CLASS = "sentry_sdk.integrations.logging.EventHandler"
LOGGING_FRAMEWORK = "structlog"
DEFAULT_EVENTS_MODULE = "python_sentry_container_extension.kernel"


@dataclass(frozen=True)
class ListenerMethods:
    exception: str
    request: str
    controller: str


MODERN_LISTENER_METHODS = ListenerMethods(
    exception="on_exception",
    request="on_request",
    controller="on_controller",
)

LEGACY_LISTENER_METHODS = ListenerMethods(
    exception="on_kernel_exception",
    request="on_kernel_request",
    controller="on_kernel_controller",
)


def class_exists(path: str) -> bool:
    try:
        return isinstance(import_string(path), type)
    except ImportError:
        return False


def module_exists(name: str) -> bool:
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def detect_listener_methods(events: Any) -> ListenerMethods:
    """
    Pick the listener method names from the shape of the host's event classes.

    Each hook is decided on its own, since a kernel may have migrated some
    events and not others.
    """
    exception_event = getattr(events, "ExceptionEvent", None)
    modern_exception = exception_event is not None and (
        "throwable" in getattr(exception_event, "__dataclass_fields__", {})
        or hasattr(exception_event, "throwable")
    )
    return ListenerMethods(
        exception=(MODERN_LISTENER_METHODS if modern_exception else LEGACY_LISTENER_METHODS).exception,
        request=(
            MODERN_LISTENER_METHODS if hasattr(events, "RequestEvent") else LEGACY_LISTENER_METHODS
        ).request,
        controller=(
            MODERN_LISTENER_METHODS if hasattr(events, "ControllerEvent") else LEGACY_LISTENER_METHODS
        ).controller,
    )


@dataclass(frozen=True)
class HostCapabilities:
    listener_methods: ListenerMethods = MODERN_LISTENER_METHODS
    log_handler_available: bool = True
    logging_framework_available: bool = True

    @classmethod
    def detect(cls, events: Optional[Any] = None) -> "HostCapabilities":
        """
        Probe the host once.

        Args:
            events: The host's events namespace (a module or any object with
                event classes as attributes). Defaults to this package's kernel.
        """
        if events is None:
            events = importlib.import_module(DEFAULT_EVENTS_MODULE)

        return cls(
            listener_methods=detect_listener_methods(events),
            log_handler_available=class_exists(HANDLER_CLASS),
            logging_framework_available=module_exists(LOGGING_FRAMEWORK),
        )
