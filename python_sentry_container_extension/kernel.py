"""Event names and event shapes of the host framework's HTTP kernel."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class KernelEvents:
    REQUEST = "kernel.request"
    CONTROLLER = "kernel.controller"
    EXCEPTION = "kernel.exception"


KERNEL_EVENT_LISTENER = "kernel.event_listener"


@dataclass
class Request:
    path: str = "/"
    method: str = "GET"
    route: Optional[str] = None
    client_ip: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass
class KernelEvent:
    request: Request
    is_main_request: bool = True


@dataclass
class RequestEvent(KernelEvent):
    pass


@dataclass
class ControllerEvent(KernelEvent):
    controller: Any = None


@dataclass
class ExceptionEvent(KernelEvent):
    throwable: Optional[BaseException] = None
