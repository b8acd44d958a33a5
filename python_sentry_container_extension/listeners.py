"""Kernel event listeners that feed request context and errors to Sentry."""
from typing import Any

import sentry_sdk

from .kernel import ControllerEvent, ExceptionEvent, RequestEvent


class ErrorListener:
    def on_exception(self, event: ExceptionEvent) -> None:
        sentry_sdk.capture_exception(event.throwable)

    def on_kernel_exception(self, event: Any) -> None:
        """Older kernels expose the error as ``event.exception``."""
        sentry_sdk.capture_exception(event.exception)


class RequestListener:
    """Attaches the client address and the matched route to the current scope."""

    def on_request(self, event: RequestEvent) -> None:
        if not event.is_main_request:
            return
        if event.request.client_ip:
            sentry_sdk.set_user({"ip_address": event.request.client_ip})

    def on_controller(self, event: ControllerEvent) -> None:
        if not event.is_main_request or not event.request.route:
            return
        sentry_sdk.set_tag("route", event.request.route)

    on_kernel_request = on_request
    on_kernel_controller = on_controller


class SubRequestListener:
    def on_request(self, event: RequestEvent) -> None:
        if event.is_main_request:
            return
        sentry_sdk.add_breadcrumb(
            category="sub_request",
            message=event.request.route or event.request.path,
            data={"method": event.request.method, "path": event.request.path},
        )

    on_kernel_request = on_request
