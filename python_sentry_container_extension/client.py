"""Turns a populated ``SentryOptions`` into an initialised Sentry client."""
from typing import Any, Callable, Dict, List, Optional

import sentry_sdk
from sentry_sdk.integrations import Integration, iter_default_integrations

from .container import import_string
from .error_types import level_flag
from .log import get_logger
from .options import SentryOptions

SDK_IDENTIFIER = "sentry.python.container-extension"

# Options understood by ``sentry_sdk.init`` under the same name.
SDK_PASSTHROUGH_OPTIONS = (
    "dsn",
    "attach_stacktrace",
    "environment",
    "http_proxy",
    "in_app_exclude",
    "in_app_include",
    "max_breadcrumbs",
    "max_request_body_size",
    "max_value_length",
    "project_root",
    "release",
    "sample_rate",
    "send_default_pii",
    "server_name",
)

logger = get_logger(__name__)


def _resolve_callback(callback: Any) -> Optional[Callable[..., Any]]:
    if isinstance(callback, str):
        return import_string(callback)
    return callback


class ClientBuilder:
    def __init__(self, options: SentryOptions):
        self.options = options
        self.sdk_identifier: Optional[str] = None
        self.sdk_version: Optional[str] = None

    def set_sdk_identifier(self, identifier: str) -> None:
        self.sdk_identifier = identifier

    def set_sdk_version(self, version: str) -> None:
        self.sdk_version = version

    def get_integrations(self) -> List[Integration]:
        """
        Resolve the integration list configured through ``set_integrations``.

        SDK defaults are instantiated here, when ``default_integrations`` is
        enabled, so the configured filter can drop or replace them.
        """
        defaults: List[Integration] = []
        if self.options.get("default_integrations", True):
            defaults = [cls() for cls in iter_default_integrations(False)]

        integration_filter = self.options.get("integrations")
        if integration_filter is None:
            return defaults
        return integration_filter(defaults)

    def get_before_send(self) -> Optional[Callable[..., Any]]:
        callback = _resolve_callback(self.options.get("before_send"))
        error_types = self.options.get("error_types")
        if error_types is None:
            return callback

        def before_send(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
            if not error_types & level_flag(event.get("level", "error")):
                return None
            return callback(event, hint) if callback is not None else event

        return before_send

    def get_init_kwargs(self) -> Dict[str, Any]:
        kwargs = {name: self.options.get(name) for name in SDK_PASSTHROUGH_OPTIONS if name in self.options}
        kwargs["integrations"] = self.get_integrations()
        kwargs["default_integrations"] = False

        before_send = self.get_before_send()
        if before_send is not None:
            kwargs["before_send"] = before_send
        before_breadcrumb = _resolve_callback(self.options.get("before_breadcrumb"))
        if before_breadcrumb is not None:
            kwargs["before_breadcrumb"] = before_breadcrumb
        return kwargs

    def initialize(self) -> Any:
        """Initialise the SDK and apply global tags. Returns the active client."""
        sentry_sdk.init(**self.get_init_kwargs())

        for key, value in self.options.get("tags", {}).items():
            sentry_sdk.set_tag(key, value)
        if self.sdk_identifier:
            sentry_sdk.set_tag("sentry.extension", f"{self.sdk_identifier}/{self.sdk_version}")

        logger.info("Sentry client initialised", dsn_configured=bool(self.options.get_dsn()))
        return sentry_sdk.get_client()


class ClientBuilderConfigurator:
    @staticmethod
    def configure(builder: ClientBuilder) -> None:
        from . import __version__

        builder.set_sdk_identifier(SDK_IDENTIFIER)
        builder.set_sdk_version(__version__)
