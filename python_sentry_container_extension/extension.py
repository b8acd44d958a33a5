"""
Container extension that binds the ``sentry`` configuration to service definitions.

One linear pass per boot: validate the configuration, register the default
services, queue option setters, expose listener priorities as parameters,
then enable or remove the error listeners and the log handler.
"""
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .capabilities import HANDLER_CLASS, LOGGING_FRAMEWORK, HostCapabilities
from .client import ClientBuilderConfigurator
from .configuration import ErrorHandlerConfig, SentryConfig, process_configuration
from .container import ContainerBuilder, Definition, Reference
from .error_types import ErrorTypesParser
from .errors import LogicError
from .integrations import IgnoreErrorsIntegration, IntegrationFilterFactory
from .kernel import KERNEL_EVENT_LISTENER, KernelEvents
from .log import configure_logging, get_logger
from .log_handler import to_log_level
from .options import setter_name
from .services import (
    CLIENT_BUILDER,
    ERROR_LISTENER,
    LOG_HANDLER,
    OPTIONS,
    REQUEST_LISTENER,
    SUB_REQUEST_LISTENER,
    register_services,
)
from .values import CallableValue, ServiceRef

PRIORITY_PARAMETER = "sentry.listener_priorities.{}"

MAPPABLE_OPTIONS = (
    "attach_stacktrace",
    "capture_silenced_errors",
    "context_lines",
    "default_integrations",
    "enable_compression",
    "environment",
    "http_proxy",
    "logger",
    "max_request_body_size",
    "max_breadcrumbs",
    "max_value_length",
    "prefixes",
    "project_root",
    "release",
    "sample_rate",
    "send_attempts",
    "send_default_pii",
    "server_name",
    "tags",
)

logger = get_logger(__name__)


def resolve_callable_value(value: CallableValue) -> Any:
    """Service references become container references, literals are unwrapped."""
    if isinstance(value, ServiceRef):
        return Reference(value.service_id)
    return value.value


def priority_placeholder(key: str) -> str:
    return "%" + PRIORITY_PARAMETER.format(key) + "%"


class SentryExtension:
    """
    Loads the ``sentry`` configuration into a ``ContainerBuilder``.

    Args:
        capabilities: What the host offers. Detected on first use when omitted.
        log_level: When given, the extension's JSON logging is set up at this level.
    """

    def __init__(
        self,
        capabilities: Optional[HostCapabilities] = None,
        log_level: Optional[int] = None,
    ):
        self._capabilities = capabilities
        if log_level is not None:
            configure_logging(log_level)

    @property
    def capabilities(self) -> HostCapabilities:
        if self._capabilities is None:
            self._capabilities = HostCapabilities.detect()
        return self._capabilities

    def load(
        self,
        configs: Sequence[Mapping[str, Any]],
        container: Optional[ContainerBuilder] = None,
    ) -> ContainerBuilder:
        """
        Bind the configuration into a container.

        Args:
            configs: Raw ``sentry`` configuration mappings, merged in order.
            container: The builder to populate; a new one is created when omitted.

        Returns:
            The populated builder, ready to be compiled by the host.

        Raises:
            InvalidConfigurationError: If the configuration violates the schema.
            LogicError: If the log handler is enabled but cannot be built.
        """
        config = process_configuration(configs)
        if container is None:
            container = ContainerBuilder()

        register_services(container)
        self.bind_options(container, config)

        container.get_definition(CLIENT_BUILDER).set_configurator(
            (ClientBuilderConfigurator, "configure")
        )

        for key, priority in config.listener_priorities.model_dump().items():
            container.set_parameter(PRIORITY_PARAMETER.format(key), priority)

        self.configure_error_listener(container, config)
        self.configure_log_handler(container, config.monolog.error_handler)

        logger.info(
            "Sentry extension loaded",
            error_listener=config.register_error_listener,
            log_handler=config.monolog.error_handler.enabled,
        )
        return container

    def bind_options(self, container: ContainerBuilder, config: SentryConfig) -> None:
        options = container.get_definition(OPTIONS)
        options.add_argument({"dsn": config.dsn})

        processed = config.options
        present = processed.model_fields_set

        for option in MAPPABLE_OPTIONS:
            if option in present:
                self._add_setter_call(options, option, getattr(processed, option))

        for option in ("in_app_exclude", "in_app_include"):
            if option in present:
                self._add_setter_call(options, option, getattr(processed, option))

        if "error_types" in present and processed.error_types is not None:
            self._add_setter_call(options, "error_types", ErrorTypesParser(processed.error_types).parse())

        for option in ("before_send", "before_breadcrumb"):
            value = getattr(processed, option)
            if option in present and value is not None:
                self._add_setter_call(options, option, resolve_callable_value(value))

        if "class_serializers" in present and processed.class_serializers is not None:
            serializers = {
                class_name: resolve_callable_value(serializer)
                for class_name, serializer in processed.class_serializers.items()
            }
            self._add_setter_call(options, "class_serializers", serializers)

        integrations_filter = Definition(arguments=[self.build_integrations(config)])
        integrations_filter.set_factory((IntegrationFilterFactory, "create"))
        options.add_method_call("set_integrations", [integrations_filter])

    @staticmethod
    def build_integrations(config: SentryConfig) -> List[Any]:
        integrations: List[Any] = [
            Reference(ref.service_id) for ref in config.options.integrations or []
        ]

        if config.options.excluded_exceptions:
            ignore_options = {"ignore_exceptions": list(config.options.excluded_exceptions)}
            integrations.append(Definition(IgnoreErrorsIntegration, [ignore_options]))

        return integrations

    @staticmethod
    def _add_setter_call(options: Definition, option: str, value: Any) -> None:
        method = setter_name(option)
        options.add_method_call(method, [value])
        logger.debug("Option bound", option=option, setter=method)

    def configure_error_listener(self, container: ContainerBuilder, config: SentryConfig) -> None:
        if not config.register_error_listener:
            for service_id in (ERROR_LISTENER, REQUEST_LISTENER, SUB_REQUEST_LISTENER):
                container.remove_definition(service_id)
                logger.debug("Definition removed", service_id=service_id)
            return

        self.tag_listeners(container)

    def tag_listeners(self, container: ContainerBuilder) -> None:
        methods = self.capabilities.listener_methods
        tags: Dict[str, List[Dict[str, Any]]] = {
            ERROR_LISTENER: [
                {
                    "event": KernelEvents.EXCEPTION,
                    "method": methods.exception,
                    "priority": priority_placeholder("request_error"),
                },
            ],
            REQUEST_LISTENER: [
                {
                    "event": KernelEvents.REQUEST,
                    "method": methods.request,
                    "priority": priority_placeholder("request"),
                },
                {
                    "event": KernelEvents.CONTROLLER,
                    "method": methods.controller,
                    "priority": priority_placeholder("request"),
                },
            ],
            SUB_REQUEST_LISTENER: [
                {
                    "event": KernelEvents.REQUEST,
                    "method": methods.request,
                    "priority": priority_placeholder("sub_request"),
                },
            ],
        }

        for service_id, attributes_list in tags.items():
            definition = container.get_definition(service_id)
            for attributes in attributes_list:
                definition.add_tag(KERNEL_EVENT_LISTENER, attributes)
                logger.debug(
                    "Listener tagged",
                    service_id=service_id,
                    hook=attributes["event"],
                    method=attributes["method"],
                )

    def configure_log_handler(self, container: ContainerBuilder, error_handler: ErrorHandlerConfig) -> None:
        if not error_handler.enabled:
            container.remove_definition(LOG_HANDLER)
            logger.debug("Definition removed", service_id=LOG_HANDLER)
            return

        if not self.capabilities.log_handler_available:
            raise LogicError(
                f'Missing class "{HANDLER_CLASS}", try updating "sentry-sdk" to a newer version.'
            )

        if not self.capabilities.logging_framework_available:
            raise LogicError(
                f'You cannot use "{HANDLER_CLASS}" if {LOGGING_FRAMEWORK} is not available.'
            )

        (
            container.get_definition(LOG_HANDLER)
            .replace_argument("level", to_log_level(error_handler.level))
            .replace_argument("bubble", error_handler.bubble)
        )
