"""Tests for binding the sentry configuration into the container."""
import logging
from types import SimpleNamespace

import pytest

from python_sentry_container_extension import ContainerBuilder, Definition, Reference, SentryExtension
from python_sentry_container_extension.capabilities import (
    LEGACY_LISTENER_METHODS,
    HostCapabilities,
)
from python_sentry_container_extension.client import ClientBuilderConfigurator
from python_sentry_container_extension.errors import InvalidConfigurationError, LogicError
from python_sentry_container_extension.extension import MAPPABLE_OPTIONS
from python_sentry_container_extension.integrations import IgnoreErrorsIntegration, IntegrationFilterFactory
from python_sentry_container_extension.kernel import KERNEL_EVENT_LISTENER
from python_sentry_container_extension.options import SentryOptions
from python_sentry_container_extension.services import (
    CLIENT_BUILDER,
    ERROR_LISTENER,
    LOG_HANDLER,
    OPTIONS,
    REQUEST_LISTENER,
    SUB_REQUEST_LISTENER,
)


def before_send(event, hint):
    return event


def option_calls(container: ContainerBuilder):
    return container.get_definition(OPTIONS).calls


def integrations_argument(container: ContainerBuilder):
    integrations_filter = container.get_definition(OPTIONS).get_method_call("set_integrations")[0]
    assert isinstance(integrations_filter, Definition)
    assert integrations_filter.factory == (IntegrationFilterFactory, "create")
    return integrations_filter.arguments[0]


def test_load_returns_new_container(load) -> None:
    """Test that load builds and returns a fresh container when none is given."""
    container = load()
    assert isinstance(container, ContainerBuilder)
    assert container.has_definition(OPTIONS)
    assert container.has_definition(CLIENT_BUILDER)


def test_load_populates_given_container(extension: SentryExtension) -> None:
    container = ContainerBuilder()
    assert extension.load([{}], container) is container


def test_dsn_is_options_constructor_argument(load) -> None:
    container = load({"dsn": "https://key@sentry.example/1"})
    assert container.get_definition(OPTIONS).arguments == [{"dsn": "https://key@sentry.example/1"}]


def test_dsn_defaults_to_environment(load, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SENTRY_DSN", "https://env@sentry.example/2")
    container = load()
    assert container.get_definition(OPTIONS).arguments == [{"dsn": "https://env@sentry.example/2"}]


def test_absent_options_queue_no_setters(load) -> None:
    """Test that only set_integrations is queued when no option is configured."""
    container = load()
    assert [method for method, _ in option_calls(container)] == ["set_integrations"]


def test_each_present_option_queues_its_setter(load) -> None:
    container = load({
        "options": {
            "environment": "staging",
            "release": "1.2.3",
            "sample_rate": 0.5,
            "tags": {"team": "payments"},
            "send_default_pii": False,
        }
    })
    definition = container.get_definition(OPTIONS)

    assert definition.get_method_call("set_environment") == ["staging"]
    assert definition.get_method_call("set_release") == ["1.2.3"]
    assert definition.get_method_call("set_sample_rate") == [0.5]
    assert definition.get_method_call("set_tags") == [{"team": "payments"}]
    assert definition.get_method_call("set_send_default_pii") == [False]
    assert not definition.has_method_call("set_server_name")
    assert not definition.has_method_call("set_attach_stacktrace")


def test_every_mappable_option_has_a_setter() -> None:
    for option in MAPPABLE_OPTIONS:
        assert callable(getattr(SentryOptions, f"set_{option}"))


def test_in_app_paths_use_dedicated_setters(load) -> None:
    container = load({"options": {"in_app_exclude": ["/vendor"], "in_app_include": ["/src"]}})
    definition = container.get_definition(OPTIONS)

    assert definition.get_method_call("set_in_app_excluded_paths") == [["/vendor"]]
    assert definition.get_method_call("set_in_app_included_paths") == [["/src"]]
    assert not definition.has_method_call("set_in_app_exclude")


def test_error_types_are_parsed_before_binding(load) -> None:
    container = load({"options": {"error_types": "ALL & ~DEBUG"}})
    assert container.get_definition(OPTIONS).get_method_call("set_error_types") == [30]


def test_invalid_error_types_fail(load) -> None:
    with pytest.raises(InvalidConfigurationError):
        load({"options": {"error_types": "ALL & ~NOPE"}})


def test_before_send_service_reference(load) -> None:
    """Test that "@my_service" resolves to a reference to my_service."""
    container = load({"options": {"before_send": "@my_service"}})
    assert container.get_definition(OPTIONS).get_method_call("set_before_send_callback") == [
        Reference("my_service")
    ]


def test_before_send_literal_passes_through(load) -> None:
    container = load({
        "options": {"before_send": before_send, "before_breadcrumb": "app.hooks.before_breadcrumb"}
    })
    definition = container.get_definition(OPTIONS)

    assert definition.get_method_call("set_before_send_callback") == [before_send]
    assert definition.get_method_call("set_before_breadcrumb_callback") == ["app.hooks.before_breadcrumb"]


def test_class_serializers_resolve_each_entry(load) -> None:
    container = load({
        "options": {"class_serializers": {"app.User": "@user_serializer", "app.Order": before_send}}
    })
    assert container.get_definition(OPTIONS).get_method_call("set_class_serializers") == [
        {"app.User": Reference("user_serializer"), "app.Order": before_send}
    ]


def test_excluded_exceptions_synthesize_ignore_errors_integration(load) -> None:
    container = load({"options": {"excluded_exceptions": ["A", "B"]}})
    integrations = integrations_argument(container)

    assert len(integrations) == 1
    assert isinstance(integrations[0], Definition)
    assert integrations[0].cls is IgnoreErrorsIntegration
    assert integrations[0].arguments == [{"ignore_exceptions": ["A", "B"]}]


def test_empty_excluded_exceptions_add_nothing(load) -> None:
    container = load({"options": {"excluded_exceptions": []}})
    assert integrations_argument(container) == []


def test_integrations_become_references(load) -> None:
    container = load({"options": {"integrations": ["@app.integration"], "excluded_exceptions": ["A"]}})
    integrations = integrations_argument(container)

    assert integrations[0] == Reference("app.integration")
    assert integrations[1].cls is IgnoreErrorsIntegration


def test_client_builder_has_configurator(load) -> None:
    container = load()
    assert container.get_definition(CLIENT_BUILDER).configurator == (ClientBuilderConfigurator, "configure")


def test_listener_priorities_become_parameters(load) -> None:
    container = load({"listener_priorities": {"request": 5, "sub_request": 3, "request_error": 64}})

    assert container.get_parameter("sentry.listener_priorities.request") == 5
    assert container.get_parameter("sentry.listener_priorities.sub_request") == 3
    assert container.get_parameter("sentry.listener_priorities.request_error") == 64
    assert container.get_parameter("sentry.listener_priorities.console") == 1


def test_error_listener_disabled_removes_listeners(load) -> None:
    container = load({"register_error_listener": False})

    assert not container.has_definition(ERROR_LISTENER)
    assert not container.has_definition(REQUEST_LISTENER)
    assert not container.has_definition(SUB_REQUEST_LISTENER)
    assert container.find_tagged_service_ids(KERNEL_EVENT_LISTENER) == {}


def test_error_listener_enabled_tags_listeners_with_priorities(load) -> None:
    """Test that three listener services are tagged with the configured priorities."""
    container = load({"listener_priorities": {"request": 5, "sub_request": 3, "request_error": 64}})
    container.compile()

    tagged = container.find_tagged_service_ids(KERNEL_EVENT_LISTENER)
    assert set(tagged) == {ERROR_LISTENER, REQUEST_LISTENER, SUB_REQUEST_LISTENER}
    assert tagged[ERROR_LISTENER] == [
        {"event": "kernel.exception", "method": "on_exception", "priority": 64}
    ]
    assert tagged[REQUEST_LISTENER] == [
        {"event": "kernel.request", "method": "on_request", "priority": 5},
        {"event": "kernel.controller", "method": "on_controller", "priority": 5},
    ]
    assert tagged[SUB_REQUEST_LISTENER] == [
        {"event": "kernel.request", "method": "on_request", "priority": 3}
    ]


def test_legacy_kernel_uses_legacy_listener_methods() -> None:
    extension = SentryExtension(HostCapabilities(listener_methods=LEGACY_LISTENER_METHODS))
    tagged = extension.load([{}]).find_tagged_service_ids(KERNEL_EVENT_LISTENER)

    assert tagged[ERROR_LISTENER][0]["method"] == "on_kernel_exception"
    assert [tag["method"] for tag in tagged[REQUEST_LISTENER]] == ["on_kernel_request", "on_kernel_controller"]
    assert tagged[SUB_REQUEST_LISTENER][0]["method"] == "on_kernel_request"


def test_capabilities_detected_from_host_events() -> None:
    events = SimpleNamespace(ExceptionEvent=type("ExceptionEvent", (), {"exception": None}))
    extension = SentryExtension(HostCapabilities.detect(events))
    tagged = extension.load([{}]).find_tagged_service_ids(KERNEL_EVENT_LISTENER)

    assert tagged[ERROR_LISTENER][0]["method"] == "on_kernel_exception"


def test_log_handler_disabled_removes_definition(load) -> None:
    container = load()
    assert not container.has_definition(LOG_HANDLER)


def test_log_handler_enabled_replaces_arguments(load) -> None:
    container = load({"monolog": {"error_handler": {"enabled": True, "level": "error", "bubble": False}}})
    definition = container.get_definition(LOG_HANDLER)

    assert definition.get_argument("level") == logging.ERROR
    assert definition.get_argument("bubble") is False


def test_log_handler_missing_class_fails() -> None:
    extension = SentryExtension(HostCapabilities(log_handler_available=False))

    with pytest.raises(LogicError, match="try updating"):
        extension.load([{"monolog": {"error_handler": {"enabled": True}}}])


def test_log_handler_missing_logging_framework_fails() -> None:
    extension = SentryExtension(HostCapabilities(logging_framework_available=False))

    with pytest.raises(LogicError, match="structlog is not available"):
        extension.load([{"monolog": {"error_handler": {"enabled": True}}}])


def test_missing_logging_framework_ignored_when_handler_disabled() -> None:
    extension = SentryExtension(HostCapabilities(logging_framework_available=False))
    assert not extension.load([{}]).has_definition(LOG_HANDLER)


def test_invalid_configuration_fails(load) -> None:
    with pytest.raises(InvalidConfigurationError):
        load({"options": {"unknown_option": True}})


def test_built_options_service_carries_configuration(load) -> None:
    """Test the whole graph: compile, then instantiate the options service."""
    container = load({
        "dsn": "https://key@sentry.example/1",
        "options": {
            "environment": "test",
            "in_app_exclude": ["/vendor"],
            "before_send": before_send,
            "excluded_exceptions": ["KeyError"],
        },
    })
    container.compile()
    options = container.get(OPTIONS)

    assert options.get_dsn() == "https://key@sentry.example/1"
    assert options.get("environment") == "test"
    assert options.get("in_app_exclude") == ["/vendor"]
    assert options.get("before_send") is before_send

    integrations = options.get("integrations")([])
    assert len(integrations) == 1
    assert isinstance(integrations[0], IgnoreErrorsIntegration)
    assert integrations[0].ignore_exceptions == ["KeyError"]


def test_built_log_handler(load) -> None:
    container = load({"monolog": {"error_handler": {"enabled": True, "level": "WARNING", "bubble": False}}})
    container.compile()
    handler = container.get(LOG_HANDLER)

    assert handler.level == logging.WARNING
    assert handler.bubble is False


def test_compile_fails_on_unknown_before_send_service(load) -> None:
    container = load({"options": {"before_send": "@missing"}})

    with pytest.raises(KeyError):
        container.compile()


def test_null_collection_options_are_rejected(load) -> None:
    """Test that a null list or mapping fails validation instead of breaking the options service."""
    for option in ("tags", "prefixes", "in_app_exclude", "in_app_include"):
        with pytest.raises(InvalidConfigurationError):
            load({"options": {option: None}})


def test_escaped_percent_in_option_after_compile(load) -> None:
    container = load({"options": {"environment": "a%%b%%c"}})
    container.compile()

    assert container.get(OPTIONS).get("environment") == "a%b%c"


def test_warn_level_for_log_handler(load) -> None:
    container = load({"monolog": {"error_handler": {"enabled": True, "level": "warn"}}})
    assert container.get_definition(LOG_HANDLER).get_argument("level") == logging.WARNING
