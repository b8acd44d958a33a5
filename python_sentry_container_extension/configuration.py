"""Configuration schema of the extension, validated with pydantic."""
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidConfigurationError
from .log_handler import LEVEL_NAMES
from .values import CallableValue, ServiceRef, is_service_reference, parse_callable_value

MAX_REQUEST_BODY_SIZES = ("none", "small", "medium", "always")
LOG_LEVEL_NAMES = tuple(LEVEL_NAMES)


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class OptionsConfig(_Section):
    """
    Options forwarded to the Sentry SDK.

    Every field defaults to ``None`` but only the keys actually present in the
    input are bound, see ``model_fields_set``.
    """

    attach_stacktrace: Optional[bool] = None
    capture_silenced_errors: Optional[bool] = None
    context_lines: Optional[int] = Field(default=None, ge=0)
    default_integrations: Optional[bool] = None
    enable_compression: Optional[bool] = None
    environment: Optional[str] = None
    http_proxy: Optional[str] = None
    logger: Optional[str] = None
    max_request_body_size: Optional[str] = None
    max_breadcrumbs: Optional[int] = Field(default=None, ge=0)
    max_value_length: Optional[int] = Field(default=None, ge=0)
    prefixes: Optional[List[str]] = None
    project_root: Optional[str] = None
    release: Optional[str] = None
    sample_rate: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    send_attempts: Optional[int] = Field(default=None, ge=0)
    send_default_pii: Optional[bool] = None
    server_name: Optional[str] = None
    tags: Optional[Dict[str, str]] = None

    in_app_exclude: Optional[List[str]] = None
    in_app_include: Optional[List[str]] = None
    error_types: Optional[Union[int, str, List[str]]] = None
    before_send: Optional[CallableValue] = None
    before_breadcrumb: Optional[CallableValue] = None
    class_serializers: Optional[Dict[str, CallableValue]] = None
    integrations: Optional[List[ServiceRef]] = None
    excluded_exceptions: List[str] = Field(default_factory=list)

    @field_validator("prefixes", "tags", "in_app_exclude", "in_app_include", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    @field_validator("max_request_body_size")
    @classmethod
    def _check_body_size(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in MAX_REQUEST_BODY_SIZES:
            raise ValueError(f"must be one of {', '.join(MAX_REQUEST_BODY_SIZES)}")
        return value

    @field_validator("before_send", "before_breadcrumb", mode="before")
    @classmethod
    def _parse_callable(cls, value: Any) -> Any:
        if value is None:
            return None
        if not (callable(value) or isinstance(value, str)):
            raise ValueError("must be a callable, a dotted path or a @service reference")
        return parse_callable_value(value)

    @field_validator("class_serializers", mode="before")
    @classmethod
    def _parse_serializers(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, Mapping):
            raise ValueError("must be a mapping of class name to serializer")
        return {str(name): parse_callable_value(serializer) for name, serializer in value.items()}

    @field_validator("integrations", mode="before")
    @classmethod
    def _parse_integrations(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, (list, tuple)):
            raise ValueError("must be a list of service references")
        integrations = []
        for name in value:
            if not is_service_reference(name):
                raise ValueError(f'integration "{name}" must be a service reference such as "@my_integration"')
            integrations.append(parse_callable_value(name))
        return integrations


class ListenerPriorities(_Section):
    request: int = 1
    sub_request: int = 1
    console: int = 1
    request_error: int = 128


class ErrorHandlerConfig(_Section):
    enabled: bool = False
    level: Union[int, str] = "DEBUG"
    bubble: bool = True

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: Union[int, str]) -> Union[int, str]:
        if isinstance(value, str) and value.upper() not in LOG_LEVEL_NAMES:
            raise ValueError(f"must be one of {', '.join(LOG_LEVEL_NAMES)}")
        return value


class MonologConfig(_Section):
    error_handler: ErrorHandlerConfig = Field(default_factory=ErrorHandlerConfig)


class SentryConfig(_Section):
    dsn: Optional[str] = Field(default_factory=lambda: os.environ.get("SENTRY_DSN") or None)
    register_error_listener: bool = True
    options: OptionsConfig = Field(default_factory=OptionsConfig)
    listener_priorities: ListenerPriorities = Field(default_factory=ListenerPriorities)
    monolog: MonologConfig = Field(default_factory=MonologConfig)


def merge_configs(configs: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Deep-merge configuration mappings; later mappings win, lists are replaced."""
    merged: Dict[str, Any] = {}
    for config in configs:
        _merge_into(merged, config or {})
    return merged


def _merge_into(target: Dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            _merge_into(target[key], value)
        elif isinstance(value, Mapping):
            target[key] = {}
            _merge_into(target[key], value)
        else:
            target[key] = value


def process_configuration(configs: Sequence[Mapping[str, Any]]) -> SentryConfig:
    """
    Merge and validate raw configuration mappings.

    Args:
        configs: Configuration mappings in load order, e.g. one per config file.

    Returns:
        The validated configuration tree.

    Raises:
        InvalidConfigurationError: If the merged tree violates the schema.
    """
    try:
        return SentryConfig.model_validate(merge_configs(configs))
    except ValidationError as e:
        raise InvalidConfigurationError(f"Invalid configuration for path \"sentry\": {e}") from e
