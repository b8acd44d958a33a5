"""Option object handed to the client builder, with one setter per configurable option."""
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

ClientOption = Callable[..., Any]

# Setter name for each option that does not follow ``set_<option>``.
SETTER_OVERRIDES = {
    "in_app_exclude": "set_in_app_excluded_paths",
    "in_app_include": "set_in_app_included_paths",
    "before_send": "set_before_send_callback",
    "before_breadcrumb": "set_before_breadcrumb_callback",
}


def setter_name(option: str) -> str:
    """Name of the ``SentryOptions`` method that sets ``option``."""
    return SETTER_OVERRIDES.get(option, f"set_{option}")


class SentryOptions:
    """
    Mutable bag of Sentry options, filled by the container through setters.

    Only options that were explicitly set are reported by ``as_dict``; the
    rest keep the SDK's own defaults.
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None):
        self._options: Dict[str, Any] = dict(options or {})

    def __contains__(self, option: str) -> bool:
        return option in self._options

    def get(self, option: str, default: Any = None) -> Any:
        return self._options.get(option, default)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._options)

    def get_dsn(self) -> Optional[str]:
        return self._options.get("dsn")

    def set_attach_stacktrace(self, value: bool) -> None:
        self._options["attach_stacktrace"] = value

    def set_capture_silenced_errors(self, value: bool) -> None:
        self._options["capture_silenced_errors"] = value

    def set_context_lines(self, value: int) -> None:
        self._options["context_lines"] = value

    def set_default_integrations(self, value: bool) -> None:
        self._options["default_integrations"] = value

    def set_enable_compression(self, value: bool) -> None:
        self._options["enable_compression"] = value

    def set_environment(self, value: str) -> None:
        self._options["environment"] = value

    def set_http_proxy(self, value: str) -> None:
        self._options["http_proxy"] = value

    def set_logger(self, value: str) -> None:
        self._options["logger"] = value

    def set_max_request_body_size(self, value: str) -> None:
        self._options["max_request_body_size"] = value

    def set_max_breadcrumbs(self, value: int) -> None:
        self._options["max_breadcrumbs"] = value

    def set_max_value_length(self, value: int) -> None:
        self._options["max_value_length"] = value

    def set_prefixes(self, value: Sequence[str]) -> None:
        self._options["prefixes"] = list(value)

    def set_project_root(self, value: str) -> None:
        self._options["project_root"] = value

    def set_release(self, value: str) -> None:
        self._options["release"] = value

    def set_sample_rate(self, value: float) -> None:
        self._options["sample_rate"] = value

    def set_send_attempts(self, value: int) -> None:
        self._options["send_attempts"] = value

    def set_send_default_pii(self, value: bool) -> None:
        self._options["send_default_pii"] = value

    def set_server_name(self, value: str) -> None:
        self._options["server_name"] = value

    def set_tags(self, value: Mapping[str, str]) -> None:
        self._options["tags"] = dict(value)

    def set_in_app_excluded_paths(self, value: Sequence[str]) -> None:
        self._options["in_app_exclude"] = list(value)

    def set_in_app_included_paths(self, value: Sequence[str]) -> None:
        self._options["in_app_include"] = list(value)

    def set_error_types(self, value: int) -> None:
        self._options["error_types"] = value

    def set_before_send_callback(self, value: ClientOption) -> None:
        self._options["before_send"] = value

    def set_before_breadcrumb_callback(self, value: ClientOption) -> None:
        self._options["before_breadcrumb"] = value

    def set_class_serializers(self, value: Mapping[str, ClientOption]) -> None:
        self._options["class_serializers"] = dict(value)

    def set_integrations(self, value: Callable[[List[Any]], List[Any]]) -> None:
        """Accepts the filter built by ``IntegrationFilterFactory.create``."""
        self._options["integrations"] = value
