"""Tagged values for options that accept either a literal or a service."""
from dataclasses import dataclass
from typing import Any, Union

SERVICE_PREFIX = "@"


@dataclass(frozen=True)
class LiteralValue:
    """A value handed to the SDK exactly as configured."""

    value: Any


@dataclass(frozen=True)
class ServiceRef:
    """A pointer to a container service, written ``@service_id`` in configuration."""

    service_id: str


CallableValue = Union[LiteralValue, ServiceRef]


def is_service_reference(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(SERVICE_PREFIX) and len(value) > 1


def parse_callable_value(value: Any) -> CallableValue:
    """
    Decide once, at parse time, whether a raw configuration value names a service.

    Args:
        value: A callable, a dotted path, or a ``@service_id`` string.

    Returns:
        ``ServiceRef`` for ``@``-prefixed strings, ``LiteralValue`` for everything else.
    """
    if isinstance(value, (LiteralValue, ServiceRef)):
        return value
    if is_service_reference(value):
        return ServiceRef(value[len(SERVICE_PREFIX):])
    return LiteralValue(value)
