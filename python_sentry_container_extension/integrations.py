"""Integrations contributed by the extension and the filter that merges them with the SDK defaults."""
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import sentry_sdk
from sentry_sdk.integrations import Integration
from sentry_sdk.scope import add_global_event_processor

from .container import class_id

# Default integrations whose job the host framework already does through the
# error listener.
HOST_HANDLED_IDENTIFIERS = frozenset({"excepthook"})

IntegrationFilter = Callable[[Sequence[Integration]], List[Integration]]


class IgnoreErrorsIntegration(Integration):
    """
    Drops events raised from configured exception classes.

    Each entry of ``ignore_exceptions`` may be a class, a dotted path such as
    ``"myapp.errors.NotFound"``, or a bare class name. Subclasses match too.
    """

    identifier = "ignore_errors"

    def __init__(self, options: Optional[Mapping[str, Any]] = None):
        options = options or {}
        self.ignore_exceptions: List[Union[type, str]] = list(options.get("ignore_exceptions", []))

    @staticmethod
    def setup_once() -> None:
        @add_global_event_processor
        def ignore_errors_processor(event: Dict[str, Any], hint: Optional[Dict[str, Any]]):
            integration = sentry_sdk.get_client().get_integration(IgnoreErrorsIntegration)
            if integration is None or not hint or "exc_info" not in hint:
                return event

            exc_type = hint["exc_info"][0]
            if exc_type is not None and integration.should_ignore(exc_type):
                return None
            return event

    def should_ignore(self, exc_type: type) -> bool:
        for cls in exc_type.__mro__:
            for ignored in self.ignore_exceptions:
                if isinstance(ignored, type):
                    if cls is ignored:
                        return True
                elif ignored in (cls.__name__, class_id(cls)):
                    return True
        return False


class IntegrationFilterFactory:
    @staticmethod
    def create(user_integrations: Sequence[Integration]) -> IntegrationFilter:
        """
        Build the callable that decides the final integration list at client boot.

        Args:
            user_integrations: Integrations from configuration, in order.

        Returns:
            A callable taking the SDK default integrations and returning the
            list to install: user integrations first, deduplicated by
            identifier with the last one winning, followed by the defaults
            that were neither overridden nor handled by the host framework.
        """
        def filter_integrations(default_integrations: Sequence[Integration]) -> List[Integration]:
            chosen: Dict[str, Integration] = {}
            for integration in user_integrations:
                chosen[integration.identifier] = integration

            integrations = list(chosen.values())
            for integration in default_integrations:
                if integration.identifier in chosen or integration.identifier in HOST_HANDLED_IDENTIFIERS:
                    continue
                chosen[integration.identifier] = integration
                integrations.append(integration)
            return integrations

        return filter_integrations
