"""Exceptions raised while building the Sentry service graph."""


class ExtensionError(Exception):
    """Base class for every error raised by this package."""


class InvalidConfigurationError(ExtensionError):
    """The configuration tree does not match the expected schema."""


class LogicError(ExtensionError):
    """A class required by the enabled configuration is not available."""


class ServiceNotFoundError(ExtensionError, KeyError):
    def __init__(self, service_id: str):
        super().__init__(f'You have requested a non-existent service "{service_id}".')
        self.service_id = service_id

    def __str__(self) -> str:
        return self.args[0]


class ParameterNotFoundError(ExtensionError, KeyError):
    def __init__(self, name: str):
        super().__init__(f'You have requested a non-existent parameter "{name}".')
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


class OutOfBoundsError(ExtensionError, IndexError):
    """An argument slot that was never defined is being replaced."""
