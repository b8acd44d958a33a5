"""
Minimal service container used as the target of the Sentry extension.

Definitions are declarative recipes. Nothing is instantiated until ``get``
is called, at which point references, inline definitions, ``%parameter%``
placeholders, factories, method calls and configurators are resolved.
"""
import importlib
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .errors import OutOfBoundsError, ParameterNotFoundError, ServiceNotFoundError

PARAMETER_PATTERN = re.compile(r"%%|%([^%\s]+)%")

FactorySpec = Tuple[Any, str]


@dataclass(frozen=True)
class Reference:
    """Lazy pointer to another service, resolved when the container instantiates."""

    service_id: str

    def __str__(self) -> str:
        return self.service_id


def class_id(cls: type) -> str:
    """Service identifier of a class, its fully qualified name."""
    return f"{cls.__module__}.{cls.__qualname__}"


def import_string(path: str) -> Any:
    """Import ``package.module:attr`` or ``package.module.attr``."""
    if ":" in path:
        module_name, _, attr_path = path.partition(":")
    else:
        module_name, _, attr_path = path.rpartition(".")
    if not module_name:
        raise ImportError(f'"{path}" is not a dotted import path')

    target = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            raise ImportError(f'Module "{module_name}" has no attribute "{attr_path}"') from e
    return target


class Definition:
    """A recipe for building one service: class, arguments, calls and tags."""

    def __init__(
        self,
        cls: Union[type, str, None] = None,
        arguments: Optional[List[Any]] = None,
        named_arguments: Optional[Dict[str, Any]] = None,
    ):
        self.cls = cls
        self.arguments: List[Any] = list(arguments or [])
        self.named_arguments: Dict[str, Any] = dict(named_arguments or {})
        self.calls: List[Tuple[str, List[Any]]] = []
        self.tags: Dict[str, List[Dict[str, Any]]] = {}
        self.factory: Optional[FactorySpec] = None
        self.configurator: Optional[FactorySpec] = None
        self.shared = True

    def __repr__(self) -> str:
        name = self.cls if isinstance(self.cls, str) or self.cls is None else class_id(self.cls)
        return f"<Definition {name}>"

    def add_argument(self, value: Any) -> "Definition":
        self.arguments.append(value)
        return self

    def get_argument(self, key: Union[int, str]) -> Any:
        try:
            if isinstance(key, int):
                return self.arguments[key]
            return self.named_arguments[key]
        except (IndexError, KeyError) as e:
            raise OutOfBoundsError(f'The argument "{key}" does not exist.') from e

    def replace_argument(self, key: Union[int, str], value: Any) -> "Definition":
        """
        Replace an argument slot that already exists.

        Args:
            key: Positional index, or the keyword name of a named argument.
            value: The new value.

        Raises:
            OutOfBoundsError: If the slot was never defined.
        """
        if isinstance(key, int):
            if not 0 <= key < len(self.arguments):
                raise OutOfBoundsError(
                    f'The index "{key}" is not in the range [0, {len(self.arguments) - 1}].'
                )
            self.arguments[key] = value
        else:
            if key not in self.named_arguments:
                raise OutOfBoundsError(f'The argument "{key}" does not exist.')
            self.named_arguments[key] = value
        return self

    def add_method_call(self, method: str, arguments: Optional[List[Any]] = None) -> "Definition":
        self.calls.append((method, list(arguments or [])))
        return self

    def has_method_call(self, method: str) -> bool:
        return any(name == method for name, _ in self.calls)

    def get_method_call(self, method: str) -> List[Any]:
        """Arguments of the last queued call to ``method``."""
        for name, arguments in reversed(self.calls):
            if name == method:
                return arguments
        raise KeyError(method)

    def add_tag(self, name: str, attributes: Optional[Dict[str, Any]] = None) -> "Definition":
        self.tags.setdefault(name, []).append(dict(attributes or {}))
        return self

    def get_tag(self, name: str) -> List[Dict[str, Any]]:
        return self.tags.get(name, [])

    def has_tag(self, name: str) -> bool:
        return name in self.tags

    def set_factory(self, factory: FactorySpec) -> "Definition":
        self.factory = factory
        return self

    def set_configurator(self, configurator: FactorySpec) -> "Definition":
        self.configurator = configurator
        return self


class ContainerBuilder:
    """Holds definitions and parameters, and builds services on demand."""

    def __init__(self, parameters: Optional[Dict[str, Any]] = None):
        self._definitions: Dict[str, Definition] = {}
        self._parameters: Dict[str, Any] = dict(parameters or {})
        self._services: Dict[str, Any] = {}
        self._compiled = False

    @property
    def is_compiled(self) -> bool:
        return self._compiled

    # Definitions

    def register(self, service_id: str, cls: Union[type, str, None] = None) -> Definition:
        return self.set_definition(service_id, Definition(cls if cls is not None else service_id))

    def set_definition(self, service_id: str, definition: Definition) -> Definition:
        self._definitions[service_id] = definition
        self._services.pop(service_id, None)
        return definition

    def get_definition(self, service_id: str) -> Definition:
        try:
            return self._definitions[service_id]
        except KeyError:
            raise ServiceNotFoundError(service_id) from None

    def has_definition(self, service_id: str) -> bool:
        return service_id in self._definitions

    def remove_definition(self, service_id: str) -> None:
        self._definitions.pop(service_id, None)
        self._services.pop(service_id, None)

    def get_definitions(self) -> Dict[str, Definition]:
        return dict(self._definitions)

    def find_tagged_service_ids(self, tag: str) -> Dict[str, List[Dict[str, Any]]]:
        return {
            service_id: definition.get_tag(tag)
            for service_id, definition in self._definitions.items()
            if definition.has_tag(tag)
        }

    # Parameters

    def set_parameter(self, name: str, value: Any) -> None:
        self._parameters[name] = value

    def get_parameter(self, name: str) -> Any:
        try:
            return self._parameters[name]
        except KeyError:
            raise ParameterNotFoundError(name) from None

    def has_parameter(self, name: str) -> bool:
        return name in self._parameters

    def get_parameters(self) -> Dict[str, Any]:
        return dict(self._parameters)

    def resolve_parameters(self, value: Any) -> Any:
        """
        Substitute ``%name%`` placeholders, recursing into lists, tuples and dicts.

        A string made only of one placeholder keeps the parameter's type, so
        ``"%priority%"`` resolves to an ``int`` when the parameter is one.
        ``%%`` stands for a literal percent sign.
        """
        if isinstance(value, str):
            whole = PARAMETER_PATTERN.fullmatch(value)
            if whole and whole.group(1):
                return self.resolve_parameters(self.get_parameter(whole.group(1)))

            def substitute(match: "re.Match[str]") -> str:
                if match.group(1) is None:
                    return "%"
                return str(self.resolve_parameters(self.get_parameter(match.group(1))))

            return PARAMETER_PATTERN.sub(substitute, value)
        if isinstance(value, list):
            return [self.resolve_parameters(item) for item in value]
        if isinstance(value, tuple):
            return tuple(self.resolve_parameters(item) for item in value)
        if isinstance(value, dict):
            return {key: self.resolve_parameters(item) for key, item in value.items()}
        if isinstance(value, Definition):
            self._resolve_definition_parameters(value)
        return value

    # Compilation

    def compile(self) -> "ContainerBuilder":
        """
        Resolve every parameter placeholder and check every reference.

        Raises:
            ParameterNotFoundError: A placeholder names an unknown parameter.
            ServiceNotFoundError: A reference points at a removed or unknown service.
        """
        for definition in self._definitions.values():
            self._resolve_definition_parameters(definition)
            self._check_references(definition)
        self._compiled = True
        return self

    def _resolve_definition_parameters(self, definition: Definition) -> None:
        definition.arguments = self.resolve_parameters(definition.arguments)
        definition.named_arguments = self.resolve_parameters(definition.named_arguments)
        definition.calls = [
            (method, self.resolve_parameters(arguments)) for method, arguments in definition.calls
        ]
        definition.tags = {
            name: self.resolve_parameters(attributes) for name, attributes in definition.tags.items()
        }

    def _check_references(self, value: Any) -> None:
        if isinstance(value, Reference):
            if value.service_id not in self._definitions:
                raise ServiceNotFoundError(value.service_id)
        elif isinstance(value, Definition):
            self._check_references(value.arguments)
            self._check_references(value.named_arguments)
            for _, arguments in value.calls:
                self._check_references(arguments)
            if value.factory is not None:
                self._check_references(value.factory[0])
        elif isinstance(value, (list, tuple)):
            for item in value:
                self._check_references(item)
        elif isinstance(value, dict):
            for item in value.values():
                self._check_references(item)

    # Instantiation

    def get(self, service_id: str) -> Any:
        if service_id in self._services:
            return self._services[service_id]

        definition = self.get_definition(service_id)
        instance = self._create(definition)
        if definition.shared:
            self._services[service_id] = instance
        return instance

    def _create(self, definition: Definition) -> Any:
        arguments = self._resolve_services(self._build_parameters(definition.arguments))
        named_arguments = self._resolve_services(self._build_parameters(definition.named_arguments))

        if definition.factory is not None:
            factory = self._resolve_callable(definition.factory)
            instance = factory(*arguments, **named_arguments)
        else:
            cls = definition.cls
            if isinstance(cls, str):
                cls = import_string(cls)
            instance = cls(*arguments, **named_arguments)

        for method, call_arguments in definition.calls:
            resolved = self._resolve_services(self._build_parameters(call_arguments))
            getattr(instance, method)(*resolved)

        if definition.configurator is not None:
            self._resolve_callable(definition.configurator)(instance)

        return instance

    def _build_parameters(self, value: Any) -> Any:
        # compile() already substituted placeholders and unescaped %%.
        if self._compiled:
            return value
        return self.resolve_parameters(value)

    def _resolve_callable(self, spec: FactorySpec) -> Callable[..., Any]:
        target, method = spec
        if isinstance(target, str):
            target = import_string(target)
        else:
            target = self._resolve_services(target)
        return getattr(target, method)

    def _resolve_services(self, value: Any) -> Any:
        if isinstance(value, Reference):
            return self.get(value.service_id)
        if isinstance(value, Definition):
            return self._create(value)
        if isinstance(value, list):
            return [self._resolve_services(item) for item in value]
        if isinstance(value, tuple):
            return tuple(self._resolve_services(item) for item in value)
        if isinstance(value, dict):
            return {key: self._resolve_services(item) for key, item in value.items()}
        return value
