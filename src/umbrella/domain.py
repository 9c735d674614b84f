"""Domain models used throughout the framework."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from umbrella.errors import ConfigurationError

__all__ = ["Resolution", "InitializerDescriptor", "describe_initializer"]


@dataclass(frozen=True)
class Resolution:
    """The outcome of matching a unit's parameters against a registry.

    Attributes:
        dependencies: Values resolved for the leading parameters, in order.
        residual_parameters: The trailing parameter names left unresolved.
    """

    dependencies: tuple[Any, ...]
    residual_parameters: tuple[str, ...]

    @property
    def residual_count(self) -> int:
        return len(self.residual_parameters)


@dataclass(frozen=True)
class InitializerDescriptor:
    """Names an initializer to run and the extra arguments to pass it.

    Attributes:
        component: Name of the initializer unit, relative to the initializers directory.
        dependencies: Positional arguments for the initializer that are not
            registry dependencies. ``None`` means none, a list or tuple is used
            as-is, and any other value is passed as a single argument.
    """

    component: str
    dependencies: Any = None

    @property
    def arguments(self) -> list[Any]:
        if self.dependencies is None:
            return []
        if isinstance(self.dependencies, (list, tuple)):
            return list(self.dependencies)
        return [self.dependencies]

    @staticmethod
    def coerce(value: Any) -> "InitializerDescriptor":
        """Accept a descriptor, a mapping with ``component`` and ``dependencies``, or a bare name.

        Raises:
            ConfigurationError: If ``value`` does not describe an initializer.
        """
        if isinstance(value, InitializerDescriptor):
            descriptor = value
        elif isinstance(value, str):
            descriptor = InitializerDescriptor(value)
        elif isinstance(value, Mapping) and "component" in value:
            descriptor = InitializerDescriptor(value["component"], value.get("dependencies"))
        else:
            raise ConfigurationError(f"Malformed initializer descriptor {value!r}")

        if not isinstance(descriptor.component, str) or not descriptor.component:
            raise ConfigurationError(f"Malformed initializer descriptor {value!r}")
        return descriptor


def describe_initializer(component: str, dependencies: Any = None) -> InitializerDescriptor:
    """Build a descriptor for use in an initializer ordering unit.

    Example:
        >>> def order():
        ...     return [describe_initializer("database"), describe_initializer("cache", ["redis"])]
    """
    return InitializerDescriptor(component, dependencies)
