"""The name-keyed lookup of values available for injection.

A :class:`DependencyRegistry` layers two sources. User-supplied components
are looked up by their plain name. Framework-provided components live in
:class:`InternalSlots` and are reached through a reserved prefix, so that
``_app`` resolves the internal ``app`` slot. Slots may be declared before
their values exist; reading such a slot is an error rather than a silent
``None``.
"""

from collections.abc import Mapping
from typing import Any, Iterable, Iterator, Optional

from loguru import logger

from umbrella.errors import ConfigurationError, ResolutionError

__all__ = ["InternalSlots", "DependencyRegistry", "DEFAULT_INTERNAL_PREFIX"]

DEFAULT_INTERNAL_PREFIX = "_"


class InternalSlots:
    """Write-once storage for framework-provided components.

    Every slot must be declared up front. A declared slot starts empty unless
    an initial value is given, and can be filled exactly once.

    Example:
        >>> slots = InternalSlots(["app", "routes"], app=my_app)
        >>> slots.fill("routes", {"index": handler})
        >>> slots["routes"]
        {'index': <function handler>}
    """

    def __init__(self, names: Iterable[str], **initial: Any):
        self._values: dict[str, Any] = {name: None for name in names}
        undeclared = initial.keys() - self._values.keys()
        if undeclared:
            raise ConfigurationError(f"Undeclared internal slots {sorted(undeclared)}")
        for name, value in initial.items():
            self._values[name] = value

    def names(self) -> list[str]:
        return list(self._values)

    def is_filled(self, name: str) -> bool:
        return self._values.get(name) is not None

    def fill(self, name: str, value: Any):
        """Populate an empty slot.

        Raises:
            ConfigurationError: If the slot is undeclared, already filled, or
                ``value`` is ``None``.
        """
        if name not in self._values:
            raise ConfigurationError(f"Unknown internal slot '{name}'")
        if self._values[name] is not None:
            raise ConfigurationError(f"Internal slot '{name}' is already populated")
        if value is None:
            raise ConfigurationError(f"Internal slot '{name}' cannot be filled with None")
        self._values[name] = value

    def __getitem__(self, name: str) -> Any:
        value = self._values[name]
        if value is None:
            raise ResolutionError(
                f"Internal component '{name}' accessed too early, before it was initialized"
            )
        return value

    def __contains__(self, name: str) -> bool:
        return name in self._values


class DependencyRegistry(Mapping):
    """Read-only lookup combining external components with prefixed internal slots.

    External components take priority. An external component whose name
    equals a prefixed internal name shadows the internal slot and a warning
    is logged.

    Attributes:
        prefix: The reserved prefix under which internal slots are exposed.
    """

    def __init__(
        self,
        external: Optional[Mapping[str, Any]] = None,
        internal: Optional[InternalSlots] = None,
        prefix: str = DEFAULT_INTERNAL_PREFIX,
    ):
        self.prefix = prefix
        self._external = dict(external or {})
        self._internal = internal or InternalSlots([])
        self._internal_keys: dict[str, str] = {}

        for name in self._internal.names():
            key = prefix + name
            if key in self._external:
                logger.warning(
                    f"User provided component '{key}' overrides internal component '{name}'"
                )
                continue
            self._internal_keys[key] = name

    def __getitem__(self, key: str) -> Any:
        if key in self._external:
            return self._external[key]
        if key in self._internal_keys:
            return self._internal[self._internal_keys[key]]
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return key in self._external or key in self._internal_keys

    def __iter__(self) -> Iterator[str]:
        yield from self._external
        yield from self._internal_keys

    def __len__(self) -> int:
        return len(self._external) + len(self._internal_keys)

    def __repr__(self) -> str:
        return f"DependencyRegistry({list(self)!r})"
