"""Dependency injection by parameter name.

An :class:`Injector` matches the leading parameters of a unit against a
registry. Matching is a greedy prefix match: parameters are resolved left
to right and resolution stops at the first name the registry does not hold,
even if later names could be resolved. A unit whose parameters are all
resolved is invoked straight away. Otherwise an :class:`InjectedCallable`
is returned that takes the remaining parameters positionally.

Every invocation made by the injector runs with the injector's context as
the current context, which units read through :func:`current_context`.
"""

from collections.abc import Mapping
from contextvars import ContextVar
from typing import Any

from umbrella.domain import Resolution
from umbrella.errors import InjectionArityError
from umbrella.signature import parameter_names, DECLARATION_ATTRIBUTE

__all__ = ["Injector", "InjectedCallable", "current_context"]

_current_context: ContextVar[Any] = ContextVar("umbrella_context")


def current_context() -> Any:
    """Return the context of the injected call in progress.

    Raises:
        LookupError: If called outside a call made by an :class:`Injector`.
    """
    return _current_context.get()


def _invoke_in_context(context: Any, func: Any, args: tuple) -> Any:
    token = _current_context.set(context)
    try:
        return func(*args)
    finally:
        _current_context.reset(token)


class InjectedCallable:
    """A unit with its leading dependencies bound.

    Calling it with the residual arguments invokes the original unit with the
    bound dependencies followed by those arguments.

    Attributes:
        func: The original unit.
        dependencies: The values bound to its leading parameters.
        residual_parameters: Names of the parameters still to be supplied.
    """

    def __init__(self, context: Any, func: Any, resolution: Resolution):
        self._context = context
        self.func = func
        self.dependencies = resolution.dependencies
        self.residual_parameters = resolution.residual_parameters
        setattr(self, DECLARATION_ATTRIBUTE, resolution.residual_parameters)

    @property
    def residual_count(self) -> int:
        return len(self.residual_parameters)

    def __call__(self, *args: Any) -> Any:
        return _invoke_in_context(self._context, self.func, self.dependencies + args)

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"InjectedCallable({name}, residual={list(self.residual_parameters)})"


class Injector:
    """Resolve and inject dependencies for units against a registry."""

    def __init__(self, context: Any, registry: Mapping[str, Any]):
        self.context = context
        self.registry = registry

    def resolve(self, func: Any) -> Resolution:
        """Match the leading parameters of ``func`` against the registry without invoking it.

        Raises:
            InvalidUnitError: If ``func`` has no recoverable signature.
            ResolutionError: If an internal component is read before it exists.
        """
        names = parameter_names(func)
        dependencies = []
        for name in names:
            if name not in self.registry:
                break
            dependencies.append(self.registry[name])

        return Resolution(tuple(dependencies), tuple(names[len(dependencies):]))

    def inject(self, func: Any, must_invoke: bool = False) -> Any:
        """Inject dependencies into ``func`` and invoke it if nothing remains unresolved.

        Args:
            func: The unit on which to inject dependencies.
            must_invoke: Require the injection to invoke ``func``; unresolved
                parameters are then an error.

        Returns:
            The result of invoking ``func`` if all its parameters resolved,
            otherwise an :class:`InjectedCallable` taking the rest.

        Raises:
            InjectionArityError: If ``must_invoke`` is set and parameters remain.
        """
        resolution = self.resolve(func)

        if resolution.residual_count:
            if must_invoke:
                raise InjectionArityError(
                    f"Injection into {getattr(func, '__qualname__', func)!r} must invoke; "
                    f"additional parameters {list(resolution.residual_parameters)} not allowed"
                )
            return InjectedCallable(self.context, func, resolution)

        return _invoke_in_context(self.context, func, resolution.dependencies)

    def __call__(self, func: Any, must_invoke: bool = False) -> Any:
        return self.inject(func, must_invoke)
