"""Introspection of unit signatures.

Units declare what they need through the names of their positional
parameters. A unit may instead carry an explicit, ordered declaration
attached with :func:`declares`, which takes precedence over introspection.
"""

import inspect
from typing import Callable, Any

from loguru import logger

from umbrella.errors import InvalidUnitError

__all__ = ["parameter_names", "declares", "is_asynchronous", "DECLARATION_ATTRIBUTE"]

DECLARATION_ATTRIBUTE = "__inject_parameters__"

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def declares(*names: str) -> Callable:
    """Attach an explicit, ordered list of parameter names to a unit.

    Example:
        >>> @declares("db", "_app")
        ... def setup(*args):
        ...     ...
    """

    def decorator(target: Any) -> Any:
        setattr(target, DECLARATION_ATTRIBUTE, tuple(names))
        return target

    return decorator


def parameter_names(func: Any) -> list[str]:
    """Return the positional parameter names of a unit in declaration order.

    Args:
        func: The unit to inspect. Bound methods exclude their receiver and
            classes report the parameters of their constructor.

    Returns:
        The declared names, or an empty list for a unit taking no parameters.

    Raises:
        InvalidUnitError: If ``func`` is not callable or its signature cannot
            be recovered.
    """
    if not callable(func):
        raise InvalidUnitError(f"{func!r} is not callable")

    declared = getattr(func, DECLARATION_ATTRIBUTE, None)
    if declared is not None:
        return [name.strip() for name in declared]

    try:
        sig = inspect.signature(func)
    except (ValueError, TypeError) as err:
        raise InvalidUnitError(f"Cannot inspect signature of {func!r}: {err}") from err

    return [
        name
        for name, param in sig.parameters.items()
        if param.kind in _POSITIONAL_KINDS
    ]


def is_asynchronous(func: Any, callback_name: str = "done") -> bool:
    """Classify a unit as asynchronous if its last parameter is the completion callback.

    A unit naming the callback anywhere but last is run synchronously and a
    warning is logged, since that is most likely an authoring mistake.
    """
    names = parameter_names(func)
    if names and names[-1] == callback_name:
        return True

    if callback_name in names:
        logger.warning(
            f"Unit {_describe(func)} has a '{callback_name}' parameter that is not last; "
            "it will be run synchronously"
        )
    return False


def _describe(func: Any) -> str:
    return getattr(func, "__qualname__", None) or repr(func)
