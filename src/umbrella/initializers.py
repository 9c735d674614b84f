"""The ordered initializer pipeline.

An ordering unit, itself injected, returns the initializers to run as a
sequence of descriptors. Each named initializer is loaded from the
initializers directory and the variant for the active environment is
selected. The initializers then run strictly one after another.

An initializer whose last parameter is the completion callback (``done`` by
default) is asynchronous. It finishes when it calls ``done(err=None)``. Any
other initializer is synchronous and finishes when it returns. The first
failure stops the pipeline; initializers that already ran are not undone.
The outcome is reported once through ``on_complete(err)``.
"""

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Callable, Optional, Union

from loguru import logger

from umbrella.domain import InitializerDescriptor
from umbrella.errors import (
    ConfigurationError,
    InjectionArityError,
    MisconfiguredInitializerError,
)
from umbrella.injector import Injector
from umbrella.loader import UnitLoader
from umbrella.signature import is_asynchronous

__all__ = ["run_initializers", "select_variant", "InitializerStep", "PRODUCTION", "DEVELOPMENT"]

PRODUCTION = "production"
DEVELOPMENT = "development"

CompletionCallback = Callable[[Optional[Any]], Any]


def select_variant(unit: Any, environment: str) -> Any:
    """Pick the ``production`` or ``development`` variant of a unit, falling back to the unit itself.

    Only the literal ``"production"`` selects the production variant; every
    other environment selects the development one. Variants are looked up as
    keys of a mapping or as attributes of anything else.
    """
    variant_name = PRODUCTION if environment == PRODUCTION else DEVELOPMENT
    if isinstance(unit, Mapping):
        variant = unit.get(variant_name)
    else:
        variant = getattr(unit, variant_name, None)
    return unit if variant is None else variant


class InitializerStep:
    """A prepared initializer ready to run.

    Attributes:
        component: The name the initializer was declared under.
        unit: The environment variant selected for it.
        arguments: Extra positional arguments passed after its dependencies.
        asynchronous: Whether it completes through a callback.
    """

    def __init__(self, component: str, unit: Callable, arguments: list[Any], asynchronous: bool):
        self.component = component
        self.unit = unit
        self.arguments = arguments
        self.asynchronous = asynchronous

    def run(self, injector: Injector, done: "_Completion"):
        """Run the initializer, reporting its outcome through ``done``.

        Exceptions raised by the initializer become its failure. One raised
        after ``done`` was already called cannot change the reported outcome,
        so it is logged and the pipeline carries on.
        """
        try:
            if self.asynchronous:
                self._run_asynchronous(injector, done)
            else:
                self._run_synchronous(injector)
        except Exception as err:
            if done.called:
                logger.exception(
                    f"Initializer '{self.component}' raised after calling its completion callback"
                )
                return
            done(err)
            return

        if not self.asynchronous:
            done(None)

    def _run_synchronous(self, injector: Injector):
        if not self.arguments:
            injector.inject(self.unit, must_invoke=True)
            return

        resolution = injector.resolve(self.unit)
        if resolution.residual_count != len(self.arguments):
            raise InjectionArityError(
                f"Initializer '{self.component}' takes {resolution.residual_count} "
                f"parameters after injection but {len(self.arguments)} arguments were declared"
            )
        injector.inject(self.unit)(*self.arguments)

    def _run_asynchronous(self, injector: Injector, done: "_Completion"):
        resolution = injector.resolve(self.unit)
        if resolution.residual_count == 0:
            raise MisconfiguredInitializerError(
                self.component,
                "async initializer not invokable with callback, a 'done' component "
                "may collide with the completion callback",
            )
        if resolution.residual_count != len(self.arguments) + 1:
            raise MisconfiguredInitializerError(
                self.component,
                "async initializers cannot take additional parameters "
                "except the completion callback",
            )
        injector.inject(self.unit)(*self.arguments, done)

    def __repr__(self) -> str:
        kind = "async" if self.asynchronous else "sync"
        return f"InitializerStep({self.component!r}, {kind})"


class _Completion:
    """The completion callback handed to a single step."""

    def __init__(self, run: "_InitializerRun", step: InitializerStep):
        self._run = run
        self._step = step
        self.called = False

    def __call__(self, err: Optional[Any] = None):
        if self.called:
            logger.warning(
                f"Completion callback of initializer '{self._step.component}' called more than once"
            )
            return
        self.called = True
        self._run.step_completed(self._step, err)


class _InitializerRun:
    """Runs prepared steps in sequence.

    Steps that complete synchronously are advanced in a loop rather than by
    recursion, so a long run of synchronous initializers keeps a flat stack.
    """

    def __init__(self, steps: list[InitializerStep], injector: Injector, on_complete: CompletionCallback):
        self._steps = steps
        self._injector = injector
        self._on_complete = on_complete
        self._index = 0
        self._pending = False
        self._draining = False
        self._finished = False

    def start(self):
        self._advance()

    def step_completed(self, step: InitializerStep, err: Optional[Any]):
        if err is not None:
            logger.error(f"Initializer '{step.component}' failed: {err}")
            self._finish(err)
            return
        logger.debug(f"Initializer '{step.component}' complete")
        self._advance()

    def _advance(self):
        self._pending = True
        if self._draining:
            return

        self._draining = True
        try:
            while self._pending and not self._finished:
                self._pending = False
                self._run_next()
        finally:
            self._draining = False

    def _run_next(self):
        if self._index == len(self._steps):
            logger.info(f"Ran {len(self._steps)} initializers")
            self._finish(None)
            return

        step = self._steps[self._index]
        self._index += 1
        logger.debug(f"Running initializer '{step.component}' ({self._index}/{len(self._steps)})")
        step.run(self._injector, _Completion(self, step))

    def _finish(self, err: Optional[Any]):
        self._finished = True
        self._on_complete(err)


def _prepare_step(
    environment: str,
    raw_descriptor: Any,
    initializers_path: Path,
    loader: UnitLoader,
    callback_name: str,
) -> InitializerStep:
    descriptor = InitializerDescriptor.coerce(raw_descriptor)
    component = descriptor.component

    path = loader.find_unit(initializers_path, component)
    if path is None:
        raise MisconfiguredInitializerError(
            component, f"no initializer unit found in {initializers_path}"
        )

    unit = select_variant(loader.load(path), environment)
    if not callable(unit):
        raise MisconfiguredInitializerError(
            component, f"incomplete initializer for environment '{environment}', not callable"
        )

    return InitializerStep(
        component, unit, descriptor.arguments, is_asynchronous(unit, callback_name)
    )


def _resolve_order(ordering_unit: Any, injector: Injector) -> list[Any]:
    descriptors = injector.inject(ordering_unit, must_invoke=True)
    if isinstance(descriptors, (str, Mapping)) or not isinstance(descriptors, Iterable):
        raise ConfigurationError(
            f"Initializer ordering must return a sequence of descriptors, got {descriptors!r}"
        )
    return list(descriptors)


def run_initializers(
    environment: str,
    ordering_unit: Any,
    initializers_path: Union[str, Path],
    injector: Injector,
    on_complete: CompletionCallback,
    *,
    loader: Optional[UnitLoader] = None,
    callback_name: str = "done",
):
    """Run the initializers named by ``ordering_unit`` in order.

    Every initializer is loaded and checked before the first one runs, so a
    misconfigured initializer anywhere in the order prevents all of them
    from running.

    Args:
        environment: The active environment, used to select initializer variants.
        ordering_unit: A unit returning the sequence of initializer descriptors.
        initializers_path: Directory holding the initializer units.
        injector: Injects dependencies into the ordering unit and each initializer.
        on_complete: Called exactly once with ``None`` on success or the first
            failure otherwise.
        loader: The loader used to execute initializer files.
        callback_name: Parameter name marking an initializer as asynchronous.
    """
    loader = loader or UnitLoader()
    initializers_path = Path(initializers_path)

    try:
        steps = [
            _prepare_step(environment, raw, initializers_path, loader, callback_name)
            for raw in _resolve_order(ordering_unit, injector)
        ]
    except Exception as err:
        logger.error(f"Could not prepare initializers: {err}")
        on_complete(err)
        return

    _InitializerRun(steps, injector, on_complete).start()
