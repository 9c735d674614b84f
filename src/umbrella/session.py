"""The bootstrap session wiring an application's units together.

An :class:`Umbrella` owns everything one bootstrap needs: the registry, the
injector and the objects built from the application's directories. Nothing
is kept at module level, so independent sessions can coexist in a process.

The session runs in a startup phase. Building middlewares, configuring,
initializing, routing and bootstrapping models are startup operations, and
are rejected once :meth:`Umbrella.finish_startup` has been called.
"""

from pathlib import Path
from typing import Any, Callable, Optional, Union

from loguru import logger

from umbrella.directory import build_directory_object
from umbrella.errors import BootstrapError, UnitLoadError
from umbrella.initializers import run_initializers, PRODUCTION, DEVELOPMENT
from umbrella.injector import Injector
from umbrella.loader import UnitLoader, is_loadable
from umbrella.registry import DependencyRegistry, InternalSlots
from umbrella.settings import UmbrellaSettings, get_settings

__all__ = ["Umbrella", "INTERNAL_COMPONENTS"]

INTERNAL_COMPONENTS = ["app", "root", "environment", "components", "middlewares", "routes", "models"]

SessionCallback = Callable[[Optional[Any], "Umbrella"], Any]


class Umbrella:
    """A single bootstrap of an application.

    Args:
        app: The application handle. Every injected call runs with it as the
            current context, and units can depend on it as ``_app``.
        root: The application root directory.
        settings: Layout and naming settings; read from the environment if omitted.

    Example:
        >>> umbrella = Umbrella(app, "/srv/site")
        >>> umbrella.bootstrap({"db": db}).build_middlewares().configure()
        >>> umbrella.init(lambda err, u: err or u.route().bootstrap_models().finish_startup())
    """

    def __init__(self, app: Any, root: Union[str, Path], settings: Optional[UmbrellaSettings] = None):
        self._app = app
        self._root = Path(root)
        self.settings = settings or get_settings()
        self._loader = UnitLoader(self.settings.export_attribute)
        self._slots: Optional[InternalSlots] = None
        self._registry: Optional[DependencyRegistry] = None
        self._injector: Optional[Injector] = None
        self._initialized = False
        self._serving = False

    def bootstrap(self, components: Optional[dict[str, Any]] = None) -> "Umbrella":
        """Create the registry of injectable components.

        Args:
            components: User components available for injection by name.

        Raises:
            BootstrapError: If this session has already been bootstrapped.
        """
        if self._injector is not None:
            raise BootstrapError("Bootstrap is being called multiple times, which is not allowed")

        components = dict(components or {})
        self._slots = InternalSlots(
            INTERNAL_COMPONENTS,
            app=self._app,
            root=self._root,
            environment=self.settings.environment,
            components=components,
        )
        self._registry = DependencyRegistry(components, self._slots, self.settings.internal_prefix)
        self._injector = Injector(self._app, self._registry)

        logger.info(
            f"Bootstrapped {self._root} in {self.settings.environment} mode "
            f"with components {sorted(components)}"
        )
        return self

    def build_middlewares(self) -> "Umbrella":
        """Build the middlewares directory object and inject its units."""
        self._require_startup("build_middlewares")
        middlewares = build_directory_object(
            self._path(self.settings.middlewares_path), self._injector, self._loader
        )
        self._slots.fill("middlewares", middlewares)
        return self

    def configure(self) -> "Umbrella":
        """Run the ``all`` environment configuration unit, then the one for the active environment."""
        self._require_startup("configure")
        active = PRODUCTION if self.settings.environment == PRODUCTION else DEVELOPMENT
        environments = self._path(self.settings.environments_path)

        for name in ("all", active):
            path = environments / f"{name}.py"
            if path.is_file():
                self._inject_unit(path)
            else:
                logger.debug(f"No {name} environment configuration at {path}")
        return self

    def init(self, callback: SessionCallback):
        """Run the initializers in declared order and report ``callback(err, self)`` once.

        This does not return the session; chain further work through the callback.

        Raises:
            BootstrapError: If the initializers of this session have already been run.
        """
        self._require_startup("init")
        if self._initialized:
            raise BootstrapError("Initializers are being run multiple times, which is not allowed")
        self._initialized = True

        try:
            ordering_unit = self._loader.load(self._path(self.settings.ordering_unit))
        except UnitLoadError as err:
            callback(err, self)
            return

        run_initializers(
            self.settings.environment,
            ordering_unit,
            self._path(self.settings.initializers_path),
            self._injector,
            lambda err: callback(err, self),
            loader=self._loader,
            callback_name=self.settings.callback_parameter,
        )

    def route(self) -> "Umbrella":
        """Build the routes directory object, then run the routes configuration unit if present."""
        self._require_startup("route")
        routes = build_directory_object(
            self._path(self.settings.routes_path), self._injector, self._loader
        )
        self._slots.fill("routes", routes)

        routes_config = self._path(self.settings.routes_config)
        if routes_config.is_file():
            self._inject_unit(routes_config)
        return self

    def bootstrap_models(self) -> "Umbrella":
        """Invoke each model unit in the models directory with its dependencies injected."""
        self._require_startup("bootstrap_models")
        models_dir = self._path(self.settings.models_path)
        models: dict[str, Any] = {}

        if models_dir.is_dir():
            for entry in models_dir.iterdir():
                if is_loadable(entry):
                    models[entry.stem] = self._inject_unit(entry)

        self._slots.fill("models", models)
        return self

    def finish_startup(self) -> "Umbrella":
        """End the startup phase; startup operations are rejected from now on."""
        self._require_startup("finish_startup")
        self._serving = True
        logger.info(f"Startup of {self._root} complete")
        return self

    def all(self, components: Optional[dict[str, Any]], callback: Optional[SessionCallback] = None):
        """Run the whole startup sequence, reporting ``callback(err, self)`` exactly once.

        Startup errors are never raised; they are only passed to the callback.
        """
        reported = []

        def report(err):
            if reported:
                return
            reported.append(err)
            if err is not None:
                logger.error(f"Startup of {self._root} failed: {err}")
            if callback:
                callback(err, self)

        def after_init(err, umbrella):
            if err is not None:
                return report(err)
            try:
                umbrella.route().bootstrap_models().finish_startup()
            except Exception as route_err:
                return report(route_err)
            report(None)

        try:
            self.bootstrap(components).build_middlewares().configure()
        except Exception as err:
            return report(err)
        try:
            self.init(after_init)
        except Exception as err:
            if reported:
                raise
            report(err)

    @property
    def app(self) -> Any:
        return self._app

    @property
    def root(self) -> Path:
        return self._root

    @property
    def environment(self) -> str:
        return self.settings.environment

    @property
    def components(self) -> Optional[dict[str, Any]]:
        return self._internal("components")

    @property
    def middlewares(self) -> Optional[dict[str, Any]]:
        return self._internal("middlewares")

    @property
    def routes(self) -> Optional[dict[str, Any]]:
        return self._internal("routes")

    @property
    def models(self) -> Optional[dict[str, Any]]:
        return self._internal("models")

    @property
    def registry(self) -> Optional[DependencyRegistry]:
        return self._registry

    @property
    def injector(self) -> Optional[Injector]:
        return self._injector

    def _internal(self, name: str) -> Any:
        if self._slots is None or not self._slots.is_filled(name):
            return None
        return self._slots[name]

    def _path(self, relative: str) -> Path:
        return self._root / relative

    def _inject_unit(self, path: Path) -> Any:
        unit = self._loader.load(path)
        return self._injector.inject(unit, must_invoke=True) if callable(unit) else unit

    def _require_startup(self, operation: str):
        if self._injector is None:
            raise BootstrapError(f"Umbrella has to be bootstrapped before {operation}() is called")
        if self._serving:
            raise BootstrapError(f"{operation}() is not allowed after startup has finished")
