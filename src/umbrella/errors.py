"""Exceptions raised while wiring units into an application."""

__all__ = [
    "UmbrellaError",
    "ConfigurationError",
    "MisconfiguredInitializerError",
    "UnitLoadError",
    "BootstrapError",
    "ResolutionError",
    "InjectionArityError",
    "InvalidUnitError",
]


class UmbrellaError(Exception):
    """Base class for all bootstrap failures."""

    pass


class ConfigurationError(UmbrellaError):
    """Raised when the application's units are laid out or declared incorrectly."""

    pass


class MisconfiguredInitializerError(ConfigurationError):
    """Raised when an initializer cannot be run as declared."""

    def __init__(self, component: str, reason: str):
        super().__init__(f"Initializer '{component}' is misconfigured: {reason}")
        self.component = component


class UnitLoadError(ConfigurationError):
    """Raised when a unit file cannot be imported."""

    def __init__(self, path, cause: BaseException):
        super().__init__(f"Failed to load unit {path}: {cause}")
        self.path = path


class BootstrapError(ConfigurationError):
    """Raised when a session operation is called out of sequence."""

    pass


class ResolutionError(UmbrellaError):
    """Raised when an internal component is read before it has been produced."""

    pass


class InjectionArityError(UmbrellaError):
    """Raised when an injection must invoke but parameters remain unresolved."""

    pass


class InvalidUnitError(UmbrellaError, TypeError):
    """Raised when a unit is not a callable with a recoverable signature."""

    pass
