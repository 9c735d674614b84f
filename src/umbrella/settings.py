"""Bootstrap settings, read from ``UMBRELLA_*`` environment variables or a ``.env`` file."""

from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["UmbrellaSettings", "get_settings"]


class UmbrellaSettings(BaseSettings):
    """Layout of an application's units relative to its root, and naming conventions.

    Paths are relative to the application root handed to the session.
    """

    environment: str = "development"

    middlewares_path: str = "config/middlewares"
    initializers_path: str = "config/initializers"
    ordering_unit: str = "config/initializers/umbrella.py"
    environments_path: str = "config/environments"
    routes_path: str = "routes"
    routes_config: str = "config/routes.py"
    models_path: str = "models"

    export_attribute: str = "exports"
    callback_parameter: str = "done"
    internal_prefix: str = "_"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="UMBRELLA_", env_file=".env", extra="ignore")


def get_settings() -> UmbrellaSettings:
    """Return a fresh settings instance."""
    return UmbrellaSettings()
