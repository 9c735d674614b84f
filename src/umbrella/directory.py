"""Building nested objects that mirror a directory of units.

For a routes directory holding ``index.py`` and ``admin/users.py`` the
built object is ``{"index": ..., "admin": {"users": ...}}``, where each
callable leaf has had its dependencies injected.

The directory is read synchronously. The object is a prerequisite for
routing and initialization, so it is only ever built during startup.
"""

from pathlib import Path
from typing import Any, Callable, Optional, Union

from loguru import logger

from umbrella.errors import ConfigurationError
from umbrella.loader import UnitLoader, is_loadable

__all__ = ["build_directory_object"]

InjectFunction = Callable[[Any, bool], Any]


def build_directory_object(
    path: Union[str, Path],
    inject: InjectFunction,
    loader: Optional[UnitLoader] = None,
) -> dict[str, Any]:
    """Recursively build an object with the same structure as the directory at ``path``.

    Args:
        path: The directory to walk.
        inject: Called as ``inject(value, False)`` for each callable unit;
            its result is stored in place of the unit.
        loader: The loader used to execute unit files.

    Returns:
        A dictionary keyed by sub-directory name and unit file stem.

    Raises:
        UnitLoadError: If any unit fails to load; nothing is returned.
        ConfigurationError: If ``path`` is not a directory, or a sub-directory and a
            unit file share a name.
    """
    loader = loader or UnitLoader()
    path = Path(path)
    if not path.is_dir():
        raise ConfigurationError(f"Unit directory {path} does not exist")

    built: dict[str, Any] = {}
    for entry in path.iterdir():
        if entry.is_dir():
            if entry.name.startswith((".", "__")):
                continue
            key, value = entry.name, build_directory_object(entry, inject, loader)
        elif is_loadable(entry):
            unit = loader.load(entry)
            key, value = entry.stem, inject(unit, False) if callable(unit) else unit
        else:
            logger.debug(f"Skipping {entry}, not a unit")
            continue

        if key in built:
            raise ConfigurationError(f"Duplicate unit name '{key}' in {path}")
        built[key] = value

    return built
