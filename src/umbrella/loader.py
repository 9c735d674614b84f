"""Loading of unit files.

A unit file is a Python source file executed as a fresh module. Its value is
the module attribute named by the loader's export attribute when the module
defines one, otherwise the module itself.
"""

import hashlib
import importlib.util
import sys
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from umbrella.errors import UnitLoadError

__all__ = ["UnitLoader", "is_loadable", "DEFAULT_EXPORT_ATTRIBUTE"]

DEFAULT_EXPORT_ATTRIBUTE = "exports"

PathLike = Union[str, Path]


def is_loadable(path: Path) -> bool:
    """Return whether ``path`` is a unit file: a ``.py`` file not named with a leading ``_`` or ``.``."""
    return path.is_file() and path.suffix == ".py" and not path.name.startswith(("_", "."))


class UnitLoader:
    """Execute unit files and return their exported values."""

    def __init__(self, export_attribute: str = DEFAULT_EXPORT_ATTRIBUTE):
        self.export_attribute = export_attribute

    def load(self, path: PathLike) -> Any:
        """Execute the file at ``path`` and return its exported value.

        Raises:
            UnitLoadError: If the file is missing or fails to execute.
        """
        path = Path(path).resolve()
        module_name = "umbrella_unit_" + hashlib.sha1(str(path).encode()).hexdigest()[:16]

        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None or not path.is_file():
            raise UnitLoadError(path, FileNotFoundError(str(path)))

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as err:
            del sys.modules[module_name]
            raise UnitLoadError(path, err) from err

        logger.debug(f"Loaded unit {path}")
        return getattr(module, self.export_attribute, module)

    def find_unit(self, base: PathLike, component: str) -> Optional[Path]:
        """Locate ``<base>/<component>.py`` or the package ``<base>/<component>/__init__.py``."""
        base = Path(base)
        candidates = [base / f"{component}.py", base / component / "__init__.py"]
        return next((c for c in candidates if c.is_file()), None)
