"""Log sink configuration.

Modules log through ``loguru.logger`` directly; applications call
:func:`setup_logging` once to choose where bootstrap messages go.
"""

import sys
from typing import Any, Optional

from loguru import logger

from umbrella.settings import get_settings

__all__ = ["setup_logging", "CONSOLE_FORMAT"]

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(level: Optional[str] = None, sink: Any = None) -> int:
    """Replace loguru's sinks with a single formatted one.

    Args:
        level: Minimum level to emit; defaults to the ``log_level`` setting
            (``UMBRELLA_LOG_LEVEL``).
        sink: Any loguru sink; defaults to ``sys.stderr``.

    Returns:
        The id of the added sink, for later removal.
    """
    level = level or get_settings().log_level
    logger.remove()
    return logger.add(
        sink if sink is not None else sys.stderr,
        level=level.upper(),
        format=CONSOLE_FORMAT,
    )
