"""Root logger setup for the CLI and tests."""

from __future__ import annotations

import logging
from typing import Final

from .env import env_choice

LOG_LEVELS: Final[frozenset[str]] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR"})


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Configure the root logger through ``logging.basicConfig``.

    Without an explicit ``level`` the ``VEHICLEDB_LOG_LEVEL`` variable decides,
    defaulting to INFO. The thread name is part of the format because store writes
    run on the background worker.
    """

    if level is None:
        name = env_choice("VEHICLEDB_LOG_LEVEL", "INFO", LOG_LEVELS)
        level = logging.getLevelNamesMapping()[name]
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(threadName)s] [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
