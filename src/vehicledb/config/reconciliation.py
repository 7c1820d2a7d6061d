"""Reconciliation and background worker defaults."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from vehicledb.domain.reconciliation.batch import DEFAULT_CHUNK_SIZE

from .env import env_positive_float, env_positive_int

DEFAULT_WORKER_SHUTDOWN_TIMEOUT: Final[float] = 5.0


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    chunk_size: int = DEFAULT_CHUNK_SIZE
    worker_shutdown_timeout: float = DEFAULT_WORKER_SHUTDOWN_TIMEOUT


def get_reconciliation_config() -> ReconciliationConfig:
    return ReconciliationConfig(
        chunk_size=env_positive_int("VEHICLEDB_CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
        worker_shutdown_timeout=env_positive_float(
            "VEHICLEDB_WORKER_SHUTDOWN_TIMEOUT", DEFAULT_WORKER_SHUTDOWN_TIMEOUT
        ),
    )
