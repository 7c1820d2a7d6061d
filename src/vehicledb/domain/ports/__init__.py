"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import EXECUTE_FAILED, SUCCESS_NO_INFO, BatchResult, VehicleRepository
from .unit_of_work import UnitOfWorkFactory, VehicleUnitOfWork

__all__ = [
    "EXECUTE_FAILED",
    "SUCCESS_NO_INFO",
    "BatchResult",
    "UnitOfWorkFactory",
    "VehicleRepository",
    "VehicleUnitOfWork",
]
