"""SQLAlchemy adapter package for the vehicle store."""

from __future__ import annotations

from .mappings import (
    WRITE_COLUMNS,
    create_all_tables,
    metadata,
    row_to_vehicle,
    vehicle_table,
    vehicle_to_row,
)
from .repositories import SqlAlchemyVehicleRepository, sqlstate_of, translate_error
from .unit_of_work import (
    SqlAlchemyVehicleUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "WRITE_COLUMNS",
    "SqlAlchemyVehicleRepository",
    "SqlAlchemyVehicleUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "metadata",
    "row_to_vehicle",
    "shutdown",
    "sqlstate_of",
    "startup",
    "translate_error",
    "vehicle_table",
    "vehicle_to_row",
]
