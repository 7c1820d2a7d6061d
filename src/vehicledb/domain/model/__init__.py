"""Vehicle record model."""

from __future__ import annotations

from .enums import VehicleType
from .vehicle import (
    UNSAVED_ID,
    VEHICLE_CLASS_BY_TYPE,
    Car,
    Motorcycle,
    Truck,
    Vehicle,
    VehicleRecord,
)

__all__ = [
    "UNSAVED_ID",
    "VEHICLE_CLASS_BY_TYPE",
    "Car",
    "Motorcycle",
    "Truck",
    "Vehicle",
    "VehicleRecord",
    "VehicleType",
]
