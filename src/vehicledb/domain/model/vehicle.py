"""
Vehicle records:
one dataclass per vehicle kind, each carrying only its own flags.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from vehicledb.domain.model.enums import VehicleType

UNSAVED_ID = 0


@dataclass(kw_only=True, slots=True)
class VehicleRecord:
    """Fields shared by every vehicle kind.

    ``id`` stays ``0`` until the store assigns one on insert; after that it is
    never changed by the application.
    """

    id: int = UNSAVED_ID
    color: str = ""
    plate_number: str = ""
    timestamp: int = 0

    # class-level discriminator; subclasses must override
    VEHICLE_TYPE: ClassVar[VehicleType]

    def __post_init__(self) -> None:
        if self.id < 0:
            raise ValueError(f"vehicle id must not be negative: {self.id}")

    @property
    def vehicle_type(self) -> VehicleType:
        return self.VEHICLE_TYPE

    @property
    def is_persisted(self) -> bool:
        return self.id > UNSAVED_ID


@dataclass(kw_only=True, slots=True)
class Car(VehicleRecord):
    VEHICLE_TYPE: ClassVar[VehicleType] = VehicleType.CAR

    transports_passengers: bool = False
    has_trailer: bool = False


@dataclass(kw_only=True, slots=True)
class Truck(VehicleRecord):
    VEHICLE_TYPE: ClassVar[VehicleType] = VehicleType.TRUCK

    transports_cargo: bool = False
    has_trailer: bool = False


@dataclass(kw_only=True, slots=True)
class Motorcycle(VehicleRecord):
    VEHICLE_TYPE: ClassVar[VehicleType] = VehicleType.MOTORCYCLE

    has_cradle: bool = False


type Vehicle = Car | Truck | Motorcycle

VEHICLE_CLASS_BY_TYPE: dict[VehicleType, type[Vehicle]] = {
    VehicleType.CAR: Car,
    VehicleType.TRUCK: Truck,
    VehicleType.MOTORCYCLE: Motorcycle,
}
