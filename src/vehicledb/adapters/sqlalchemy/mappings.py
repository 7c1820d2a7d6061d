"""SQLAlchemy table metadata and row codec for vehicle records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import BigInteger, Column, Integer, MetaData, String, Table

from vehicledb.domain.errors import ConsistencyError
from vehicledb.domain.model import Car, Motorcycle, Truck, VehicleType

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine

    from vehicledb.domain.model import Vehicle

metadata = MetaData()

vehicle_table = Table(
    "vehicle",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", String, nullable=False),
    Column("color", String, nullable=True),
    Column("number", String, nullable=True),
    Column("date_time", BigInteger, nullable=True),
    Column("is_transports_cargo", Integer, nullable=True),
    Column("is_transports_passengers", Integer, nullable=True),
    Column("has_trailer", Integer, nullable=True),
    Column("has_cradle", Integer, nullable=True),
    # ids are never reused once a row is deleted
    sqlite_autoincrement=True,
)

# Positional order of the write statements; the update appends the id.
WRITE_COLUMNS: Final[tuple[str, ...]] = (
    "type",
    "color",
    "number",
    "date_time",
    "is_transports_cargo",
    "is_transports_passengers",
    "has_trailer",
    "has_cradle",
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine, checkfirst=True)


def vehicle_to_row(vehicle: Vehicle) -> dict[str, Any]:
    """Bind a record to the write columns; flags the variant lacks stay NULL."""

    row: dict[str, Any] = dict.fromkeys(WRITE_COLUMNS)
    row["type"] = vehicle.vehicle_type.value
    row["color"] = vehicle.color
    row["number"] = vehicle.plate_number
    row["date_time"] = vehicle.timestamp

    match vehicle:
        case Car():
            row["is_transports_passengers"] = _to_flag(vehicle.transports_passengers)
            row["has_trailer"] = _to_flag(vehicle.has_trailer)
        case Truck():
            row["is_transports_cargo"] = _to_flag(vehicle.transports_cargo)
            row["has_trailer"] = _to_flag(vehicle.has_trailer)
        case Motorcycle():
            row["has_cradle"] = _to_flag(vehicle.has_cradle)

    return row


def row_to_vehicle(row: Mapping[str, Any]) -> Vehicle:
    """Decode a ``vehicle`` row, rejecting unknown tags and non 0/1 flags."""

    tag = row["type"]
    vehicle_type = VehicleType.parse(tag) if isinstance(tag, str) else None
    if vehicle_type is None:
        raise ConsistencyError(f"Wrong type: {tag!r} (row id {row['id']})")

    common: dict[str, Any] = {
        "id": row["id"],
        "color": row["color"] or "",
        "plate_number": row["number"] or "",
        "timestamp": row["date_time"] or 0,
    }

    match vehicle_type:
        case VehicleType.CAR:
            return Car(
                **common,
                transports_passengers=_from_flag(row, "is_transports_passengers"),
                has_trailer=_from_flag(row, "has_trailer"),
            )
        case VehicleType.TRUCK:
            return Truck(
                **common,
                transports_cargo=_from_flag(row, "is_transports_cargo"),
                has_trailer=_from_flag(row, "has_trailer"),
            )
        case VehicleType.MOTORCYCLE:
            return Motorcycle(**common, has_cradle=_from_flag(row, "has_cradle"))


def _to_flag(value: bool) -> int:  # noqa: FBT001
    return 1 if value else 0


def _from_flag(row: Mapping[str, Any], column: str) -> bool:
    value = row[column]
    if isinstance(value, int) and value in (0, 1):
        return value == 1
    raise ConsistencyError(
        f"Wrong logic value: {value!r} in column {column} (row id {row['id']})"
    )
