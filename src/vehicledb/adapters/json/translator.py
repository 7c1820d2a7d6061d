"""Translate JSON vehicle documents into domain records and back."""

from __future__ import annotations

import json
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from vehicledb.domain.model import Car, Motorcycle, Truck, VehicleType

from .schema import ROOT_TAG, VehiclePayload, VehiclesDocument

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from vehicledb.domain.model import Vehicle

log = getLogger(__name__)


class ImportFormatError(ValueError):
    """Raised when a document cannot be turned into vehicle records."""


def parse_vehicles(payload: str | bytes | Mapping[str, Any]) -> list[Vehicle]:
    """Return unsaved records for every entry of a ``{"vehicles": [...]}`` document."""

    data = _load(payload) if isinstance(payload, str | bytes) else payload
    _check_root(data)
    try:
        document = VehiclesDocument.model_validate(data)
    except ValidationError as exc:
        raise ImportFormatError(f"Invalid vehicle document:\n{exc}") from exc
    return [_to_vehicle(index, entry) for index, entry in enumerate(document.vehicles)]


def read_vehicles(path: str | Path) -> list[Vehicle]:
    file_path = Path(path)
    try:
        content = file_path.read_bytes()
    except OSError as exc:
        log.error("Error while reading json file: %s", file_path.absolute())
        raise ImportFormatError(f"Error while reading json file: {file_path}") from exc
    records = parse_vehicles(content)
    log.info("Read %s vehicle(s) from %s", len(records), file_path)
    return records


def dump_vehicles(records: Iterable[Vehicle]) -> str:
    document = VehiclesDocument(vehicles=[_to_payload(record) for record in records])
    return document.model_dump_json(indent=2, exclude_none=True)


def write_vehicles(path: str | Path, records: Iterable[Vehicle]) -> int:
    """Write ``records`` to ``path`` and return how many were written."""

    items = list(records)
    file_path = Path(path)
    file_path.write_text(dump_vehicles(items) + "\n", encoding="utf-8")
    log.info("Wrote %s vehicle(s) to %s", len(items), file_path)
    return len(items)


def _load(payload: str | bytes) -> object:
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ImportFormatError(f"Malformed JSON: {exc}") from exc


def _check_root(data: object) -> None:
    if not isinstance(data, dict):
        raise ImportFormatError("A vehicle document must be a JSON object")
    if len(data) != 1:
        raise ImportFormatError(
            f"Expected exactly one root tag, found {len(data)}: {sorted(map(str, data))}"
        )
    (root_tag,) = data
    if root_tag != ROOT_TAG:
        raise ImportFormatError(f"Unknown root tag {root_tag!r}, expected {ROOT_TAG!r}")


def _to_vehicle(index: int, entry: VehiclePayload) -> Vehicle:
    vehicle_type = VehicleType.parse(entry.type)
    common: dict[str, Any] = {
        "color": entry.color,
        "plate_number": entry.number,
        "timestamp": entry.date,
    }
    match vehicle_type:
        case VehicleType.CAR:
            _reject_flags(index, entry, "is_transports_cargo", "has_cradle")
            return Car(
                **common,
                transports_passengers=bool(entry.is_transports_passengers),
                has_trailer=bool(entry.has_trailer),
            )
        case VehicleType.TRUCK:
            _reject_flags(index, entry, "is_transports_passengers", "has_cradle")
            return Truck(
                **common,
                transports_cargo=bool(entry.is_transports_cargo),
                has_trailer=bool(entry.has_trailer),
            )
        case VehicleType.MOTORCYCLE:
            _reject_flags(
                index, entry, "is_transports_cargo", "is_transports_passengers", "has_trailer"
            )
            return Motorcycle(**common, has_cradle=bool(entry.has_cradle))
        case None:
            raise ImportFormatError(f"Vehicle #{index}: unknown type {entry.type!r}")


def _reject_flags(index: int, entry: VehiclePayload, *names: str) -> None:
    present = [name for name in names if getattr(entry, name) is not None]
    if present:
        raise ImportFormatError(
            f"Vehicle #{index} ({entry.type}) does not accept: {', '.join(present)}"
        )


def _to_payload(record: Vehicle) -> VehiclePayload:
    payload = VehiclePayload(
        type=record.vehicle_type.value,
        color=record.color,
        number=record.plate_number,
        date=record.timestamp,
    )
    match record:
        case Car():
            payload.is_transports_passengers = record.transports_passengers
            payload.has_trailer = record.has_trailer
        case Truck():
            payload.is_transports_cargo = record.transports_cargo
            payload.has_trailer = record.has_trailer
        case Motorcycle():
            payload.has_cradle = record.has_cradle
    return payload
