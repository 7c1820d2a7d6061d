"""Pydantic models describing the JSON vehicle document."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
)

ROOT_TAG = "vehicles"


def _parse_flag(value: object) -> object:
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in ("true", "false"):
            return normalized == "true"
        raise ValueError(f"expected 'true' or 'false', got {value!r}")
    return value


def _parse_epoch_millis(value: object) -> object:
    if isinstance(value, bool):
        raise ValueError("a boolean is not a date")  # noqa: TRY004
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
        parsed = datetime.fromisoformat(stripped)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return int(parsed.timestamp() * 1000)
    return value


def _blank_to_empty(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return value


Flag = Annotated[bool, BeforeValidator(_parse_flag)]


class VehicleDocumentModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class VehiclePayload(VehicleDocumentModel):
    type: str
    color: Annotated[str, BeforeValidator(_blank_to_empty)] = ""
    number: Annotated[str, BeforeValidator(_blank_to_empty)] = ""
    date: Annotated[int, BeforeValidator(_parse_epoch_millis)] = 0

    # older exports spelled the two transport flags wrong; both spellings are read
    is_transports_cargo: Flag | None = Field(
        default=None,
        validation_alias=AliasChoices("is_transports_cargo", "is_transtorts_cargo"),
    )
    is_transports_passengers: Flag | None = Field(
        default=None,
        validation_alias=AliasChoices("is_transports_passengers", "is_transpotrs_passengers"),
    )
    has_trailer: Flag | None = None
    has_cradle: Flag | None = None

    @field_validator("type")
    @classmethod
    def _normalize_type(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("date")
    @classmethod
    def _reject_negative_date(cls, value: int) -> int:
        if value < 0:
            raise ValueError("date must not be before the epoch")
        return value


class VehiclesDocument(VehicleDocumentModel):
    vehicles: list[VehiclePayload]
