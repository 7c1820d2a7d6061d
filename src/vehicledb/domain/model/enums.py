"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class VehicleType(StrEnum):
    """Discriminator stored in the ``type`` column and in exported documents."""

    CAR = "car"
    TRUCK = "truck"
    MOTORCYCLE = "motorcycle"

    @classmethod
    def parse(cls, value: str) -> VehicleType | None:
        """Return the type for ``value`` ignoring case and surrounding blanks."""

        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        return None
