"""JSON import and export of vehicle records."""

from __future__ import annotations

from .translator import (
    ImportFormatError,
    dump_vehicles,
    parse_vehicles,
    read_vehicles,
    write_vehicles,
)

__all__ = [
    "ImportFormatError",
    "dump_vehicles",
    "parse_vehicles",
    "read_vehicles",
    "write_vehicles",
]
