"""Ports for reading and writing vehicle rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from vehicledb.domain.model import Vehicle

# Per-item batch codes, mirroring what relational drivers report for executemany.
SUCCESS_NO_INFO: Final[int] = -2
EXECUTE_FAILED: Final[int] = -3


@dataclass(slots=True)
class BatchResult:
    """Outcome of one executed batch.

    ``counts`` holds one entry per bound record: an affected-row count, or one of
    ``SUCCESS_NO_INFO`` / ``EXECUTE_FAILED``. ``ids`` holds the persisted id of each
    record in the same order.
    """

    counts: list[int] = field(default_factory=list)
    ids: list[int] = field(default_factory=list)


@runtime_checkable
class VehicleRepository(Protocol):
    """Fixed statements the reconciliation engine runs against the store."""

    def select_by_id(self, vehicle_id: int) -> Sequence[Vehicle]: ...

    def select_all(self) -> Sequence[Vehicle]: ...

    def execute_batch(
        self, records: Sequence[Vehicle], *, is_update: bool
    ) -> BatchResult | None: ...

    def execute_one(self, record: Vehicle, *, is_update: bool) -> int: ...

    def delete_many(self, ids: Sequence[int]) -> int: ...

    def delete_one(self, vehicle_id: int) -> int: ...
