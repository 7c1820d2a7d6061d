"""Row-by-row retry path used after a batch statement failed.

Every row runs in its own transaction. A rejected row is collected and the
remaining rows are still attempted; only a connectivity failure stops the run.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from vehicledb.domain.errors import AggregateError, DataError, Failure, StoreError
from vehicledb.domain.reconciliation.classify import FailureKind, classify

if TYPE_CHECKING:
    from collections.abc import Sequence

    from vehicledb.domain.model import Vehicle
    from vehicledb.domain.ports import VehicleUnitOfWork

log = getLogger(__name__)


def write_one_by_one(
    uow: VehicleUnitOfWork,
    records: Sequence[Vehicle],
    *,
    is_update: bool,
    error_message: str = "",
) -> list[int]:
    """Insert or update ``records`` one at a time and return their persisted ids."""

    operation = "update" if is_update else "insert"
    failures: list[Failure] = []
    ids: list[int | None] = []

    for record in records:
        try:
            persisted_id = uow.vehicles.execute_one(record, is_update=is_update)
            uow.commit()
        except StoreError as exc:
            _abort_on_connectivity(exc, f"{operation} one by one")
            uow.rollback()
            failures.append(Failure(str(record), exc))
            ids.append(None)
        else:
            ids.append(persisted_id)

    if failures:
        prefix = f"{error_message} " if error_message else ""
        error = AggregateError(f"{prefix}Can't {operation}:", failures, partial_ids=ids)
        log.error("%s", error)
        raise error

    log.info("Row-by-row %s recovered %s record(s)", operation, len(ids))
    return [persisted_id for persisted_id in ids if persisted_id is not None]


def delete_one_by_one(uow: VehicleUnitOfWork, ids: Sequence[int]) -> list[int]:
    """Delete ``ids`` one at a time; an id that matches no row is a failure."""

    failures: list[Failure] = []
    deleted: list[int | None] = []

    for vehicle_id in ids:
        try:
            affected = uow.vehicles.delete_one(vehicle_id)
            uow.commit()
        except StoreError as exc:
            _abort_on_connectivity(exc, "delete one by one")
            uow.rollback()
            failures.append(Failure(str(vehicle_id), exc))
            deleted.append(None)
            continue
        if affected <= 0:
            failures.append(Failure(str(vehicle_id), DataError("No row with this id")))
            deleted.append(None)
        else:
            deleted.append(vehicle_id)

    if failures:
        error = AggregateError(
            "Information has not been deleted from the database. Can't delete objects with ids:",
            failures,
            partial_ids=deleted,
        )
        log.error("%s", error)
        raise error

    return [vehicle_id for vehicle_id in deleted if vehicle_id is not None]


def _abort_on_connectivity(error: StoreError, operation: str) -> None:
    if classify(error) is FailureKind.CONNECTIVITY:
        log.error("Connection lost during %s (code %s)", operation, error.sqlstate)
        raise error
