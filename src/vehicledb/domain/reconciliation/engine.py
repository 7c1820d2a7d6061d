"""Orchestrator synchronising a working set with the vehicle store.

``save_all_changes`` runs three phases against a snapshot of the working set:
1) delete the ids marked for deletion
2) update persisted records marked as modified
3) insert records that were never saved

Each phase runs even if an earlier one failed. Phase failures are collected into
one ``AggregateError``; connectivity and consistency failures abort the call.
Rows a failed phase still wrote during its row-by-row retry are applied to the
working set, so the next save does not write them again.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from vehicledb.domain.errors import (
    AggregateError,
    ConsistencyError,
    DataError,
    Failure,
    PersistenceError,
    StoreError,
    VehicleNotFoundError,
)
from vehicledb.domain.reconciliation.batch import DEFAULT_CHUNK_SIZE, write_batch
from vehicledb.domain.reconciliation.classify import FailureKind, classify
from vehicledb.domain.reconciliation.fallback import delete_one_by_one

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from vehicledb.domain.model import Vehicle
    from vehicledb.domain.ports import UnitOfWorkFactory
    from vehicledb.domain.working_set import PendingRecord, WorkingSet

log = getLogger(__name__)

DELETE_PHASE: Final[str] = "delete"
UPDATE_PHASE: Final[str] = "update"
INSERT_PHASE: Final[str] = "insert"

BULK_DELETE_ERROR: Final[str] = "Error while removing several rows in one query."


@dataclass(slots=True)
class SaveReport:
    """Number of rows written by each phase of a save."""

    deleted: int = 0
    updated: int = 0
    inserted: int = 0


@dataclass(slots=True)
class VehicleReconciler:
    """Read and write vehicles through short-lived units of work."""

    unit_of_work_factory: UnitOfWorkFactory
    chunk_size: int = DEFAULT_CHUNK_SIZE

    # Reads -------------------------------------------------------------------

    def read_one(self, vehicle_id: int) -> Vehicle:
        with self.unit_of_work_factory() as uow:
            matches = list(uow.vehicles.select_by_id(vehicle_id))
        if len(matches) > 1:
            raise ConsistencyError(f"More than one vehicle with id {vehicle_id}")
        if not matches:
            raise VehicleNotFoundError(f"No vehicle with id {vehicle_id}")
        return matches[0]

    def read_all(self) -> list[Vehicle]:
        with self.unit_of_work_factory() as uow:
            return list(uow.vehicles.select_all())

    # Writes ------------------------------------------------------------------

    def insert(self, records: Iterable[Vehicle]) -> list[int]:
        return write_batch(
            self.unit_of_work_factory, records, is_update=False, chunk_size=self.chunk_size
        )

    def update(self, records: Iterable[Vehicle]) -> list[int]:
        return write_batch(
            self.unit_of_work_factory, records, is_update=True, chunk_size=self.chunk_size
        )

    def delete(self, ids: Iterable[int]) -> list[int]:
        """Delete ``ids`` with one statement, falling back to one statement per id."""

        targets = list(dict.fromkeys(ids))
        if not targets:
            return []

        with self.unit_of_work_factory() as uow:
            try:
                affected = uow.vehicles.delete_many(targets)
                if affected <= 0:
                    id_list = ",".join(str(vehicle_id) for vehicle_id in targets)
                    raise DataError(  # noqa: TRY301
                        "Information has not been deleted from the database."
                        f"\nid list for delete: {id_list}"
                    )
                uow.commit()
            except StoreError as exc:
                if classify(exc) is FailureKind.CONNECTIVITY:
                    log.error(
                        "%s\nConnection error (code %s)", BULK_DELETE_ERROR, exc.sqlstate
                    )
                    raise
                log.error("%s %s", BULK_DELETE_ERROR, exc)
                uow.rollback()
                return delete_one_by_one(uow, targets)
        return targets

    def save_all_changes(self, working_set: WorkingSet) -> SaveReport:
        snapshot = working_set.snapshot()
        report = SaveReport()
        failures: list[Failure] = []
        log.info(
            "Saving changes: delete=%s, update=%s, insert=%s",
            len(snapshot.delete_ids),
            len(snapshot.updates),
            len(snapshot.inserts),
        )

        if snapshot.delete_ids:
            deleted = self._run_phase(DELETE_PHASE, failures, self.delete, snapshot.delete_ids)
            confirmed = [vehicle_id for vehicle_id in deleted if vehicle_id is not None]
            working_set.confirm_deleted(confirmed)
            report.deleted = len(confirmed)

        if snapshot.updates:
            updated = self._run_phase(
                UPDATE_PHASE, failures, self.update, snapshot.update_records
            )
            written = _written(snapshot.updates, updated)
            working_set.confirm_updated(pending for pending, _id in written)
            report.updated = len(written)

        if snapshot.inserts:
            inserted = self._run_phase(
                INSERT_PHASE, failures, self.insert, snapshot.insert_records
            )
            written = _written(snapshot.inserts, inserted)
            working_set.assign_ids(
                [pending for pending, _id in written], [new_id for _pending, new_id in written]
            )
            report.inserted = len(written)

        if failures:
            raise AggregateError("Save all changes operation error.", failures)

        log.info(
            "Saved changes: deleted=%s, updated=%s, inserted=%s",
            report.deleted,
            report.updated,
            report.inserted,
        )
        return report

    def save_as(self, working_set: WorkingSet) -> list[int]:
        """Insert every record of ``working_set`` as a new row, ignoring ids."""

        records = working_set.records()
        if not records:
            return []
        try:
            return self.insert(records)
        except PersistenceError as exc:
            if _is_fatal(exc):
                raise
            raise AggregateError(
                "Save as operation error (insert).", [Failure(INSERT_PHASE, exc)]
            ) from exc

    def _run_phase[TItem](
        self,
        phase: str,
        failures: list[Failure],
        operation: Callable[[Sequence[TItem]], list[int]],
        items: Sequence[TItem],
    ) -> Sequence[int | None]:
        """Run one phase; on failure return the ids its row-by-row retry still wrote."""

        try:
            return operation(items)
        except PersistenceError as exc:
            if _is_fatal(exc):
                raise
            log.error("%s operation error: %s", phase.capitalize(), exc)
            failures.append(Failure(phase, exc))
            return exc.partial_ids if isinstance(exc, AggregateError) else ()


def _written(
    pending: Sequence[PendingRecord], ids: Sequence[int | None]
) -> list[tuple[PendingRecord, int]]:
    if len(ids) != len(pending):
        return []
    return [
        (item, new_id) for item, new_id in zip(pending, ids, strict=True) if new_id is not None
    ]


def _is_fatal(error: PersistenceError) -> bool:
    return isinstance(error, ConsistencyError) or classify(error) is FailureKind.CONNECTIVITY
