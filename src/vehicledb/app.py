"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from vehicledb.adapters.json import read_vehicles, write_vehicles
from vehicledb.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyVehicleUnitOfWork,
    is_started,
    startup,
)
from vehicledb.common.worker import get_worker
from vehicledb.config import get_reconciliation_config
from vehicledb.domain.reconciliation import VehicleReconciler
from vehicledb.domain.working_set import WorkingSet

if TYPE_CHECKING:
    from collections.abc import Iterable
    from concurrent.futures import Future
    from pathlib import Path

    from vehicledb.common.worker import BackgroundWorker
    from vehicledb.domain.model import Vehicle
    from vehicledb.domain.ports import UnitOfWorkFactory
    from vehicledb.domain.reconciliation import SaveReport


log = getLogger(__name__)


def build_reconciler(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    chunk_size: int | None = None,
) -> VehicleReconciler:
    """Return a reconciler wired to the configured store."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyVehicleUnitOfWork
    effective_chunk_size = chunk_size or get_reconciliation_config().chunk_size
    return VehicleReconciler(unit_of_work_factory, chunk_size=effective_chunk_size)


def load_working_set(reconciler: VehicleReconciler | None = None) -> WorkingSet:
    """Read every stored vehicle into a fresh working set."""

    effective = reconciler or build_reconciler()
    working_set = WorkingSet(effective.read_all())
    log.info("Loaded %s vehicle(s)", len(working_set))
    return working_set


def save_changes(
    working_set: WorkingSet,
    reconciler: VehicleReconciler | None = None,
) -> SaveReport:
    effective = reconciler or build_reconciler()
    return effective.save_all_changes(working_set)


def import_vehicles(
    path: str | Path,
    working_set: WorkingSet,
    reconciler: VehicleReconciler | None = None,
) -> SaveReport:
    """Add the vehicles of a JSON document to ``working_set`` and save all changes."""

    records = read_vehicles(path)
    working_set.extend(records)
    log.info("Importing %s vehicle(s) from %s", len(records), path)
    return save_changes(working_set, reconciler)


def export_vehicles(
    path: str | Path,
    reconciler: VehicleReconciler | None = None,
    *,
    records: Iterable[Vehicle] | None = None,
) -> int:
    """Write ``records`` (default: every stored vehicle) to a JSON document."""

    if records is None:
        effective = reconciler or build_reconciler()
        records = effective.read_all()
    return write_vehicles(path, records)


def delete_vehicles(
    ids: Iterable[int],
    reconciler: VehicleReconciler | None = None,
) -> list[int]:
    effective = reconciler or build_reconciler()
    deleted = effective.delete(ids)
    log.info("Deleted %s vehicle(s)", len(deleted))
    return deleted


def submit_save(
    working_set: WorkingSet,
    reconciler: VehicleReconciler | None = None,
    *,
    worker: BackgroundWorker | None = None,
) -> Future[SaveReport]:
    """Run ``save_all_changes`` on the background worker."""

    effective = reconciler or build_reconciler()
    effective_worker = worker or get_worker()
    return effective_worker.submit(effective.save_all_changes, working_set)
