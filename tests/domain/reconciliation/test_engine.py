from __future__ import annotations

import pytest

from tests.helpers.vehicles import FakeVehicleStore, make_car, make_motorcycle, make_truck
from vehicledb.domain.errors import (
    AggregateError,
    ConnectivityError,
    ConsistencyError,
    DataError,
    VehicleNotFoundError,
)
from vehicledb.domain.reconciliation import SaveReport, VehicleReconciler
from vehicledb.domain.working_set import WorkingSet


def test_read_one_returns_the_matching_record(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    stored = store.seed(make_car("A"), make_truck("B"))

    assert reconciler.read_one(stored[1].id) == stored[1]


def test_read_one_with_duplicate_rows_is_a_consistency_error(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    (stored,) = store.seed(make_car())
    store.duplicate_ids.add(stored.id)

    with pytest.raises(ConsistencyError, match="More than one"):
        reconciler.read_one(stored.id)


def test_read_one_without_match_is_not_found(reconciler: VehicleReconciler) -> None:
    with pytest.raises(VehicleNotFoundError, match="No vehicle with id 3"):
        reconciler.read_one(3)


def test_read_all_releases_the_connection(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    store.seed(make_car("A"), make_motorcycle("B"))

    records = reconciler.read_all()

    assert [record.plate_number for record in records] == ["A", "B"]
    assert store.opened == store.closed == 1


def test_save_all_changes_runs_delete_update_insert(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    removed, modified, untouched = store.seed(make_car("DEL"), make_truck("MOD"), make_car("OLD"))
    working_set = WorkingSet([removed, modified, untouched])
    new_handle = working_set.add(make_motorcycle("NEW"))
    working_set.remove(working_set.handle_for_id(removed.id))
    working_set.modify(working_set.handle_for_id(modified.id), color="white")

    report = reconciler.save_all_changes(working_set)

    assert report == SaveReport(deleted=1, updated=1, inserted=1)
    assert store.calls == [
        "delete_many:1",
        "commit",
        "batch:update:1",
        "commit",
        "batch:insert:1",
        "commit",
    ]
    new_id = working_set.get(new_handle).id
    assert new_id > 0
    assert store.rows[new_id].plate_number == "NEW"
    assert store.rows[modified.id].color == "white"
    assert removed.id not in store.rows
    assert working_set.snapshot().is_empty


def test_untouched_persisted_record_is_not_written(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    working_set = WorkingSet(store.seed(make_car(), make_truck()))

    report = reconciler.save_all_changes(working_set)

    assert report == SaveReport()
    assert store.calls == []


def test_failed_delete_and_insert_phases_are_both_reported(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    store.reject("reject")
    (modified,) = store.seed(make_car("MOD"))
    working_set = WorkingSet([modified, make_car("GHOST", vehicle_id=99)])
    working_set.remove(working_set.handle_for_id(99))
    working_set.modify(working_set.handle_for_id(modified.id), color="green")
    rejected = working_set.add(make_truck("BAD", color="reject"))

    with pytest.raises(AggregateError) as excinfo:
        reconciler.save_all_changes(working_set)

    error = excinfo.value
    assert error.labels == ("delete", "insert")
    assert all(isinstance(cause, AggregateError) for cause in error.errors)
    assert error.summary == "Save all changes operation error."
    # the clean update phase was applied and is not reported
    assert store.rows[modified.id].color == "green"
    assert working_set.pending_update_ids == frozenset()
    # failed phases keep their pending marks for the next save
    assert working_set.pending_delete_ids == frozenset({99})
    assert working_set.get(rejected).id == 0


def test_connectivity_failure_aborts_remaining_phases(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    (modified,) = store.seed(make_car("MOD"))
    working_set = WorkingSet([modified, make_car("GHOST", vehicle_id=99)])
    working_set.remove(working_set.handle_for_id(99))
    working_set.modify(working_set.handle_for_id(modified.id), color="green")
    working_set.add(make_car("NEW"))
    store.batch_error = ConnectivityError("connection reset", sqlstate="08006")

    with pytest.raises(ConnectivityError):
        reconciler.save_all_changes(working_set)

    assert store.count("batch:insert") == 0
    assert working_set.pending_update_ids == frozenset({modified.id})


def test_save_as_inserts_every_record(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    stored = store.seed(make_car("A"))
    working_set = WorkingSet([*stored, make_truck("B")])
    working_set.mark_updated(stored[0].id)

    ids = reconciler.save_as(working_set)

    assert len(ids) == 2
    assert store.count("batch:insert:2") == 1
    assert store.count("batch:update") == 0
    assert len(store.rows) == 3
    assert sorted(store.rows[vehicle_id].plate_number for vehicle_id in ids) == ["A", "B"]


def test_save_as_wraps_failures_with_the_insert_label(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    store.reject("reject")
    working_set = WorkingSet([make_car("OK"), make_car("BAD", color="reject")])

    with pytest.raises(AggregateError) as excinfo:
        reconciler.save_as(working_set)

    assert excinfo.value.labels == ("insert",)
    assert excinfo.value.summary == "Save as operation error (insert)."


def test_save_as_of_empty_working_set_is_a_no_op(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    assert reconciler.save_as(WorkingSet()) == []
    assert store.opened == 0


def test_rows_written_by_a_failed_insert_phase_are_not_inserted_again(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    store.reject("reject")
    working_set = WorkingSet()
    first = working_set.add(make_car("OK1"))
    rejected = working_set.add(make_car("BAD", color="reject"))
    second = working_set.add(make_car("OK2"))

    with pytest.raises(AggregateError):
        reconciler.save_all_changes(working_set)

    assert working_set.get(first).id > 0
    assert working_set.get(second).id > 0
    assert working_set.get(rejected).id == 0

    store.failures.clear()
    report = reconciler.save_all_changes(working_set)

    assert report == SaveReport(inserted=1)
    assert sorted(record.plate_number for record in store.rows.values()) == [
        "BAD",
        "OK1",
        "OK2",
    ]


def test_rows_written_by_a_failed_update_phase_lose_their_mark(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    store.reject("reject")
    kept, refused = store.seed(make_car("A"), make_car("B"))
    working_set = WorkingSet([kept, refused])
    working_set.modify(working_set.handle_for_id(kept.id), color="green")
    working_set.modify(working_set.handle_for_id(refused.id), color="reject")

    with pytest.raises(AggregateError):
        reconciler.save_all_changes(working_set)

    assert store.rows[kept.id].color == "green"
    assert working_set.pending_update_ids == frozenset({refused.id})


def test_ids_deleted_by_a_failed_delete_phase_are_confirmed(
    store: FakeVehicleStore, reconciler: VehicleReconciler
) -> None:
    removed, locked = store.seed(make_car("A"), make_car("B"))
    working_set = WorkingSet([removed, locked])
    for record in (removed, locked):
        working_set.remove(working_set.handle_for_id(record.id))
    store.delete_many_error = DataError("foreign key violation", sqlstate="23503")
    store.delete_one_errors[locked.id] = DataError("foreign key violation", sqlstate="23503")

    with pytest.raises(AggregateError):
        reconciler.save_all_changes(working_set)

    assert removed.id not in store.rows
    assert working_set.pending_delete_ids == frozenset({locked.id})

    with pytest.raises(AggregateError) as excinfo:
        reconciler.save_all_changes(working_set)

    (phase_error,) = excinfo.value.errors
    assert isinstance(phase_error, AggregateError)
    assert phase_error.labels == (str(locked.id),)
    assert f"delete_one:{removed.id}" not in store.calls[store.calls.index("delete_many:1") :]
