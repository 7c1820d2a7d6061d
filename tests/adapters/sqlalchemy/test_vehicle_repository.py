from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import DBAPIError

from tests.helpers.vehicles import make_car, make_motorcycle, make_truck
from vehicledb.adapters.sqlalchemy import SqlAlchemyVehicleRepository, sqlstate_of, translate_error
from vehicledb.domain.errors import ConnectivityError, DataError
from vehicledb.domain.ports import SUCCESS_NO_INFO, VehicleRepository

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Connection, Engine


@pytest.fixture
def connection(sqlite_engine: Engine) -> Iterator[Connection]:
    with sqlite_engine.connect() as connection:
        yield connection


@pytest.fixture
def repository(connection: Connection) -> SqlAlchemyVehicleRepository:
    return SqlAlchemyVehicleRepository(connection)


class _DriverError(Exception):
    def __init__(
        self, message: str, *, sqlstate: str | None = None, pgcode: str | None = None
    ) -> None:
        super().__init__(message)
        if sqlstate is not None:
            self.sqlstate = sqlstate
        if pgcode is not None:
            self.pgcode = pgcode


def test_repository_satisfies_port(repository: SqlAlchemyVehicleRepository) -> None:
    assert isinstance(repository, VehicleRepository)


def test_batch_insert_returns_generated_ids_in_order(
    repository: SqlAlchemyVehicleRepository, connection: Connection
) -> None:
    records = [make_car("A"), make_truck("B"), make_motorcycle("C")]

    result = repository.execute_batch(records, is_update=False)
    connection.commit()

    assert result.counts == [1, 1, 1]
    assert len(result.ids) == 3
    stored = {record.id: record.plate_number for record in repository.select_all()}
    assert [stored[vehicle_id] for vehicle_id in result.ids] == ["A", "B", "C"]


def test_batch_update_reports_success_without_counts(
    repository: SqlAlchemyVehicleRepository,
) -> None:
    ids = repository.execute_batch([make_car("A"), make_car("B")], is_update=False).ids
    updated = [make_car("A", vehicle_id=ids[0], color="green"), make_car("B", vehicle_id=ids[1])]

    result = repository.execute_batch(updated, is_update=True)

    assert result.counts == [SUCCESS_NO_INFO, SUCCESS_NO_INFO]
    assert result.ids == ids
    assert repository.select_by_id(ids[0])[0].color == "green"


def test_single_row_update_reports_affected_count(
    repository: SqlAlchemyVehicleRepository,
) -> None:
    (vehicle_id,) = repository.execute_batch([make_truck()], is_update=False).ids

    result = repository.execute_batch([make_truck(vehicle_id=vehicle_id)], is_update=True)

    assert result.counts == [1]


def test_execute_one_inserts_and_updates(repository: SqlAlchemyVehicleRepository) -> None:
    vehicle_id = repository.execute_one(make_motorcycle("M"), is_update=False)

    assert repository.execute_one(
        make_motorcycle("M2", vehicle_id=vehicle_id), is_update=True
    ) == vehicle_id
    (stored,) = repository.select_by_id(vehicle_id)
    assert stored.plate_number == "M2"


def test_select_by_id_without_match(repository: SqlAlchemyVehicleRepository) -> None:
    assert repository.select_by_id(42) == []


def test_delete_many_and_delete_one_report_counts(
    repository: SqlAlchemyVehicleRepository,
) -> None:
    ids = repository.execute_batch(
        [make_car("A"), make_car("B"), make_car("C")], is_update=False
    ).ids

    assert repository.delete_many([ids[0], ids[1], 999]) == 2
    assert repository.delete_one(ids[2]) == 1
    assert repository.delete_one(ids[2]) == 0
    assert repository.select_all() == []


def test_rejected_row_becomes_data_error(
    reject_trigger: str, repository: SqlAlchemyVehicleRepository
) -> None:
    with pytest.raises(DataError, match="Insert error: rejected colour") as excinfo:
        repository.execute_one(make_car(color=reject_trigger), is_update=False)

    assert isinstance(excinfo.value.__cause__, DBAPIError)


def test_sqlstate_is_read_from_the_driver_error() -> None:
    with_sqlstate = DBAPIError("INSERT", None, _DriverError("x", sqlstate="23505"))
    with_pgcode = DBAPIError("INSERT", None, _DriverError("x", pgcode="08006"))
    without = DBAPIError("INSERT", None, _DriverError("x"))

    assert sqlstate_of(with_sqlstate) == "23505"
    assert sqlstate_of(with_pgcode) == "08006"
    assert sqlstate_of(without) is None


def test_invalidated_connection_maps_to_connection_failure() -> None:
    error = DBAPIError("SELECT", None, _DriverError("closed"), connection_invalidated=True)

    translated = translate_error(error, "Read all error")

    assert isinstance(translated, ConnectivityError)
    assert translated.sqlstate == "08006"


def test_translated_error_keeps_the_driver_message() -> None:
    error = DBAPIError("INSERT", None, _DriverError("value too long", sqlstate="22001"))

    translated = translate_error(error, "Batch insert error")

    assert isinstance(translated, DataError)
    assert str(translated) == "Batch insert error: value too long"
