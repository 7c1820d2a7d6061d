"""Repository implementation backed by a SQLAlchemy connection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from sqlalchemy import bindparam, delete, insert, select, text, update
from sqlalchemy.exc import DBAPIError

from vehicledb.adapters.sqlalchemy.mappings import row_to_vehicle, vehicle_table, vehicle_to_row
from vehicledb.domain.ports import EXECUTE_FAILED, SUCCESS_NO_INFO, BatchResult
from vehicledb.domain.reconciliation.classify import error_for_sqlstate

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.engine import Connection, CursorResult
    from sqlalchemy.sql.base import Executable

    from vehicledb.domain.errors import StoreError
    from vehicledb.domain.model import Vehicle

# SQLSTATE "connection failure", used when the driver reports none
CONNECTION_FAILURE_SQLSTATE: Final[str] = "08006"

_SELECT_ONE = select(vehicle_table).where(vehicle_table.c.id == bindparam("vehicle_id"))
_SELECT_ALL = select(vehicle_table).order_by(vehicle_table.c.id)
_INSERT = insert(vehicle_table).returning(vehicle_table.c.id, sort_by_parameter_order=True)
_UPDATE = update(vehicle_table).where(vehicle_table.c.id == bindparam("vehicle_id"))
_DELETE_ONE = delete(vehicle_table).where(vehicle_table.c.id == bindparam("vehicle_id"))
_DELETE_MANY = "DELETE FROM vehicle WHERE id IN ({ids})"


def sqlstate_of(error: DBAPIError) -> str | None:
    """Return the SQLSTATE reported by the DBAPI driver, if any."""

    for attribute in ("sqlstate", "pgcode"):
        value = getattr(error.orig, attribute, None)
        if isinstance(value, str) and value:
            return value
    if error.connection_invalidated:
        return CONNECTION_FAILURE_SQLSTATE
    return None


def translate_error(error: DBAPIError, message: str) -> StoreError:
    return error_for_sqlstate(f"{message}: {error.orig}", sqlstate_of(error))


class SqlAlchemyVehicleRepository:
    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    def select_by_id(self, vehicle_id: int) -> list[Vehicle]:
        result = self._execute(_SELECT_ONE, {"vehicle_id": vehicle_id}, "Read one error")
        return [row_to_vehicle(row) for row in result.mappings()]

    def select_all(self) -> list[Vehicle]:
        result = self._execute(_SELECT_ALL, None, "Read all error")
        return [row_to_vehicle(row) for row in result.mappings()]

    def execute_batch(self, records: Sequence[Vehicle], *, is_update: bool) -> BatchResult:
        if is_update:
            params = [self._update_params(record) for record in records]
            result = self._execute(_UPDATE, params, "Batch update error")
            if len(params) == 1 and result.rowcount >= 0:
                return BatchResult(counts=[result.rowcount], ids=[records[0].id])
            return BatchResult(
                counts=[SUCCESS_NO_INFO] * len(records),
                ids=[record.id for record in records],
            )

        rows = [vehicle_to_row(record) for record in records]
        result = self._execute(_INSERT, rows, "Batch insert error")
        ids = list(result.scalars().all())
        missing = len(rows) - len(ids)
        return BatchResult(counts=[1] * len(ids) + [EXECUTE_FAILED] * missing, ids=ids)

    def execute_one(self, record: Vehicle, *, is_update: bool) -> int:
        if is_update:
            self._execute(_UPDATE, self._update_params(record), "Update error")
            return record.id
        result = self._execute(_INSERT, vehicle_to_row(record), "Insert error")
        return result.scalar_one()

    def delete_many(self, ids: Sequence[int]) -> int:
        id_list = ",".join(str(int(vehicle_id)) for vehicle_id in ids)
        statement = text(_DELETE_MANY.format(ids=id_list))
        return self._execute(statement, None, "Bulk delete error").rowcount

    def delete_one(self, vehicle_id: int) -> int:
        result = self._execute(_DELETE_ONE, {"vehicle_id": vehicle_id}, "Delete error")
        return result.rowcount

    @staticmethod
    def _update_params(record: Vehicle) -> dict[str, Any]:
        return {**vehicle_to_row(record), "vehicle_id": record.id}

    def _execute(
        self,
        statement: Executable,
        params: dict[str, Any] | list[dict[str, Any]] | None,
        message: str,
    ) -> CursorResult[Any]:
        try:
            return self.connection.execute(statement, params)
        except DBAPIError as exc:
            raise translate_error(exc, message) from exc
