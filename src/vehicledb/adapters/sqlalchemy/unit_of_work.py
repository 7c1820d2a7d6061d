"""SQLAlchemy-backed unit of work: one connection per store operation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError

from vehicledb.adapters.sqlalchemy.mappings import create_all_tables
from vehicledb.adapters.sqlalchemy.repositories import (
    SqlAlchemyVehicleRepository,
    translate_error,
)
from vehicledb.config.storage import (
    DEFAULT_ISOLATION_LEVEL,
    get_database_config,
    get_isolation_level,
)
from vehicledb.domain.errors import ConnectivityError, StoreError

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

log = logging.getLogger(__name__)

# SQLSTATE "client unable to establish connection"
CONNECT_FAILURE_SQLSTATE: Final[str] = "08001"


class StartupError(RuntimeError):
    """Raised when the vehicle store is used before ``startup`` or configured twice."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None
    isolation_level: str | None = DEFAULT_ISOLATION_LEVEL

    def require_engine(self) -> Engine:
        if self.engine is None:
            raise StartupError(
                "Vehicle store not initialised: call startup() before opening a unit of work."
            )
        return self.engine


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    isolation_level: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, the schema and the isolation level."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "Vehicle store already initialised; use force=True to replace the engine."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    create_all_tables(resolved_engine)

    if _STATE.engine is not None and _STATE.engine is not resolved_engine:
        _STATE.engine.dispose()
    _STATE.engine = resolved_engine
    _STATE.isolation_level = isolation_level or get_isolation_level()
    log.info(
        "Vehicle store ready: %s (isolation %s)",
        resolved_engine.url.render_as_string(hide_password=True),
        _STATE.isolation_level,
    )


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Forget the engine so the next ``startup`` starts from scratch."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.isolation_level = DEFAULT_ISOLATION_LEVEL


class SqlAlchemyVehicleUnitOfWork:
    """Unit of work holding one connection with manual transaction control."""

    def __init__(self) -> None:
        self.engine: Engine = _STATE.require_engine()
        self.isolation_level = _STATE.isolation_level
        self._connection: Connection | None = None
        self._vehicles: SqlAlchemyVehicleRepository | None = None

    def __enter__(self) -> SqlAlchemyVehicleUnitOfWork:
        if self._connection is not None:
            raise StartupError("Unit of work connection already initialised")
        try:
            connection = self.engine.connect()
        except DBAPIError as exc:
            raise ConnectivityError(
                f"Can't connect to the database: {exc.orig}",
                sqlstate=CONNECT_FAILURE_SQLSTATE,
            ) from exc
        if self.isolation_level:
            connection.execution_options(isolation_level=self.isolation_level)
        self._connection = connection
        self._vehicles = SqlAlchemyVehicleRepository(connection)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self._rollback_after_error()
        finally:
            self.connection.close()
            self._connection = None
            self._vehicles = None
        return False  # don't swallow exceptions

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise StartupError("Unit of work connection not initialised")
        return self._connection

    @property
    def vehicles(self) -> SqlAlchemyVehicleRepository:
        if self._vehicles is None:
            raise StartupError("Unit of work connection not initialised")
        return self._vehicles

    def commit(self) -> None:
        try:
            self.connection.commit()
        except DBAPIError as exc:
            raise translate_error(exc, "Commit error") from exc

    def rollback(self) -> None:
        try:
            self.connection.rollback()
        except DBAPIError as exc:
            raise translate_error(exc, "SQL rollback error") from exc

    def _rollback_after_error(self) -> None:
        # the original exception is still propagating; a failed rollback is only logged
        try:
            self.rollback()
        except StoreError:
            log.exception("Rollback after a failed operation did not succeed")


if TYPE_CHECKING:
    from vehicledb.domain.ports import VehicleUnitOfWork

    _uow_check: VehicleUnitOfWork = SqlAlchemyVehicleUnitOfWork()
