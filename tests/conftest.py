from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from tests.helpers.vehicles import FakeVehicleStore
from vehicledb.adapters.sqlalchemy import create_all_tables
from vehicledb.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyVehicleUnitOfWork,
    shutdown,
    startup,
)
from vehicledb.domain.reconciliation import VehicleReconciler

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

REJECTED_COLOR = "reject"


@pytest.fixture
def store() -> FakeVehicleStore:
    return FakeVehicleStore()


@pytest.fixture
def reconciler(store: FakeVehicleStore) -> VehicleReconciler:
    return VehicleReconciler(store.unit_of_work)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyVehicleUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyVehicleUnitOfWork
    finally:
        shutdown()


@pytest.fixture
def sqlite_reconciler(
    sqlite_unit_of_work: Callable[[], SqlAlchemyVehicleUnitOfWork],
) -> VehicleReconciler:
    return VehicleReconciler(sqlite_unit_of_work, chunk_size=3)


@pytest.fixture
def reject_trigger(sqlite_engine: Engine) -> str:
    """Make the store reject any insert or update of a row coloured ``reject``."""

    with sqlite_engine.begin() as connection:
        for event in ("INSERT", "UPDATE"):
            connection.execute(
                text(
                    f"CREATE TRIGGER reject_{event.lower()} BEFORE {event} ON vehicle "
                    f"WHEN NEW.color = '{REJECTED_COLOR}' "
                    "BEGIN SELECT RAISE(ABORT, 'rejected colour'); END"
                )
            )
    return REJECTED_COLOR
