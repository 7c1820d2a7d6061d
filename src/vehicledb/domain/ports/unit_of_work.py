"""Unit-of-work abstraction: one connection, explicit transaction boundaries."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from vehicledb.domain.ports.persistence import VehicleRepository


@runtime_checkable
class VehicleUnitOfWork(Protocol):
    """Scoped store access; the connection is released on every exit path."""

    @property
    def vehicles(self) -> VehicleRepository: ...

    def __enter__(self) -> VehicleUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


type UnitOfWorkFactory = Callable[[], VehicleUnitOfWork]
