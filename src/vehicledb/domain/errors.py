"""Error taxonomy shared by the reconciliation engine and its adapters.

``StoreError`` subclasses describe a failure reported by the store and carry the
SQLSTATE when the driver exposes one. ``ConnectivityError`` and
``ConsistencyError`` are never contained: they abort the enclosing operation.
``AggregateError`` bundles independent sub-failures (phases, or rows of a
fallback run) where some work may have succeeded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


class PersistenceError(Exception):
    """Base class for persistence failures."""


class StoreError(PersistenceError):
    """Raised when the store rejects a statement or becomes unavailable."""

    def __init__(self, message: str, *, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class ConnectivityError(StoreError):
    """Raised when the store is unreachable or the connection dropped."""


class DataError(StoreError):
    """Raised when a record or statement is rejected by the store."""


class ConsistencyError(PersistenceError):
    """Raised when stored data violates an invariant the engine relies on."""


class VehicleNotFoundError(PersistenceError):
    """Raised when a lookup by id matches no stored vehicle."""


@dataclass(frozen=True, slots=True)
class Failure:
    """One labelled cause inside an ``AggregateError``."""

    label: str
    error: Exception

    def describe(self) -> str:
        return f"{self.label}\n\t({self.error})"


class AggregateError(PersistenceError):
    """Several independent failures reported together."""

    def __init__(
        self,
        message: str,
        failures: Iterable[Failure],
        *,
        partial_ids: Sequence[int | None] = (),
    ) -> None:
        self.failures: tuple[Failure, ...] = tuple(failures)
        # aligned with the attempted rows; None where the row was not written
        self.partial_ids: tuple[int | None, ...] = tuple(partial_ids)
        if not self.failures:
            raise ValueError("AggregateError requires at least one failure")
        self.summary = message
        details = "\n".join(failure.describe() for failure in self.failures)
        super().__init__(f"{message}\n{details}")
        self.__cause__ = self.failures[0].error

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(failure.label for failure in self.failures)

    @property
    def errors(self) -> tuple[Exception, ...]:
        return tuple(failure.error for failure in self.failures)

    @property
    def primary(self) -> Exception:
        return self.failures[0].error
