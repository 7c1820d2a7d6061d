"""Chunked batch insert/update with a commit per chunk.

A chunk is committed only when every per-item result reports success. When a
chunk fails on data grounds the transaction is rolled back and the whole input
(not just the failing chunk) is retried row by row, because the failing item
cannot be identified from the aggregate batch result. Earlier chunks are already
committed at that point and are written again by the retry.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from vehicledb.domain.errors import DataError, StoreError
from vehicledb.domain.ports import EXECUTE_FAILED, SUCCESS_NO_INFO
from vehicledb.domain.reconciliation.classify import FailureKind, classify
from vehicledb.domain.reconciliation.fallback import write_one_by_one

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from vehicledb.domain.model import Vehicle
    from vehicledb.domain.ports import BatchResult, UnitOfWorkFactory, VehicleUnitOfWork

log = getLogger(__name__)

DEFAULT_CHUNK_SIZE: Final[int] = 1_000

INSERT_ERROR: Final[str] = "The information has not been added to the database: %s"
UPDATE_ERROR: Final[str] = "The information in the database has not been updated: %s"


def chunked(records: Sequence[Vehicle], size: int) -> Iterator[Sequence[Vehicle]]:
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(records), size):
        yield records[start : start + size]


def check_batch_results(result: BatchResult | None, error_message: str) -> None:
    """Raise ``DataError`` unless every per-item code is a success code."""

    if result is None:
        log.warning("Batch execution result is missing. Check! Maybe %s", error_message)
        return

    for code in result.counts:
        if code >= 0 or code == SUCCESS_NO_INFO:
            continue
        if code == EXECUTE_FAILED:
            detail = "result code 'EXECUTE_FAILED' was received."
        else:
            detail = f"unknown result code '{code}' was received."
        message = f"Batch execution error:\n{error_message}\nWhen executing the batch, {detail}"
        log.error(message)
        raise DataError(message)


def write_batch(
    unit_of_work_factory: UnitOfWorkFactory,
    records: Iterable[Vehicle],
    *,
    is_update: bool,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> list[int]:
    """Write ``records`` in chunks and return their persisted ids in input order."""

    pending = list(records)
    if not pending:
        raise ValueError("write_batch requires at least one record")
    if is_update:
        unsaved = [record for record in pending if not record.is_persisted]
        if unsaved:
            raise ValueError(f"Cannot update records that were never saved: {unsaved}")

    template = UPDATE_ERROR if is_update else INSERT_ERROR

    with unit_of_work_factory() as uow:
        ids: list[int] = []
        try:
            for chunk in chunked(pending, chunk_size):
                result = uow.vehicles.execute_batch(chunk, is_update=is_update)
                check_batch_results(result, template % chunk[-1])
                chunk_ids = _persisted_ids(chunk, result, is_update=is_update)
                uow.commit()
                ids.extend(chunk_ids)
        except StoreError as exc:
            error_message = template % ""
            if classify(exc) is FailureKind.CONNECTIVITY:
                log.error("%s\nConnection error (code %s)", error_message, exc.sqlstate)
                raise
            _rollback_and_log(uow, exc, error_message)
            return write_one_by_one(
                uow, pending, is_update=is_update, error_message=error_message
            )
        log.info(
            "Batch %s of %s record(s) committed",
            "update" if is_update else "insert",
            len(ids),
        )
        return ids


def _persisted_ids(
    chunk: Sequence[Vehicle],
    result: BatchResult | None,
    *,
    is_update: bool,
) -> list[int]:
    if is_update:
        return [record.id for record in chunk]
    if result is None or len(result.ids) != len(chunk):
        raise DataError(
            f"Store reported {0 if result is None else len(result.ids)} generated id(s) "
            f"for {len(chunk)} inserted record(s)"
        )
    return list(result.ids)


def _rollback_and_log(uow: VehicleUnitOfWork, error: Exception, message: str) -> None:
    log.error("%s %s", message, error)
    uow.rollback()
