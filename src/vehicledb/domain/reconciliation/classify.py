"""Failure classification for store errors."""

from __future__ import annotations

from enum import StrEnum
from typing import Final

from vehicledb.domain.errors import ConnectivityError, DataError, StoreError

# SQLSTATE class "connection exception"
CONNECTION_EXCEPTION_CLASS: Final[str] = "08"


class FailureKind(StrEnum):
    CONNECTIVITY = "connectivity"
    DATA = "data"


def is_connection_sqlstate(sqlstate: str | None) -> bool:
    return sqlstate is not None and sqlstate.startswith(CONNECTION_EXCEPTION_CLASS)


def classify(error: BaseException) -> FailureKind:
    """Return whether ``error`` means the connection is gone or the data was rejected.

    A broken connection cannot be worked around by retrying smaller operations,
    so callers abort on ``CONNECTIVITY`` and fall back row by row on ``DATA``.
    """

    if isinstance(error, ConnectivityError):
        return FailureKind.CONNECTIVITY
    if is_connection_sqlstate(getattr(error, "sqlstate", None)):
        return FailureKind.CONNECTIVITY
    return FailureKind.DATA


def error_for_sqlstate(message: str, sqlstate: str | None) -> StoreError:
    """Build the ``StoreError`` subclass matching ``sqlstate``."""

    if is_connection_sqlstate(sqlstate):
        return ConnectivityError(
            f"{message}\nConnection error (code {sqlstate})", sqlstate=sqlstate
        )
    return DataError(message, sqlstate=sqlstate)
