"""Reconciliation engine synchronising a working set with the vehicle store.

Layered flow:
1) snapshot the working set (``vehicledb.domain.working_set``)
2) delete, update and insert phases (``engine``)
3) chunked batch writes with commit per chunk (``batch``)
4) row-by-row retry when a batch is rejected (``fallback``)
5) connectivity vs data classification of store errors (``classify``)
"""

from __future__ import annotations

from .batch import DEFAULT_CHUNK_SIZE, check_batch_results, chunked, write_batch
from .classify import FailureKind, classify, error_for_sqlstate
from .engine import SaveReport, VehicleReconciler
from .fallback import delete_one_by_one, write_one_by_one

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "FailureKind",
    "SaveReport",
    "VehicleReconciler",
    "check_batch_results",
    "chunked",
    "classify",
    "delete_one_by_one",
    "error_for_sqlstate",
    "write_batch",
    "write_one_by_one",
]
