"""In-memory working set of vehicle records and their pending changes.

Routing rule for a save:
- ``id == 0``: pending insert (a convention, not a flag)
- ``id > 0`` and marked: pending update
- anything else: untouched

The reconciliation engine never reads the live state directly. It takes a
``WorkingSetSnapshot`` at the start of a save and applies the results back through
the ``confirm_*`` / ``assign_ids`` methods once a phase has succeeded.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from vehicledb.domain.model import UNSAVED_ID

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from vehicledb.domain.model import Vehicle


@dataclass(frozen=True, slots=True)
class PendingRecord:
    """A detached copy of a record taken by ``WorkingSet.snapshot``."""

    handle: int
    version: int
    record: Vehicle


@dataclass(frozen=True, slots=True)
class WorkingSetSnapshot:
    delete_ids: tuple[int, ...] = ()
    updates: tuple[PendingRecord, ...] = ()
    inserts: tuple[PendingRecord, ...] = ()

    @property
    def update_records(self) -> list[Vehicle]:
        return [pending.record for pending in self.updates]

    @property
    def insert_records(self) -> list[Vehicle]:
        return [pending.record for pending in self.inserts]

    @property
    def is_empty(self) -> bool:
        return not (self.delete_ids or self.updates or self.inserts)


class WorkingSet:
    """Ordered records plus the pending-update and pending-deletion id sets."""

    def __init__(self, records: Iterable[Vehicle] = ()) -> None:
        self._lock = threading.RLock()
        self._handles = itertools.count(1)
        self._entries: dict[int, Vehicle] = {}
        self._update_versions: dict[int, int] = {}
        self._pending_delete: set[int] = set()
        self._modifications = itertools.count(1)
        for record in records:
            self.add(record)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def add(self, record: Vehicle) -> int:
        """Append ``record`` and return its handle."""

        with self._lock:
            handle = next(self._handles)
            self._entries[handle] = record
            return handle

    def extend(self, records: Iterable[Vehicle]) -> list[int]:
        with self._lock:
            return [self.add(record) for record in records]

    def load(self, records: Iterable[Vehicle]) -> None:
        """Replace the content with freshly read records and drop pending marks."""

        with self._lock:
            self._entries.clear()
            self._update_versions.clear()
            self._pending_delete.clear()
            for record in records:
                self.add(record)

    def get(self, handle: int) -> Vehicle:
        with self._lock:
            try:
                return self._entries[handle]
            except KeyError:
                raise KeyError(f"Unknown working set handle: {handle}") from None

    def records(self) -> list[Vehicle]:
        with self._lock:
            return list(self._entries.values())

    def items(self) -> list[tuple[int, Vehicle]]:
        with self._lock:
            return list(self._entries.items())

    def handle_for_id(self, vehicle_id: int) -> int | None:
        with self._lock:
            for handle, record in self._entries.items():
                if record.id == vehicle_id:
                    return handle
            return None

    @property
    def pending_update_ids(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._update_versions)

    @property
    def pending_delete_ids(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._pending_delete)

    def modify(self, handle: int, **changes: object) -> Vehicle:
        """Change fields of the record in place and mark it for update."""

        if "id" in changes:
            raise ValueError("The id of a record is assigned by the store")
        with self._lock:
            record = self.get(handle)
            for name, value in changes.items():
                if not hasattr(record, name):
                    raise AttributeError(
                        f"{type(record).__name__} has no field {name!r}"
                    )
                setattr(record, name, value)
            if record.is_persisted:
                self.mark_updated(record.id)
            return record

    def mark_updated(self, vehicle_id: int) -> None:
        if vehicle_id <= UNSAVED_ID:
            return
        with self._lock:
            self._update_versions[vehicle_id] = next(self._modifications)

    def remove(self, handle: int) -> Vehicle:
        """Drop a record from iteration; persisted ids wait for the delete phase."""

        with self._lock:
            record = self._entries.pop(handle, None)
            if record is None:
                raise KeyError(f"Unknown working set handle: {handle}")
            if record.is_persisted:
                self._update_versions.pop(record.id, None)
                self._pending_delete.add(record.id)
            return record

    def snapshot(self) -> WorkingSetSnapshot:
        with self._lock:
            updates: list[PendingRecord] = []
            inserts: list[PendingRecord] = []
            for handle, record in self._entries.items():
                if record.id == UNSAVED_ID:
                    inserts.append(PendingRecord(handle, 0, replace(record)))
                elif record.id in self._update_versions:
                    version = self._update_versions[record.id]
                    updates.append(PendingRecord(handle, version, replace(record)))
            return WorkingSetSnapshot(
                delete_ids=tuple(sorted(self._pending_delete)),
                updates=tuple(updates),
                inserts=tuple(inserts),
            )

    def confirm_deleted(self, ids: Iterable[int]) -> None:
        with self._lock:
            self._pending_delete.difference_update(ids)

    def confirm_updated(self, pending: Iterable[PendingRecord]) -> None:
        """Clear update marks that were not renewed after the snapshot."""

        with self._lock:
            for item in pending:
                vehicle_id = item.record.id
                if self._update_versions.get(vehicle_id) == item.version:
                    del self._update_versions[vehicle_id]

    def assign_ids(self, pending: Sequence[PendingRecord], ids: Sequence[int]) -> None:
        """Copy store-assigned ids onto the live records that are still unsaved.

        A record removed after the snapshot is queued for deletion instead, and a
        record edited after the snapshot is marked for update under its new id.
        """

        if len(pending) != len(ids):
            raise ValueError(f"Expected {len(pending)} ids, got {len(ids)}")
        with self._lock:
            for item, new_id in zip(pending, ids, strict=True):
                record = self._entries.get(item.handle)
                if record is None:
                    self._pending_delete.add(new_id)
                    continue
                if record.is_persisted:
                    continue
                edited = record != item.record
                record.id = new_id
                if edited:
                    self.mark_updated(new_id)
