"""
Slot store adapters: an in-memory store and a JSON-file backed variant.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..domain.exceptions import SlotOverlapViolation, StoreError
from ..domain.models import AvailabilitySlot
from ..domain.overlap import find_batch_conflicts, find_conflicts

logger = logging.getLogger(__name__)


class InMemorySlotStore:
    """
    Dict-backed slot store.

    With ``enforce_exclusion`` the store refuses writes that would leave two
    slots of one owner overlapping on the same day, the same guarantee a
    database exclusion constraint on ``(owner, day, interval)`` would give.
    """

    def __init__(
        self,
        slots: Iterable[AvailabilitySlot] = (),
        *,
        enforce_exclusion: bool = True,
    ):
        self.enforce_exclusion = enforce_exclusion
        self._slots: Dict[str, AvailabilitySlot] = {}
        for slot in slots:
            stored = slot if slot.id else slot.with_changes(id=self._new_id())
            self._slots[stored.id] = stored

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

    def all_slots(self) -> List[AvailabilitySlot]:
        return list(self._slots.values())

    async def find_by_owner(self, owner_id: str) -> List[AvailabilitySlot]:
        return [slot for slot in self._slots.values() if slot.owner_id == owner_id]

    async def find_by_owner_excluding(self, owner_id: str, slot_id: str) -> List[AvailabilitySlot]:
        return [
            slot
            for slot in self._slots.values()
            if slot.owner_id == owner_id and slot.id != slot_id
        ]

    async def find_by_id(self, slot_id: str) -> Optional[AvailabilitySlot]:
        return self._slots.get(slot_id)

    async def create_many(self, owner_id: str, slots: Sequence[AvailabilitySlot]) -> int:
        new_slots = [
            slot.with_changes(owner_id=owner_id, id=self._new_id())
            for slot in slots
        ]

        if self.enforce_exclusion:
            existing = await self.find_by_owner(owner_id)
            conflicts = find_conflicts(new_slots, existing) + find_batch_conflicts(new_slots)
            if conflicts:
                raise SlotOverlapViolation(
                    f"{len(conflicts)} slot(s) would overlap stored availability", conflicts
                )

        snapshot = dict(self._slots)
        for slot in new_slots:
            self._slots[slot.id] = slot
        self._commit(snapshot)

        return len(new_slots)

    async def update_one(self, slot_id: str, patch: Mapping[str, Any]) -> AvailabilitySlot:
        current = self._slots.get(slot_id)
        if current is None:
            raise StoreError(f"Slot {slot_id} does not exist")

        updated = current.with_changes(**patch)

        if self.enforce_exclusion:
            others = await self.find_by_owner_excluding(updated.owner_id, slot_id)
            conflicts = find_conflicts([updated], others)
            if conflicts:
                raise SlotOverlapViolation("Updated slot would overlap stored availability", conflicts)

        snapshot = dict(self._slots)
        self._slots[slot_id] = updated
        self._commit(snapshot)

        return updated

    async def delete_one(self, slot_id: str) -> None:
        snapshot = dict(self._slots)
        if self._slots.pop(slot_id, None) is None:
            raise StoreError(f"Slot {slot_id} does not exist")
        self._commit(snapshot)

    def _commit(self, snapshot: Dict[str, AvailabilitySlot]) -> None:
        """Persist the current state, or roll back to ``snapshot`` if that fails."""
        try:
            self._after_write()
        except StoreError:
            self._slots = snapshot
            raise

    def _after_write(self) -> None:
        """Hook for subclasses that persist the state."""


class JsonFileSlotStore(InMemorySlotStore):
    """
    In-memory store that loads from and writes through to a JSON file.

    The file holds a list of slot records::

        [{"id": "...", "owner_id": "alice", "day_of_week": 1,
          "start_time": "09:00", "end_time": "11:00"}]
    """

    def __init__(self, path: Path, *, enforce_exclusion: bool = True):
        self.path = Path(path)
        super().__init__(self._load_slots(), enforce_exclusion=enforce_exclusion)

    def _load_slots(self) -> List[AvailabilitySlot]:
        """Load slot records from the JSON file; a missing file is an empty store."""
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StoreError(f"Could not read slot file {self.path}: {exc}") from exc

        if not isinstance(records, list):
            raise StoreError(f"Slot file {self.path} must contain a list of slots")

        try:
            return [
                AvailabilitySlot(
                    id=record.get("id"),
                    owner_id=record["owner_id"],
                    day_of_week=int(record["day_of_week"]),
                    start_time=record["start_time"],
                    end_time=record["end_time"],
                )
                for record in records
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Invalid slot record in {self.path}: {exc}") from exc

    def _after_write(self) -> None:
        records = [slot.to_dict() for slot in self.all_slots()]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2)
        except OSError as exc:
            logger.warning("Could not save slots to %s: %s", self.path, exc)
            raise StoreError(f"Could not write slot file {self.path}: {exc}") from exc
