"""
Application service for managing an owner's weekly availability.

The manager resolves the acting owner through an identity provider,
validates requests, runs them through the overlap detector and only then
hands writes to the slot store. Both collaborators are plain protocols so
tests and the CLI can plug in the bundled in-memory adapters.

Every public operation returns an ``OperationResult``; engine errors never
escape past this boundary.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
)

from ..domain.aggregator import build_overlap_report
from ..domain.consolidator import RangeConsolidator
from ..domain.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    SlotmatchError,
    SlotOverlapViolation,
    StoreError,
    UnauthenticatedError,
)
from ..domain.models import AvailabilitySlot, OperationResult, SlotConflict
from ..domain.overlap import find_batch_conflicts, find_conflicts
from ..schemas import SlotPayload, parse_candidates, parse_patch, validate_slot

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = ("day_of_week", "start_time", "end_time")


class SlotStoreProtocol(Protocol):
    """Durable per-owner storage of availability slots."""

    async def find_by_owner(self, owner_id: str) -> List[AvailabilitySlot]:
        """Return all slots of an owner."""

    async def find_by_owner_excluding(self, owner_id: str, slot_id: str) -> List[AvailabilitySlot]:
        """Return all slots of an owner except the given one."""

    async def find_by_id(self, slot_id: str) -> Optional[AvailabilitySlot]:
        """Return a single slot, or None if it does not exist."""

    async def create_many(self, owner_id: str, slots: Sequence[AvailabilitySlot]) -> int:
        """Persist slots for an owner and return how many were created."""

    async def update_one(self, slot_id: str, patch: Mapping[str, Any]) -> AvailabilitySlot:
        """Apply a field patch to a slot and return the stored result."""

    async def delete_one(self, slot_id: str) -> None:
        """Remove a slot."""


class IdentityProviderProtocol(Protocol):
    """Resolves the user on whose behalf an operation runs."""

    async def resolve_caller(self) -> str:
        """Return the caller's owner id or raise ``UnauthenticatedError``."""


def _describe(conflicts: Iterable[SlotConflict]) -> str:
    return "; ".join(conflict.describe() for conflict in conflicts)


class AvailabilityManager:
    """
    Orchestrates create, update and delete of availability slots.

    Read-validate-write sequences for one owner are serialised with a
    per-owner lock, so two requests in the same process cannot both pass the
    conflict check against a stale snapshot. Across processes the store must
    enforce non-overlap itself; a ``SlotOverlapViolation`` it raises is
    reported as a conflict.
    """

    def __init__(
        self,
        slot_store: SlotStoreProtocol,
        identity_provider: Optional[IdentityProviderProtocol] = None,
        *,
        reject_batch_overlaps: bool = True,
    ) -> None:
        self._slot_store = slot_store
        self._identity_provider = identity_provider
        self._reject_batch_overlaps = reject_batch_overlaps
        self._owner_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    async def create_slots(
        self,
        candidates: Sequence[SlotPayload],
        owner_id: Optional[str] = None,
    ) -> OperationResult:
        """
        Create a batch of slots, all or nothing.

        A single conflicting candidate blocks the whole batch.

        Returns:
            Result whose data is ``{"count": <created>, "message": ...}``
        """
        async def action() -> Dict[str, Any]:
            owner = await self._resolve_owner(owner_id)
            slots = parse_candidates(owner, candidates)

            if self._reject_batch_overlaps:
                sibling_conflicts = find_batch_conflicts(slots)
                if sibling_conflicts:
                    raise ConflictError(
                        f"Requested slots overlap each other: {_describe(sibling_conflicts)}",
                        sibling_conflicts,
                    )

            async with self._lock_for(owner):
                existing = await self._store_call(
                    "find_by_owner", lambda: self._slot_store.find_by_owner(owner)
                )
                conflicts = find_conflicts(slots, existing)
                if conflicts:
                    raise ConflictError(
                        f"Time conflicts detected: {_describe(conflicts)}", conflicts
                    )

                count = await self._store_call(
                    "create_many", lambda: self._slot_store.create_many(owner, slots)
                )

            logger.debug("Created %d slot(s) for owner %s", count, owner)
            return {
                "count": count,
                "message": f"Successfully created {count} availability slot(s)",
            }

        return await self._run("create_slots", action)

    async def update_slot(
        self,
        slot_id: str,
        patch: Mapping[str, Any],
        owner_id: Optional[str] = None,
    ) -> OperationResult:
        """
        Patch a stored slot after re-checking it against the owner's other slots.

        Returns:
            Result whose data is the updated ``AvailabilitySlot``
        """
        async def action() -> AvailabilitySlot:
            owner = await self._resolve_owner(owner_id)
            changes = parse_patch(patch).changes()

            async with self._lock_for(owner):
                target = await self._load_owned_slot(owner, slot_id)
                if not changes:
                    return target

                candidate = target.with_changes(**changes)
                if any(getattr(candidate, name) != getattr(target, name) for name in SCHEDULE_FIELDS):
                    validate_slot(candidate)
                    others = await self._store_call(
                        "find_by_owner_excluding",
                        lambda: self._slot_store.find_by_owner_excluding(owner, slot_id),
                    )
                    conflicts = find_conflicts([candidate], others)
                    if conflicts:
                        raise ConflictError(
                            "Updated time slot conflicts with existing availability: "
                            f"{_describe(conflicts)}",
                            conflicts,
                        )

                return await self._store_call(
                    "update_one", lambda: self._slot_store.update_one(slot_id, changes)
                )

        return await self._run("update_slot", action)

    async def delete_slot(self, slot_id: str, owner_id: Optional[str] = None) -> OperationResult:
        """Delete one of the owner's slots."""
        async def action() -> Dict[str, Any]:
            owner = await self._resolve_owner(owner_id)

            async with self._lock_for(owner):
                await self._load_owned_slot(owner, slot_id)
                await self._delete_by_id(slot_id)

            return {"id": slot_id, "message": "Availability slot deleted successfully"}

        return await self._run("delete_slot", action)

    async def list_slots(self, owner_id: Optional[str] = None) -> OperationResult:
        """The caller's slots, ordered by day then start time."""
        async def action() -> List[AvailabilitySlot]:
            owner = await self._resolve_owner(owner_id)
            return await self._sorted_slots(owner)

        return await self._run("list_slots", action)

    async def list_slots_for(
        self,
        other_owner_id: str,
        owner_id: Optional[str] = None,
    ) -> OperationResult:
        """Another owner's slots, e.g. for showing a potential partner's week."""
        async def action() -> List[AvailabilitySlot]:
            await self._resolve_owner(owner_id)
            return await self._sorted_slots(other_owner_id)

        return await self._run("list_slots_for", action)

    async def replace_schedule(
        self,
        selection: Mapping[int, Iterable[str]],
        granularity_minutes: int = 60,
        owner_id: Optional[str] = None,
    ) -> OperationResult:
        """
        Replace the owner's whole week with a consolidated grid selection.

        The selection is consolidated and validated before anything is
        deleted. An empty selection clears the week.

        Old slots that clash with the new ones are removed first, then the new
        slots are created, then the rest of the old week is removed. If the
        store fails at any step the owner's previous week is put back before
        the error is reported.
        """
        async def action() -> Dict[str, Any]:
            owner = await self._resolve_owner(owner_id)
            consolidated = RangeConsolidator(granularity_minutes).consolidate(owner, selection)
            slots = parse_candidates(owner, consolidated) if consolidated else []

            async with self._lock_for(owner):
                existing = await self._store_call(
                    "find_by_owner", lambda: self._slot_store.find_by_owner(owner)
                )
                clashing_ids = {conflict.slot.id for conflict in find_conflicts(existing, slots)}
                clashing = [slot for slot in existing if slot.id in clashing_ids]
                remaining = [slot for slot in existing if slot.id not in clashing_ids]

                removed: List[AvailabilitySlot] = []
                created = False
                try:
                    for slot in clashing:
                        await self._delete_by_id(slot.id)
                        removed.append(slot)
                    count = 0
                    if slots:
                        count = await self._store_call(
                            "create_many", lambda: self._slot_store.create_many(owner, slots)
                        )
                        created = True
                    for slot in remaining:
                        await self._delete_by_id(slot.id)
                        removed.append(slot)
                except SlotmatchError:
                    await self._roll_back_replacement(owner, existing, removed, created)
                    raise

            logger.debug(
                "Replaced schedule of owner %s: %d removed, %d created", owner, len(existing), count
            )
            return {"deleted": len(existing), "count": count}

        return await self._run("replace_schedule", action)

    async def compare_with(
        self,
        other_owner_id: str,
        owner_id: Optional[str] = None,
    ) -> OperationResult:
        """Shared weekly availability between the caller and another owner."""
        async def action():
            owner = await self._resolve_owner(owner_id)
            mine = await self._store_call(
                "find_by_owner", lambda: self._slot_store.find_by_owner(owner)
            )
            theirs = await self._store_call(
                "find_by_owner", lambda: self._slot_store.find_by_owner(other_owner_id)
            )
            return build_overlap_report(mine, theirs)

        return await self._run("compare_with", action)

    async def _run(
        self,
        operation: str,
        action: Callable[[], Awaitable[Any]],
    ) -> OperationResult:
        try:
            return OperationResult.success(await action())
        except SlotmatchError as exc:
            if isinstance(exc, StoreError):
                logger.warning("%s failed in the slot store: %s", operation, exc)
            else:
                logger.info("%s rejected (%s): %s", operation, exc.kind, exc)
            return OperationResult.failure(exc)

    async def _store_call(self, operation: str, call: Callable[[], Awaitable[Any]]) -> Any:
        """Invoke the store, normalising its failures into engine errors."""
        try:
            return await call()
        except SlotOverlapViolation as exc:
            raise ConflictError(f"Slot store rejected overlapping slots: {exc}", exc.conflicts) from exc
        except SlotmatchError:
            raise
        except Exception as exc:
            raise StoreError(f"Slot store failed during {operation}: {exc}") from exc

    async def _delete_by_id(self, slot_id: str) -> None:
        await self._store_call("delete_one", lambda: self._slot_store.delete_one(slot_id))

    async def _roll_back_replacement(
        self,
        owner_id: str,
        previous: Sequence[AvailabilitySlot],
        removed: Sequence[AvailabilitySlot],
        created: bool,
    ) -> None:
        """Put an owner's previous week back after an interrupted replacement."""
        try:
            if created:
                previous_ids = {slot.id for slot in previous}
                current = await self._store_call(
                    "find_by_owner", lambda: self._slot_store.find_by_owner(owner_id)
                )
                for slot in current:
                    if slot.id not in previous_ids:
                        await self._delete_by_id(slot.id)
            if removed:
                await self._store_call(
                    "create_many", lambda: self._slot_store.create_many(owner_id, removed)
                )
        except SlotmatchError as exc:
            logger.error("Could not restore the schedule of owner %s: %s", owner_id, exc)
            raise StoreError(
                f"Schedule replacement failed and the previous schedule could not be restored: {exc}"
            ) from exc

        if created or removed:
            logger.warning("Restored the schedule of owner %s after a failed replacement", owner_id)

    async def _resolve_owner(self, owner_id: Optional[str]) -> str:
        if owner_id is not None:
            return owner_id
        if self._identity_provider is None:
            raise UnauthenticatedError("No caller identity available")
        return await self._identity_provider.resolve_caller()

    async def _load_owned_slot(self, owner_id: str, slot_id: str) -> AvailabilitySlot:
        slot = await self._store_call("find_by_id", lambda: self._slot_store.find_by_id(slot_id))
        if slot is None:
            raise NotFoundError("Availability slot not found")
        if slot.owner_id != owner_id:
            raise AuthorizationError("Unauthorized")
        return slot

    async def _sorted_slots(self, owner_id: str) -> List[AvailabilitySlot]:
        slots = await self._store_call(
            "find_by_owner", lambda: self._slot_store.find_by_owner(owner_id)
        )
        return sorted(slots, key=AvailabilitySlot.sort_key)

    def _lock_for(self, owner_id: str) -> asyncio.Lock:
        """Per-owner lock; dropped once no operation holds or waits on it."""
        lock = self._owner_locks.get(owner_id)
        if lock is None:
            lock = asyncio.Lock()
            self._owner_locks[owner_id] = lock
        return lock
