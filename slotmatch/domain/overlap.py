"""
Overlap detection between candidate slots and an owner's existing slots.

Overlap rule (half-open intervals):
    a.start < b.end AND b.start < a.end
so slots that merely touch (one ends when the other starts) never conflict.
"""

from typing import List, Sequence

from .models import AvailabilitySlot, SlotConflict, TimeInterval


def do_slots_overlap(a: TimeInterval, b: TimeInterval) -> bool:
    """Return True if the two intervals share at least one minute."""
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes


def _slots_collide(a: AvailabilitySlot, b: AvailabilitySlot) -> bool:
    if a.day_of_week != b.day_of_week:
        return False
    return do_slots_overlap(a.interval(), b.interval())


def has_conflict(candidate: AvailabilitySlot, existing: Sequence[AvailabilitySlot]) -> bool:
    """Check whether a candidate overlaps any existing slot on the same day."""
    return any(_slots_collide(candidate, slot) for slot in existing)


def find_conflicts(
    candidates: Sequence[AvailabilitySlot],
    existing: Sequence[AvailabilitySlot],
) -> List[SlotConflict]:
    """
    Pair every conflicting candidate with all existing slots it overlaps.

    Candidates are reported in input order; candidates without conflicts are
    omitted. Candidates are only checked against ``existing``, never against
    each other (see ``find_batch_conflicts`` for that).
    """
    conflicts: List[SlotConflict] = []

    for candidate in candidates:
        colliding = [slot for slot in existing if _slots_collide(candidate, slot)]
        if colliding:
            conflicts.append(SlotConflict(slot=candidate, conflicts=colliding))

    return conflicts


def find_batch_conflicts(candidates: Sequence[AvailabilitySlot]) -> List[SlotConflict]:
    """
    Report overlaps among the candidates of a single batch.

    Each candidate is paired with the earlier siblings it overlaps, so every
    colliding pair shows up exactly once.
    """
    conflicts: List[SlotConflict] = []

    for index, candidate in enumerate(candidates):
        earlier = [slot for slot in candidates[:index] if _slots_collide(candidate, slot)]
        if earlier:
            conflicts.append(SlotConflict(slot=candidate, conflicts=earlier))

    return conflicts
