"""
Domain models for weekly recurring availability.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .exceptions import SlotmatchError, ValidationError
from .time_codec import DAYS_IN_WEEK, MINUTES_PER_DAY, format_slot, time_to_minutes


@dataclass(frozen=True)
class TimeInterval:
    """
    Half-open interval ``[start_minutes, end_minutes)`` within one day.

    Invariant: start must be before end.
    """
    start_minutes: int
    end_minutes: int

    def __post_init__(self):
        if not 0 <= self.start_minutes < self.end_minutes <= MINUTES_PER_DAY:
            raise ValidationError(
                f"Interval [{self.start_minutes}, {self.end_minutes}) must satisfy "
                f"0 <= start < end <= {MINUTES_PER_DAY}"
            )

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end_minutes - self.start_minutes

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval overlaps with another (touching ends do not)."""
        return self.start_minutes < other.end_minutes and other.start_minutes < self.end_minutes

    def intersect(self, other: "TimeInterval") -> "TimeInterval | None":
        """
        Calculate the intersection of two intervals.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        return TimeInterval(
            start_minutes=max(self.start_minutes, other.start_minutes),
            end_minutes=min(self.end_minutes, other.end_minutes),
        )


@dataclass(frozen=True)
class AvailabilitySlot:
    """
    One recurring weekly time range owned by a single user.

    ``id`` is assigned by the slot store and is ``None`` for candidates that
    have not been persisted yet. Equality ignores the id so that a candidate
    compares equal to its stored counterpart.
    """
    owner_id: str
    day_of_week: int
    start_time: str
    end_time: str
    id: Optional[str] = field(default=None, compare=False)

    def interval(self) -> TimeInterval:
        """Derive the minute interval this slot covers."""
        return TimeInterval(
            start_minutes=time_to_minutes(self.start_time),
            end_minutes=time_to_minutes(self.end_time),
        )

    def sort_key(self) -> Tuple[int, str, str]:
        return (self.day_of_week, self.start_time, self.end_time)

    def with_changes(self, **changes: Any) -> "AvailabilitySlot":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "owner_id": self.owner_id,
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    def __str__(self) -> str:
        return format_slot(self)


@dataclass(frozen=True)
class SlotConflict:
    """A requested slot together with every existing slot it collides with."""
    slot: AvailabilitySlot
    conflicts: List[AvailabilitySlot]

    def describe(self) -> str:
        return f"Conflict on {self.slot} overlaps with " + ", ".join(
            f"{c.start_time} - {c.end_time}" for c in self.conflicts
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot": self.slot.to_dict(),
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


class WeeklySchedule:
    """
    Read-only view of an owner's slots bucketed by day of week.

    Only used for analysis (conflict checks, overlap aggregation); the
    schedule itself is never persisted.
    """

    def __init__(self, slots: Iterable[AvailabilitySlot]):
        self._buckets: List[List[AvailabilitySlot]] = [[] for _ in range(DAYS_IN_WEEK)]
        for slot in slots:
            if not 0 <= slot.day_of_week < DAYS_IN_WEEK:
                raise ValidationError(f"Day of week out of range: {slot.day_of_week}")
            self._buckets[slot.day_of_week].append(slot)
        for bucket in self._buckets:
            bucket.sort(key=AvailabilitySlot.sort_key)

    def for_day(self, day_of_week: int) -> List[AvailabilitySlot]:
        """Slots on the given day, ordered by start time."""
        if not 0 <= day_of_week < DAYS_IN_WEEK:
            return []
        return list(self._buckets[day_of_week])

    def days(self) -> Iterator[Tuple[int, List[AvailabilitySlot]]]:
        """Iterate ``(day, slots)`` for all seven days, Sunday first."""
        for day, bucket in enumerate(self._buckets):
            yield day, list(bucket)

    def slots(self) -> List[AvailabilitySlot]:
        return [slot for bucket in self._buckets for slot in bucket]

    def total_minutes(self) -> int:
        """Total weekly minutes covered by the schedule."""
        return sum(slot.interval().duration_minutes() for slot in self.slots())

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets)


@dataclass
class OperationResult:
    """
    Success/failure value returned across the manager boundary.

    Failures carry the originating exception plus a machine-readable
    ``error_kind``; conflict failures also expose the structured conflicts.
    """
    ok: bool
    data: Any = None
    error: Optional[SlotmatchError] = None

    @classmethod
    def success(cls, data: Any = None) -> "OperationResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: SlotmatchError) -> "OperationResult":
        return cls(ok=False, error=error)

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    @property
    def message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None

    @property
    def conflicts(self) -> List[SlotConflict]:
        return list(getattr(self.error, "conflicts", []))
