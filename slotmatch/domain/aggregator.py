"""
Shared-availability aggregation between two owners' weekly schedules.

The total number of shared minutes per week is the raw compatibility signal
handed to match ranking.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .models import AvailabilitySlot, TimeInterval, WeeklySchedule
from .time_codec import DAYS_IN_WEEK, minutes_to_time


def calculate_overlap_minutes(a: TimeInterval, b: TimeInterval) -> int:
    """Minutes shared by two intervals; 0 when they are disjoint or touching."""
    return max(0, min(a.end_minutes, b.end_minutes) - max(a.start_minutes, b.start_minutes))


def calculate_day_overlap(
    user_a_slots: Sequence[AvailabilitySlot],
    user_b_slots: Sequence[AvailabilitySlot],
    day_of_week: int,
) -> int:
    """
    Sum the overlap of every pair of A's and B's slots on one day.

    Each owner's slots on a day never overlap each other, so the cross
    product counts every shared minute once.
    """
    a_intervals = [s.interval() for s in user_a_slots if s.day_of_week == day_of_week]
    b_intervals = [s.interval() for s in user_b_slots if s.day_of_week == day_of_week]

    return sum(
        calculate_overlap_minutes(a, b)
        for a in a_intervals
        for b in b_intervals
    )


def calculate_total_overlap(
    user_a_slots: Sequence[AvailabilitySlot],
    user_b_slots: Sequence[AvailabilitySlot],
) -> int:
    """Shared minutes across the whole week."""
    return sum(
        calculate_day_overlap(user_a_slots, user_b_slots, day)
        for day in range(DAYS_IN_WEEK)
    )


def count_overlapping_pairs(
    user_a_slots: Sequence[AvailabilitySlot],
    user_b_slots: Sequence[AvailabilitySlot],
) -> int:
    """Number of (A slot, B slot) pairs on the same day that share at least a minute."""
    return sum(
        1
        for a in user_a_slots
        for b in user_b_slots
        if a.day_of_week == b.day_of_week
        and calculate_overlap_minutes(a.interval(), b.interval()) > 0
    )


def shared_slots(
    user_a_slots: Sequence[AvailabilitySlot],
    user_b_slots: Sequence[AvailabilitySlot],
) -> List[AvailabilitySlot]:
    """
    The concrete ranges both owners are available in, ordered by day and start.

    Returned slots carry A's owner id; they are views, not stored slots.
    """
    schedule_a = WeeklySchedule(user_a_slots)
    schedule_b = WeeklySchedule(user_b_slots)
    shared: List[AvailabilitySlot] = []

    for day, a_slots in schedule_a.days():
        for slot_a in a_slots:
            for slot_b in schedule_b.for_day(day):
                common = slot_a.interval().intersect(slot_b.interval())
                if common is None:
                    continue
                shared.append(
                    AvailabilitySlot(
                        owner_id=slot_a.owner_id,
                        day_of_week=day,
                        start_time=minutes_to_time(common.start_minutes),
                        end_time=minutes_to_time(common.end_minutes),
                    )
                )

    return sorted(shared, key=AvailabilitySlot.sort_key)


@dataclass
class OverlapReport:
    """Per-day and weekly shared availability between two owners."""
    minutes_by_day: Dict[int, int]
    total_minutes: int
    shared: List[AvailabilitySlot] = field(default_factory=list)
    compatibility: float = 0.0
    pair_count: int = 0


def build_overlap_report(
    user_a_slots: Sequence[AvailabilitySlot],
    user_b_slots: Sequence[AvailabilitySlot],
) -> OverlapReport:
    """
    Aggregate the overlap between two schedules.

    ``compatibility`` is the shared time as a fraction of the smaller of the
    two weekly schedules, so 1.0 means one schedule is fully contained in the
    other.

    ``pair_count`` is the number of overlapping slot pairs, the coarser
    signal match ranking can order by instead of minutes.
    """
    minutes_by_day = {
        day: calculate_day_overlap(user_a_slots, user_b_slots, day)
        for day in range(DAYS_IN_WEEK)
    }
    total = sum(minutes_by_day.values())

    smaller = min(
        WeeklySchedule(user_a_slots).total_minutes(),
        WeeklySchedule(user_b_slots).total_minutes(),
    )
    compatibility = total / smaller if smaller else 0.0

    return OverlapReport(
        minutes_by_day=minutes_by_day,
        total_minutes=total,
        shared=shared_slots(user_a_slots, user_b_slots),
        compatibility=compatibility,
        pair_count=count_overlapping_pairs(user_a_slots, user_b_slots),
    )
