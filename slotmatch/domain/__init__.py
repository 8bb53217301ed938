"""
Domain layer - Pure interval logic without any storage or I/O.
"""

from .aggregator import (
    OverlapReport,
    build_overlap_report,
    calculate_day_overlap,
    calculate_overlap_minutes,
    calculate_total_overlap,
    count_overlapping_pairs,
    shared_slots,
)
from .consolidator import RangeConsolidator
from .models import AvailabilitySlot, OperationResult, SlotConflict, TimeInterval, WeeklySchedule
from .overlap import do_slots_overlap, find_batch_conflicts, find_conflicts, has_conflict
from .time_codec import day_name, format_slot, minutes_to_time, time_to_minutes

__all__ = [
    "AvailabilitySlot",
    "OperationResult",
    "OverlapReport",
    "RangeConsolidator",
    "SlotConflict",
    "TimeInterval",
    "WeeklySchedule",
    "build_overlap_report",
    "calculate_day_overlap",
    "calculate_overlap_minutes",
    "calculate_total_overlap",
    "count_overlapping_pairs",
    "day_name",
    "do_slots_overlap",
    "find_batch_conflicts",
    "find_conflicts",
    "format_slot",
    "has_conflict",
    "minutes_to_time",
    "shared_slots",
    "time_to_minutes",
]
