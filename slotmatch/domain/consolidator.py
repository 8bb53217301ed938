"""
Consolidation of grid selections into minimal sets of availability slots.

A selection UI lets users toggle fixed-size cells (e.g. one hour) per day.
The consolidator turns those cells into the fewest contiguous slots that cover
exactly the selected cells, and can expand slots back into cells to seed the
grid again.
"""

from typing import Dict, Iterable, List, Mapping, Set

from .exceptions import ValidationError
from .models import AvailabilitySlot
from .time_codec import (
    DAYS_IN_WEEK,
    MINUTES_PER_DAY,
    is_valid_time,
    minutes_to_time,
    time_to_minutes,
)


class RangeConsolidator:
    """
    Merges fixed-granularity time units into contiguous ranges, one day at a time.

    Algorithm (per day):
    1. Convert the selected unit starts to minutes and sort them
    2. Extend the running range while the next unit starts where it ends
    3. On a gap, close the running range and start a new one
    4. Emit the final running range
    """

    def __init__(self, granularity_minutes: int = 60):
        if granularity_minutes <= 0 or MINUTES_PER_DAY % granularity_minutes:
            raise ValidationError(
                f"granularity_minutes must evenly divide a day, got {granularity_minutes}"
            )
        self.granularity_minutes = granularity_minutes

    def consolidate(
        self,
        owner_id: str,
        selection: Mapping[int, Iterable[str]],
    ) -> List[AvailabilitySlot]:
        """
        Build the minimal slot set covering the selected units.

        Args:
            owner_id: Owner the resulting slots are created for
            selection: Mapping of day of week to selected unit start times (``HH:MM``)

        Returns:
            Slots sorted by day and start time
        """
        slots: List[AvailabilitySlot] = []

        for day in selection:
            if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day < DAYS_IN_WEEK:
                raise ValidationError(
                    f"Day of week must be between 0 (Sunday) and 6 (Saturday), got {day!r}"
                )

        for day in sorted(selection):
            units = list(selection[day])
            malformed = [str(unit) for unit in units if not is_valid_time(unit)]
            if malformed:
                raise ValidationError(f"Selected units must be HH:MM times, got {malformed}")
            starts = sorted({time_to_minutes(unit) for unit in units})
            slots.extend(
                AvailabilitySlot(
                    owner_id=owner_id,
                    day_of_week=day,
                    start_time=minutes_to_time(start),
                    end_time=minutes_to_time(end),
                )
                for start, end in self._group_contiguous(starts)
            )

        return slots

    def _group_contiguous(self, starts: List[int]) -> List[tuple]:
        """Group sorted unit starts into ``(start, end)`` minute ranges."""
        if not starts:
            return []

        ranges = []
        range_start = starts[0]
        range_end = starts[0] + self.granularity_minutes

        for unit_start in starts[1:]:
            if unit_start == range_end:
                range_end += self.granularity_minutes
            else:
                ranges.append((range_start, range_end))
                range_start = unit_start
                range_end = unit_start + self.granularity_minutes

        ranges.append((range_start, range_end))

        # "24:00" is not a valid wall-clock time
        if range_end >= MINUTES_PER_DAY:
            raise ValidationError(
                f"Selected unit starting at {minutes_to_time(starts[-1])} runs past midnight"
            )

        return ranges

    def expand(self, slots: Iterable[AvailabilitySlot]) -> Dict[int, List[str]]:
        """
        Split slots back into the grid units they cover.

        Raises:
            ValidationError: If a slot boundary does not fall on the unit grid.
        """
        units: Dict[int, Set[int]] = {}

        for slot in slots:
            interval = slot.interval()
            if interval.start_minutes % self.granularity_minutes or (
                interval.end_minutes % self.granularity_minutes
            ):
                raise ValidationError(
                    f"Slot {slot} is not aligned to {self.granularity_minutes}-minute units"
                )
            day_units = units.setdefault(slot.day_of_week, set())
            day_units.update(
                range(interval.start_minutes, interval.end_minutes, self.granularity_minutes)
            )

        return {
            day: [minutes_to_time(start) for start in sorted(day_units)]
            for day, day_units in sorted(units.items())
        }

    def merge_adjacent(self, slots: Iterable[AvailabilitySlot]) -> List[AvailabilitySlot]:
        """
        Merge overlapping or touching slots of the same owner and day.

        Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
        """
        ordered = sorted(slots, key=lambda s: (s.owner_id, s.day_of_week, s.start_time))
        merged: List[AvailabilitySlot] = []

        for current in ordered:
            if merged:
                last = merged[-1]
                same_bucket = (last.owner_id, last.day_of_week) == (
                    current.owner_id,
                    current.day_of_week,
                )
                if same_bucket and current.interval().start_minutes <= last.interval().end_minutes:
                    end = max(last.interval().end_minutes, current.interval().end_minutes)
                    merged[-1] = last.with_changes(end_time=minutes_to_time(end))
                    continue
            merged.append(current)

        return merged
