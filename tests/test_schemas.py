"""
Tests for input validation schemas.
"""

import pytest

from slotmatch.domain.exceptions import ValidationError
from slotmatch.domain.models import AvailabilitySlot
from slotmatch.schemas import parse_candidates, parse_patch, validate_slot


class TestParseCandidates:
    """Tests for batch slot validation."""

    def test_valid_batch(self):
        slots = parse_candidates("alice", [
            {"day_of_week": 1, "start_time": "09:00", "end_time": "11:00"},
            {"dayOfWeek": 0, "startTime": "18:30", "endTime": "19:00"},
        ])

        assert slots == [
            AvailabilitySlot("alice", 1, "09:00", "11:00"),
            AvailabilitySlot("alice", 0, "18:30", "19:00"),
        ]

    def test_accepts_slot_objects(self):
        """Already-built slots are validated and re-owned."""
        slots = parse_candidates("alice", [AvailabilitySlot("someone", 2, "10:00", "11:00")])

        assert slots[0].owner_id == "alice"

    def test_empty_batch(self):
        with pytest.raises(ValidationError, match="At least one time slot is required"):
            parse_candidates("alice", [])

    def test_end_before_start(self):
        with pytest.raises(ValidationError, match="End time must be after start time"):
            parse_candidates("alice", [{"day_of_week": 1, "start_time": "11:00", "end_time": "09:00"}])

    def test_end_equal_to_start(self):
        with pytest.raises(ValidationError):
            parse_candidates("alice", [{"day_of_week": 1, "start_time": "09:00", "end_time": "09:00"}])

    @pytest.mark.parametrize("start", ["9:00", "24:00", "09:60", "09:00:00", "nine"])
    def test_malformed_time(self, start):
        with pytest.raises(ValidationError) as exc_info:
            parse_candidates("alice", [{"day_of_week": 1, "start_time": start, "end_time": "23:00"}])

        assert "start_time" in str(exc_info.value)

    @pytest.mark.parametrize("day", [-1, 7, "1", 1.5, True])
    def test_invalid_day(self, day):
        """Days must be integers in 0..6."""
        with pytest.raises(ValidationError):
            parse_candidates("alice", [{"day_of_week": day, "start_time": "09:00", "end_time": "10:00"}])

    def test_error_points_at_offending_entry(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_candidates("alice", [
                {"day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
                {"day_of_week": 9, "start_time": "09:00", "end_time": "10:00"},
            ])

        assert exc_info.value.errors[0].startswith("slots[1]")


class TestParsePatch:
    """Tests for slot patches."""

    def test_partial_patch(self):
        assert parse_patch({"end_time": "12:00"}).changes() == {"end_time": "12:00"}

    def test_camel_case_patch(self):
        assert parse_patch({"dayOfWeek": 3}).changes() == {"day_of_week": 3}

    def test_empty_patch(self):
        assert parse_patch({}).changes() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            parse_patch({"owner_id": "mallory"})

    def test_malformed_time_rejected(self):
        with pytest.raises(ValidationError):
            parse_patch({"start_time": "25:00"})


class TestValidateSlot:
    def test_inverted_merged_slot(self):
        with pytest.raises(ValidationError):
            validate_slot(AvailabilitySlot("alice", 1, "12:00", "10:00"))

    def test_valid_merged_slot(self):
        merged = AvailabilitySlot("alice", 1, "10:00", "12:00")

        assert validate_slot(merged) is merged
