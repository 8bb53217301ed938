"""
Input validation for slot payloads using Pydantic.

Payloads arrive as plain mappings (``{"day_of_week": 1, "start_time": "09:00",
"end_time": "11:00"}``; camelCase keys are accepted too) and are turned into
domain objects only after passing these schemas.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, model_validator
from pydantic import ValidationError as PydanticValidationError

from .domain.exceptions import ValidationError
from .domain.models import AvailabilitySlot
from .domain.time_codec import TIME_PATTERN, time_to_minutes


class SlotInput(BaseModel):
    """One requested slot."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    day_of_week: StrictInt = Field(
        ge=0,
        le=6,
        validation_alias=AliasChoices("day_of_week", "dayOfWeek"),
    )
    start_time: str = Field(
        pattern=TIME_PATTERN,
        validation_alias=AliasChoices("start_time", "startTime"),
    )
    end_time: str = Field(
        pattern=TIME_PATTERN,
        validation_alias=AliasChoices("end_time", "endTime"),
    )

    @model_validator(mode="after")
    def validate_time_order(self) -> "SlotInput":
        """Ensure the slot ends after it starts."""
        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self

    def to_slot(self, owner_id: str) -> AvailabilitySlot:
        return AvailabilitySlot(
            owner_id=owner_id,
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class SlotPatch(BaseModel):
    """Partial update of a stored slot. Time order is checked after merging."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    day_of_week: Optional[StrictInt] = Field(
        default=None,
        ge=0,
        le=6,
        validation_alias=AliasChoices("day_of_week", "dayOfWeek"),
    )
    start_time: Optional[str] = Field(
        default=None,
        pattern=TIME_PATTERN,
        validation_alias=AliasChoices("start_time", "startTime"),
    )
    end_time: Optional[str] = Field(
        default=None,
        pattern=TIME_PATTERN,
        validation_alias=AliasChoices("end_time", "endTime"),
    )

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually supplied."""
        return self.model_dump(exclude_none=True)


SlotPayload = Union[Mapping[str, Any], AvailabilitySlot]


def _to_validation_error(exc: PydanticValidationError, prefix: str = "") -> ValidationError:
    messages: List[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Invalid value")
        messages.append(f"{prefix}{location}: {message}" if location else f"{prefix}{message}")
    return ValidationError(messages[0] if messages else "Validation error", messages)


def _as_mapping(payload: SlotPayload) -> Mapping[str, Any]:
    if isinstance(payload, AvailabilitySlot):
        return payload.to_dict()
    return payload


def parse_candidates(owner_id: str, payloads: Sequence[SlotPayload]) -> List[AvailabilitySlot]:
    """
    Validate a batch of requested slots.

    Raises:
        ValidationError: If the batch is empty or any entry is malformed.
    """
    if not payloads:
        raise ValidationError("At least one time slot is required")

    slots: List[AvailabilitySlot] = []
    for index, payload in enumerate(payloads):
        try:
            slot_input = SlotInput.model_validate(_as_mapping(payload))
        except PydanticValidationError as exc:
            raise _to_validation_error(exc, prefix=f"slots[{index}] ") from exc
        slots.append(slot_input.to_slot(owner_id))

    return slots


def parse_patch(payload: Mapping[str, Any]) -> SlotPatch:
    """Validate a slot patch; unknown keys are rejected."""
    try:
        return SlotPatch.model_validate(payload)
    except PydanticValidationError as exc:
        raise _to_validation_error(exc) from exc


def validate_slot(slot: AvailabilitySlot) -> AvailabilitySlot:
    """Re-validate a fully merged slot (used after applying a patch)."""
    try:
        SlotInput.model_validate(slot.to_dict())
    except PydanticValidationError as exc:
        raise _to_validation_error(exc) from exc
    return slot
