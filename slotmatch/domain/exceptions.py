"""
Domain-specific exception hierarchy for the slotmatch engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

if TYPE_CHECKING:
    from .models import SlotConflict


class SlotmatchError(Exception):
    """Base class for all engine-level errors."""

    kind = "error"


class ValidationError(SlotmatchError):
    """Raised for malformed slot data, empty batches or inverted ranges."""

    kind = "validation"

    def __init__(self, message: str, errors: Sequence[str] | None = None):
        super().__init__(message)
        self.errors: List[str] = list(errors) if errors else [message]


class ConflictError(SlotmatchError):
    """Raised when requested slots overlap slots the owner already has."""

    kind = "conflict"

    def __init__(self, message: str, conflicts: Sequence["SlotConflict"] = ()):
        super().__init__(message)
        self.conflicts: List["SlotConflict"] = list(conflicts)


class NotFoundError(SlotmatchError):
    """Raised when a referenced slot id does not exist."""

    kind = "not_found"


class AuthorizationError(SlotmatchError):
    """Raised when the caller does not own the referenced slot."""

    kind = "authorization"


class UnauthenticatedError(SlotmatchError):
    """Raised by identity providers when no caller can be resolved."""

    kind = "unauthenticated"


class StoreError(SlotmatchError):
    """Raised when the slot store fails to read or write."""

    kind = "store"


class SlotOverlapViolation(StoreError):
    """Raised by a store that rejects overlapping inserts at write time."""

    def __init__(self, message: str, conflicts: Sequence["SlotConflict"] = ()):
        super().__init__(message)
        self.conflicts: List["SlotConflict"] = list(conflicts)

