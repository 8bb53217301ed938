"""
Service layer that orchestrates the domain logic and the slot store.
"""

from .availability_manager import AvailabilityManager, IdentityProviderProtocol, SlotStoreProtocol

__all__ = ["AvailabilityManager", "IdentityProviderProtocol", "SlotStoreProtocol"]
