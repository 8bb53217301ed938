"""
Adapters layer - Slot store and identity provider implementations.
"""

from .identity import StaticIdentityProvider
from .memory_store import InMemorySlotStore, JsonFileSlotStore

__all__ = ["InMemorySlotStore", "JsonFileSlotStore", "StaticIdentityProvider"]
