"""
Tests for the bundled slot store and identity adapters.
"""

import asyncio
import json

import pytest

from slotmatch.adapters.identity import StaticIdentityProvider
from slotmatch.adapters.memory_store import InMemorySlotStore, JsonFileSlotStore
from slotmatch.domain.exceptions import SlotOverlapViolation, StoreError, UnauthenticatedError
from slotmatch.domain.models import AvailabilitySlot


def slot(day, start, end, owner="alice", slot_id=None):
    return AvailabilitySlot(owner_id=owner, day_of_week=day, start_time=start, end_time=end, id=slot_id)


class TestInMemorySlotStore:
    """Tests for InMemorySlotStore."""

    def test_assigns_ids(self):
        store = InMemorySlotStore([slot(1, "09:00", "10:00")])

        assert store.all_slots()[0].id

    def test_queries(self):
        store = InMemorySlotStore([
            slot(1, "09:00", "10:00", slot_id="a"),
            slot(2, "09:00", "10:00", slot_id="b"),
            slot(1, "09:00", "10:00", owner="bob", slot_id="c"),
        ])

        assert {s.id for s in asyncio.run(store.find_by_owner("alice"))} == {"a", "b"}
        assert [s.id for s in asyncio.run(store.find_by_owner_excluding("alice", "a"))] == ["b"]
        assert asyncio.run(store.find_by_id("c")).owner_id == "bob"
        assert asyncio.run(store.find_by_id("missing")) is None

    def test_create_many_sets_owner(self):
        store = InMemorySlotStore()

        count = asyncio.run(store.create_many("alice", [slot(1, "09:00", "10:00", owner="x")]))

        assert count == 1
        assert store.all_slots()[0].owner_id == "alice"

    def test_exclusion_rejects_overlapping_insert(self):
        store = InMemorySlotStore([slot(1, "09:00", "11:00")])

        with pytest.raises(SlotOverlapViolation) as exc_info:
            asyncio.run(store.create_many("alice", [slot(1, "10:00", "12:00")]))

        assert len(exc_info.value.conflicts) == 1
        assert len(store.all_slots()) == 1

    def test_exclusion_rejects_overlapping_update(self):
        store = InMemorySlotStore([
            slot(1, "09:00", "11:00", slot_id="a"),
            slot(1, "12:00", "13:00", slot_id="b"),
        ])

        with pytest.raises(SlotOverlapViolation):
            asyncio.run(store.update_one("a", {"end_time": "12:30"}))

    def test_exclusion_can_be_disabled(self):
        store = InMemorySlotStore([slot(1, "09:00", "11:00")], enforce_exclusion=False)

        assert asyncio.run(store.create_many("alice", [slot(1, "10:00", "12:00")])) == 1

    def test_update_and_delete_missing_slot(self):
        store = InMemorySlotStore()

        with pytest.raises(StoreError):
            asyncio.run(store.update_one("missing", {"end_time": "12:00"}))
        with pytest.raises(StoreError):
            asyncio.run(store.delete_one("missing"))


class TestJsonFileSlotStore:
    """Tests for the JSON-file backed store."""

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileSlotStore(tmp_path / "slots.json")

        assert store.all_slots() == []

    def test_writes_through_and_reloads(self, tmp_path):
        path = tmp_path / "data" / "slots.json"
        store = JsonFileSlotStore(path)

        asyncio.run(store.create_many("alice", [slot(1, "09:00", "11:00")]))
        reloaded = JsonFileSlotStore(path)

        assert reloaded.all_slots() == [slot(1, "09:00", "11:00")]
        assert reloaded.all_slots()[0].id == store.all_slots()[0].id
        assert json.loads(path.read_text(encoding="utf-8"))[0]["start_time"] == "09:00"

    def test_delete_is_persisted(self, tmp_path):
        path = tmp_path / "slots.json"
        store = JsonFileSlotStore(path)
        asyncio.run(store.create_many("alice", [slot(1, "09:00", "11:00")]))

        asyncio.run(store.delete_one(store.all_slots()[0].id))

        assert JsonFileSlotStore(path).all_slots() == []

    def test_failed_write_rolls_back_memory(self, tmp_path):
        """A slot that could not be saved is not kept in memory either."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = JsonFileSlotStore(blocker / "slots.json")

        with pytest.raises(StoreError, match="Could not write"):
            asyncio.run(store.create_many("alice", [slot(1, "09:00", "11:00")]))

        assert store.all_slots() == []

    def test_failed_delete_keeps_slot(self, tmp_path):
        path = tmp_path / "slots.json"
        store = JsonFileSlotStore(path)
        asyncio.run(store.create_many("alice", [slot(1, "09:00", "11:00")]))
        path.unlink()
        path.mkdir()

        with pytest.raises(StoreError):
            asyncio.run(store.delete_one(store.all_slots()[0].id))

        assert store.all_slots() == [slot(1, "09:00", "11:00")]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "slots.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreError):
            JsonFileSlotStore(path)

    def test_non_list_root(self, tmp_path):
        path = tmp_path / "slots.json"
        path.write_text('{"slots": []}', encoding="utf-8")

        with pytest.raises(StoreError, match="list of slots"):
            JsonFileSlotStore(path)

    def test_incomplete_record(self, tmp_path):
        path = tmp_path / "slots.json"
        path.write_text('[{"owner_id": "alice", "day_of_week": 1}]', encoding="utf-8")

        with pytest.raises(StoreError):
            JsonFileSlotStore(path)


class TestStaticIdentityProvider:
    def test_resolves_configured_owner(self):
        assert asyncio.run(StaticIdentityProvider("alice").resolve_caller()) == "alice"

    def test_rejects_missing_owner(self):
        with pytest.raises(UnauthenticatedError):
            asyncio.run(StaticIdentityProvider().resolve_caller())
