"""Tests for the PersistentQueue offline store.

Covers FIFO behaviour, exact removal by id, durability across a simulated
restart, and the lossy-but-available policy for unreadable or corrupt
state. Most tests use the in-memory ``fake_store``; the durability tests
also run against a real JSON file.
"""

import asyncio
import json

import pytest

from voicerelay.core.exceptions import PersistenceError
from voicerelay.core.models import VoiceRecord
from voicerelay.services.queue import JsonFileStore, PersistentQueue


async def _restart(store) -> PersistentQueue:
    """Simulate a process restart: a fresh queue reloaded from *store*."""
    reloaded = PersistentQueue(store)
    await reloaded.load()
    return reloaded


def _ids(records) -> list[str]:
    return [r.id for r in records]


# ===================================================================
# Basic operations
# ===================================================================


class TestAppendAndSnapshot:
    """Verify ordering and snapshot isolation."""

    async def test_starts_empty(self, queue):
        assert queue.size() == 0
        assert queue.snapshot() == ()

    async def test_fifo_order(self, queue, record_factory):
        for rid in ("a", "b", "c"):
            await queue.append(record_factory(rid))
        assert _ids(queue.snapshot()) == ["a", "b", "c"]
        assert queue.size() == 3
        assert len(queue) == 3

    async def test_no_content_deduplication(self, queue, record_factory):
        """Two records with identical payloads are both kept."""
        await queue.append(record_factory("a", text="same"))
        await queue.append(record_factory("b", text="same"))
        assert queue.size() == 2

    async def test_snapshot_is_not_affected_by_later_appends(self, queue, record_factory):
        await queue.append(record_factory("a"))
        snap = queue.snapshot()
        await queue.append(record_factory("b"))
        assert _ids(snap) == ["a"]
        assert isinstance(snap, tuple)

    async def test_every_append_is_persisted(self, queue, fake_store, record_factory):
        await queue.append(record_factory("a"))
        await queue.append(record_factory("b"))
        assert fake_store.writes == 2
        assert [item["id"] for item in json.loads(fake_store.payload)] == ["a", "b"]


class TestRemoveAll:
    """Verify that only the given records are removed."""

    async def test_removes_exactly_the_given_records(self, queue, record_factory):
        for rid in ("a", "b", "c"):
            await queue.append(record_factory(rid))
        removed = await queue.remove_all([record_factory("a"), record_factory("c")])
        assert removed == 2
        assert _ids(queue.snapshot()) == ["b"]

    async def test_unknown_ids_are_ignored(self, queue, record_factory):
        await queue.append(record_factory("a"))
        removed = await queue.remove_all([record_factory("zzz")])
        assert removed == 0
        assert _ids(queue.snapshot()) == ["a"]

    async def test_empty_input_does_not_write(self, queue, fake_store):
        assert await queue.remove_all([]) == 0
        assert fake_store.writes == 0

    async def test_removal_is_persisted(self, queue, fake_store, record_factory):
        await queue.append(record_factory("a"))
        await queue.append(record_factory("b"))
        await queue.remove_all(queue.snapshot()[:1])
        reloaded = await _restart(fake_store)
        assert _ids(reloaded.snapshot()) == ["b"]


class TestClear:
    async def test_clear_drops_everything(self, queue, fake_store, record_factory):
        await queue.append(record_factory("a"))
        await queue.clear()
        assert queue.size() == 0
        assert json.loads(fake_store.payload) == []


# ===================================================================
# Durability
# ===================================================================


class TestDurability:
    """The persisted slot is the source of truth across restarts."""

    async def test_restart_restores_records_in_order(self, queue, fake_store, record_factory):
        for rid in ("a", "b", "c"):
            await queue.append(record_factory(rid))
        reloaded = await _restart(fake_store)
        assert _ids(reloaded.snapshot()) == ["a", "b", "c"]

    async def test_restart_preserves_payload(self, queue, fake_store, record_factory):
        original = record_factory("a", speaker="Speaker 2", confidence=0.5)
        await queue.append(original)
        (restored,) = (await _restart(fake_store)).snapshot()
        assert restored.to_wire() == original.to_wire()

    async def test_restart_with_json_file(self, tmp_path, record_factory):
        path = tmp_path / "queue" / "offline.json"
        q = PersistentQueue(JsonFileStore(path))
        await q.load()
        await q.append(record_factory("a"))
        await q.append(record_factory("b"))

        reloaded = await _restart(JsonFileStore(path))
        assert _ids(reloaded.snapshot()) == ["a", "b"]

    @pytest.mark.parametrize(
        "timestamp", ["2026-10-18T09:30:00.123Z", 1792315800000, "not a date"]
    )
    async def test_restart_keeps_timestamp_verbatim(self, queue, fake_store, timestamp):
        await queue.append(VoiceRecord(id="a", timestamp=timestamp))
        (restored,) = (await _restart(fake_store)).snapshot()
        assert restored.to_wire()["timestamp"] == timestamp

    async def test_absent_slot_loads_empty(self, tmp_path):
        q = await _restart(JsonFileStore(tmp_path / "missing.json"))
        assert q.size() == 0


class TestLoadFailures:
    """Unreadable or corrupt state resets to empty without raising."""

    @pytest.mark.parametrize(
        "payload",
        ["{not json", "", "null", '{"id": "a"}', '[{"text": "missing id"}]'],
    )
    async def test_corrupt_payload_loads_empty(self, fake_store, payload):
        fake_store.payload = payload
        q = await _restart(fake_store)
        assert q.size() == 0

    async def test_corrupt_file_loads_empty(self, tmp_path):
        path = tmp_path / "offline.json"
        path.write_text("[{]", encoding="utf-8")
        q = await _restart(JsonFileStore(path))
        assert q.size() == 0

    async def test_unreadable_slot_loads_empty(self, fake_store):
        fake_store.payload = '[{"id": "a"}]'
        fake_store.fail_reads = True
        q = await _restart(fake_store)
        assert q.size() == 0

    async def test_corruption_is_logged(self, fake_store, caplog):
        fake_store.payload = "garbage"
        await _restart(fake_store)
        assert "corrupt" in caplog.text


class TestMutationBeforeLoad:
    """A mutation on a queue nobody loaded must not clobber the backlog."""

    @pytest.fixture
    def seeded_store(self, fake_store):
        fake_store.payload = json.dumps([{"id": "old1"}, {"id": "old2"}])
        return fake_store

    async def test_append_keeps_persisted_backlog(self, seeded_store, record_factory):
        q = PersistentQueue(seeded_store)
        assert q.loaded is False

        await q.append(record_factory("new"))

        assert q.loaded is True
        reloaded = await _restart(seeded_store)
        assert _ids(reloaded.snapshot()) == ["old1", "old2", "new"]

    async def test_concurrent_appends_load_once(self, seeded_store, record_factory):
        q = PersistentQueue(seeded_store)
        await asyncio.gather(q.append(record_factory("x")), q.append(record_factory("y")))

        reloaded = await _restart(seeded_store)
        assert _ids(reloaded.snapshot()) == ["old1", "old2", "x", "y"]

    async def test_remove_all_only_drops_given_records(self, seeded_store, record_factory):
        q = PersistentQueue(seeded_store)
        await q.remove_all([record_factory("old1")])

        reloaded = await _restart(seeded_store)
        assert _ids(reloaded.snapshot()) == ["old2"]

    async def test_explicit_load_is_not_repeated(self, seeded_store, record_factory):
        q = await _restart(seeded_store)
        seeded_store.payload = "[]"
        await q.append(record_factory("new"))
        assert _ids(q.snapshot()) == ["old1", "old2", "new"]


class TestWriteFailures:
    """A failed write is reported but the in-memory mutation stands."""

    async def test_append_reports_failure_and_keeps_record(
        self, queue, fake_store, record_factory
    ):
        fake_store.fail_writes = True
        with pytest.raises(PersistenceError):
            await queue.append(record_factory("a"))
        assert _ids(queue.snapshot()) == ["a"]

    async def test_injected_failure_then_restart_is_empty(
        self, queue, fake_store, record_factory
    ):
        fake_store.fail_writes = True
        with pytest.raises(PersistenceError):
            await queue.append(record_factory("a"))
        reloaded = await _restart(fake_store)
        assert reloaded.size() == 0

    async def test_next_successful_write_repairs_slot(self, queue, fake_store, record_factory):
        fake_store.fail_writes = True
        with pytest.raises(PersistenceError):
            await queue.append(record_factory("a"))
        fake_store.fail_writes = False
        await queue.append(record_factory("b"))

        reloaded = await _restart(fake_store)
        assert _ids(reloaded.snapshot()) == ["a", "b"]

    async def test_remove_all_reports_failure_and_keeps_removal(
        self, queue, fake_store, record_factory
    ):
        await queue.append(record_factory("a"))
        fake_store.fail_writes = True
        with pytest.raises(PersistenceError):
            await queue.remove_all(queue.snapshot())
        assert queue.size() == 0
