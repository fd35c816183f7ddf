"""
Durable FIFO of voice records awaiting delivery.

The in-memory list is mutated first and the full list is then written to
the slot store. Writes are serialized and always serialize the state at
write time, so one successful write repairs any earlier failed one.
"""

import asyncio
import json
import logging
from collections.abc import Iterable

from pydantic import TypeAdapter, ValidationError

from voicerelay.core.exceptions import PersistenceError
from voicerelay.core.models import VoiceRecord
from voicerelay.services.queue.base import BaseSlotStore

logger = logging.getLogger(__name__)

_RECORD_LIST = TypeAdapter(list[VoiceRecord])


class PersistentQueue:
    """Ordered store of records that the collector has not acknowledged.

    Call :meth:`load` once before use. A mutation made before that loads
    the slot first, so it can never overwrite a persisted backlog with an
    empty list. Mutations raise :class:`PersistenceError` when the durable
    write fails; the in-memory state still reflects the mutation for the
    rest of the session.

    Args:
        store: Durable slot holding the serialized queue.
    """

    def __init__(self, store: BaseSlotStore) -> None:
        self._store = store
        self._records: list[VoiceRecord] = []
        self._write_lock = asyncio.Lock()
        self._load_lock = asyncio.Lock()
        self._loaded = False

    @property
    def store(self) -> BaseSlotStore:
        return self._store

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def load(self) -> None:
        """Replace the in-memory state with the persisted queue.

        Absent, unreadable, or malformed content yields an empty queue and
        a logged warning; this method never raises.
        """
        self._records = await self._read_records()
        self._loaded = True

    async def ensure_loaded(self) -> None:
        """Load the slot unless :meth:`load` already ran."""
        if self._loaded:
            return
        async with self._load_lock:
            if not self._loaded:
                logger.info("Offline queue %s used before load(), loading now", self._store.name)
                await self.load()

    async def _read_records(self) -> list[VoiceRecord]:
        try:
            raw = await self._store.read()
        except PersistenceError as exc:
            logger.warning("Offline queue %s unreadable, starting empty: %s", self._store.name, exc)
            return []

        if raw is None:
            return []

        try:
            records = _RECORD_LIST.validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "Offline queue %s is corrupt, discarding it (%d error(s))",
                self._store.name,
                exc.error_count(),
            )
            return []

        logger.info("Loaded %d pending record(s) from %s", len(records), self._store.name)
        return records

    async def append(self, record: VoiceRecord) -> None:
        """Add *record* to the tail and persist."""
        await self.ensure_loaded()
        self._records.append(record)
        await self._persist()

    def snapshot(self) -> tuple[VoiceRecord, ...]:
        """Return the pending records, in order, without mutating the queue.

        Empty until the queue is loaded.
        """
        return tuple(self._records)

    async def remove_all(self, records: Iterable[VoiceRecord]) -> int:
        """Drop exactly the given records (matched by ``id``) and persist.

        Returns:
            Number of queue entries removed.
        """
        ids = {record.id for record in records}
        if not ids:
            return 0
        await self.ensure_loaded()
        before = len(self._records)
        self._records = [r for r in self._records if r.id not in ids]
        removed = before - len(self._records)
        await self._persist()
        return removed

    def size(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)

    async def clear(self) -> None:
        """Drop every pending record and persist the empty queue."""
        await self.ensure_loaded()
        self._records = []
        await self._persist()

    async def _persist(self) -> None:
        async with self._write_lock:
            payload = json.dumps(
                [record.to_wire() for record in self._records], ensure_ascii=False
            )
            await self._store.write(payload)
