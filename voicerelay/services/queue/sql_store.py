"""
SQL slot store: one row per slot in the ``queue_slots`` table.

Uses SQLAlchemy async sessions (aiosqlite by default). The schema is
created lazily on first access.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from voicerelay.core.exceptions import PersistenceError
from voicerelay.services.queue.base import BaseSlotStore
from voicerelay.services.storage.database import (
    create_session_factory,
    init_db,
    session_scope,
)
from voicerelay.services.storage.models_db import QueueSlot

logger = logging.getLogger(__name__)


class SqlSlotStore(BaseSlotStore):
    """Slot backed by a key/value row.

    Args:
        engine: Async engine to store the slot in.
        slot_name: Primary key of the row holding the queue.
        owns_engine: Dispose *engine* on :meth:`close` (set by the factory).
    """

    def __init__(
        self,
        engine: AsyncEngine,
        slot_name: str = "voiceDataOfflineQueue",
        owns_engine: bool = False,
    ) -> None:
        self._engine = engine
        self._slot_name = slot_name
        self._owns_engine = owns_engine
        self._session_factory = create_session_factory(engine)
        self._schema_ready = False

    @property
    def name(self) -> str:
        return self._slot_name

    async def _ensure_schema(self) -> None:
        if not self._schema_ready:
            await init_db(self._engine)
            self._schema_ready = True

    async def read(self) -> str | None:
        try:
            await self._ensure_schema()
            async with session_scope(self._session_factory) as session:
                slot = await session.get(QueueSlot, self._slot_name)
                return None if slot is None else slot.payload
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot read queue slot {self._slot_name!r}: {exc}") from exc

    async def write(self, payload: str) -> None:
        try:
            await self._ensure_schema()
            async with session_scope(self._session_factory) as session:
                slot = await session.get(QueueSlot, self._slot_name)
                if slot is None:
                    session.add(QueueSlot(name=self._slot_name, payload=payload))
                else:
                    slot.payload = payload
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot write queue slot {self._slot_name!r}: {exc}") from exc
        logger.debug("Wrote %d bytes to slot %s", len(payload), self._slot_name)

    async def close(self) -> None:
        if self._owns_engine:
            await self._engine.dispose()
