"""Adapter between a platform online/offline signal and the sync coordinator.

An offline -> online transition triggers one ``drain()``; the result is
handed to an optional async callback (e.g. to refresh a status badge).
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from voicerelay.core.models import SyncResult
from voicerelay.services.sync.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    """Reacts to connectivity signals; does not detect connectivity itself.

    Args:
        coordinator: Coordinator whose queue is drained on reconnect.
        on_sync: Async callback receiving each drain result.
        online: Initial connectivity state.
    """

    def __init__(
        self,
        coordinator: SyncCoordinator,
        on_sync: Callable[[SyncResult], Awaitable[None]] | None = None,
        online: bool = True,
    ) -> None:
        self._coordinator = coordinator
        self._on_sync = on_sync
        self._online = online
        self._tasks: set[asyncio.Task] = set()

    @property
    def online(self) -> bool:
        return self._online

    async def set_online(self, online: bool) -> SyncResult | None:
        """Record the new state; drain if this is a transition into online.

        Returns:
            The drain result, or ``None`` when no drain was triggered.
        """
        was_online = self._online
        self._online = online

        if online and not was_online:
            logger.info("Connection restored, syncing offline data")
            result = await self._coordinator.drain()
            await self._notify(result)
            return result

        if was_online and not online:
            logger.info("Connection lost, new voice data will be queued offline")
        return None

    def signal(self, online: bool) -> asyncio.Task:
        """Non-async variant of :meth:`set_online` for platform event callbacks."""
        task = asyncio.create_task(self.set_online(online))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def refresh(self) -> SyncResult | None:
        """Derive the signal from a collector health probe."""
        reachable = await self._coordinator.check_connection()
        return await self.set_online(reachable)

    async def _notify(self, result: SyncResult) -> None:
        if self._on_sync is None:
            return
        try:
            await self._on_sync(result)
        except Exception:
            logger.warning("Sync status callback failed (non-fatal)")
