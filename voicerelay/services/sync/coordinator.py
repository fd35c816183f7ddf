"""Reconciles the offline queue with the collector.

Producers call :meth:`SyncCoordinator.deliver_now` for every record: the
record is posted right away and only queued if that attempt fails.
:meth:`SyncCoordinator.drain` posts the whole queue as one batch and
removes exactly the snapshot it sent once the collector acknowledges it.

There is no timer or backoff loop here. Whoever observes connectivity
decides when to call ``drain()``.

Usage::

    coordinator = SyncCoordinator(PersistentQueue(store), DeliveryClient(url))
    await coordinator.start()
    result = await coordinator.deliver_now(record)
    result = await coordinator.drain()
"""

import asyncio
import logging
from collections.abc import Iterable

from voicerelay.core.exceptions import PersistenceError, RemoteRejection
from voicerelay.core.models import Failed, SyncResult, SyncState, VoiceRecord
from voicerelay.services.delivery.client import DeliveryClient
from voicerelay.services.queue.persistent_queue import PersistentQueue

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Owns the delivery policy for one client instance.

    Nothing raised by the queue or the delivery client escapes this class;
    every operation returns a :class:`SyncResult`.

    Args:
        queue: Durable offline queue (loaded by :meth:`start`).
        client: Collector client used for live and batch submissions.
    """

    def __init__(self, queue: PersistentQueue, client: DeliveryClient) -> None:
        self._queue = queue
        self._client = client
        self._drain_lock = asyncio.Lock()
        self._state = SyncState.idle

    async def start(self) -> None:
        """Load pending records persisted by a previous run."""
        await self._queue.load()
        logger.info("Sync coordinator ready, %d record(s) pending", self._queue.size())

    async def aclose(self) -> None:
        await self._client.aclose()
        await self._queue.store.close()

    @property
    def queue(self) -> PersistentQueue:
        return self._queue

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_draining(self) -> bool:
        return self._state is SyncState.draining

    def pending_count(self) -> int:
        return self._queue.size()

    # ------------------------------------------------------------------
    # Producer entry points
    # ------------------------------------------------------------------

    async def deliver_now(self, record: VoiceRecord) -> SyncResult:
        """Post *record* immediately; queue it for a later drain if that fails."""
        outcome = await self._client.submit_one(record)
        if isinstance(outcome, Failed):
            note = await self._enqueue([record])
            return SyncResult(
                success=False,
                message=(
                    f"Failed to post voice data: {outcome.detail}. "
                    f"Saved offline, will sync later.{note}"
                ),
                pending=self._queue.size(),
            )

        return SyncResult(
            success=True,
            message="Voice data posted successfully",
            data=outcome.response,
            pending=self._queue.size(),
        )

    async def deliver_batch_now(self, records: Iterable[VoiceRecord]) -> SyncResult:
        """Post *records* as one batch; queue each of them if that fails."""
        batch = list(records)
        if not batch:
            return SyncResult(
                success=True, message="No voice data to post", pending=self._queue.size()
            )

        outcome = await self._client.submit_batch(batch)
        if isinstance(outcome, Failed):
            note = await self._enqueue(batch)
            return SyncResult(
                success=False,
                message=(
                    f"Failed to post batch voice data: {outcome.detail}. "
                    f"Saved {len(batch)} entries offline, will sync later.{note}"
                ),
                pending=self._queue.size(),
            )

        return SyncResult(
            success=True,
            message=f"Successfully posted {len(batch)} voice data entries",
            data=outcome.response,
            pending=self._queue.size(),
        )

    async def _enqueue(self, records: list[VoiceRecord]) -> str:
        """Append *records* in order. Returns a status note if persisting failed."""
        error: PersistenceError | None = None
        for record in records:
            try:
                await self._queue.append(record)
            except PersistenceError as exc:
                error = exc
        if error is None:
            return ""
        logger.warning(
            "Offline queue write failed; %d record(s) are pending in memory only: %s",
            len(records),
            error.detail,
        )
        return " Offline copy could not be saved to disk and will be lost on restart."

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def drain(self) -> SyncResult:
        """Send every pending record as one batch and drop exactly what was sent.

        A drain requested while another one is running is coalesced into a
        no-op and makes no network call.
        """
        if self._drain_lock.locked():
            logger.info("Drain already in progress, coalescing request")
            return SyncResult(
                success=True,
                message="Sync already in progress",
                pending=self._queue.size(),
            )

        async with self._drain_lock:
            self._state = SyncState.draining
            try:
                return await self._drain_snapshot()
            finally:
                self._state = SyncState.idle

    async def _drain_snapshot(self) -> SyncResult:
        await self._queue.ensure_loaded()
        snapshot = self._queue.snapshot()
        if not snapshot:
            return SyncResult(success=True, message="No offline data to sync", pending=0)

        logger.info("Syncing %d offline record(s)", len(snapshot))
        outcome = await self._client.submit_batch(snapshot)

        if isinstance(outcome, Failed):
            if isinstance(outcome.error, RemoteRejection):
                # Permanent rejections are not told apart from transient ones
                logger.warning(
                    "Collector rejected offline batch (HTTP %d); the same %d record(s) "
                    "will be resent on the next sync",
                    outcome.error.remote_status,
                    len(snapshot),
                )
            pending = self._queue.size()
            return SyncResult(
                success=False,
                message=(
                    f"Sync failed: {outcome.detail}. {pending} entries still pending, "
                    "will retry on next trigger."
                ),
                pending=pending,
            )

        note = ""
        try:
            await self._queue.remove_all(snapshot)
        except PersistenceError as exc:
            logger.warning(
                "Synced records removed in memory but not on disk; they may be resent "
                "after a restart: %s",
                exc.detail,
            )
            note = " Queue state could not be saved; some entries may be sent again."

        logger.info(
            "Synced %d offline record(s), %d still pending", len(snapshot), self._queue.size()
        )
        return SyncResult(
            success=True,
            message=f"Successfully synced {len(snapshot)} offline entries.{note}",
            data=outcome.response,
            pending=self._queue.size(),
        )

    # ------------------------------------------------------------------
    # Operator helpers
    # ------------------------------------------------------------------

    async def clear_queue(self) -> SyncResult:
        """Discard every pending record. The caller vouches the collector does not need them."""
        dropped = self._queue.size()
        try:
            await self._queue.clear()
        except PersistenceError as exc:
            logger.warning("Offline queue cleared in memory only: %s", exc.detail)
            return SyncResult(
                success=False,
                message=f"Cleared {dropped} entries for this session, but could not save: "
                f"{exc.detail}",
                pending=0,
            )
        logger.warning("Offline queue cleared, %d record(s) discarded", dropped)
        return SyncResult(success=True, message=f"Cleared {dropped} offline entries", pending=0)

    async def check_connection(self) -> bool:
        """Reachability hint; never a precondition for delivery attempts."""
        return await self._client.check_health()
