"""
Sync module - delivery policy and reconnect handling.

Factory function for wiring a coordinator from configuration.
"""

import httpx

from voicerelay.core.config import Settings, get_settings
from voicerelay.services.delivery import DeliveryClient
from voicerelay.services.queue import PersistentQueue, create_store

from .connectivity import ConnectivityMonitor
from .coordinator import SyncCoordinator

__all__ = [
    "ConnectivityMonitor",
    "SyncCoordinator",
    "create_coordinator",
]


def create_coordinator(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SyncCoordinator:
    """Build a coordinator with its queue store and delivery client.

    The returned coordinator is not started; call ``await coordinator.start()``
    to load the persisted queue.

    Args:
        settings: Configuration to use (defaults to ``get_settings()``).
        transport: Optional httpx transport for the delivery client.

    Returns:
        A new, unstarted ``SyncCoordinator``.
    """
    settings = settings or get_settings()

    if settings.queue_backend == "sqlite":
        store = create_store(
            "sqlite",
            database_url=settings.database_url,
            slot_name=settings.queue_slot_name,
        )
    else:
        store = create_store(settings.queue_backend, path=settings.queue_path)

    client = DeliveryClient(
        base_url=settings.collector_base_url,
        timeout=settings.request_timeout,
        health_timeout=settings.health_timeout,
        transport=transport,
    )
    return SyncCoordinator(PersistentQueue(store), client)
