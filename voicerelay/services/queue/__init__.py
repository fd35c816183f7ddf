"""
Queue module - durable offline queue and its slot backends.

Factory function for creating a slot store based on configuration.
"""

from .base import BaseSlotStore
from .file_store import JsonFileStore
from .persistent_queue import PersistentQueue

__all__ = [
    "BaseSlotStore",
    "JsonFileStore",
    "PersistentQueue",
    "create_store",
]


def create_store(backend: str, **kwargs) -> BaseSlotStore:
    """Factory function to create a slot store instance.

    Args:
        backend: Store backend name ("file", "sqlite")
        **kwargs: Backend-specific configuration
            ("file": ``path``; "sqlite": ``database_url``, ``slot_name``)

    Returns:
        BaseSlotStore implementation instance

    Raises:
        ValueError: If backend is unknown
    """
    if backend == "file":
        return JsonFileStore(**kwargs)
    elif backend == "sqlite":
        from voicerelay.services.storage.database import create_engine

        from .sql_store import SqlSlotStore

        engine = create_engine(kwargs.pop("database_url"))
        return SqlSlotStore(engine, owns_engine=True, **kwargs)
    else:
        raise ValueError(f"Unknown queue backend: {backend}")
