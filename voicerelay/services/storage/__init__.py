"""
Storage module - SQLAlchemy engine, sessions, and ORM models.
"""

from voicerelay.services.storage.database import (
    Base,
    create_engine,
    create_session_factory,
    init_db,
    session_scope,
)
from voicerelay.services.storage.models_db import QueueSlot

__all__ = [
    "Base",
    "QueueSlot",
    "create_engine",
    "create_session_factory",
    "init_db",
    "session_scope",
]
