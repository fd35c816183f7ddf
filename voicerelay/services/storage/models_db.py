"""
SQLAlchemy ORM models for the VoiceRelay schema.

Tables: ``queue_slots``.
"""

from datetime import UTC, datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from voicerelay.services.storage.database import Base


class QueueSlot(Base):
    """A named durable slot holding one serialized offline queue (JSON array)."""

    __tablename__ = "queue_slots"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, default="[]")
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<QueueSlot name={self.name!r} bytes={len(self.payload or '')}>"
