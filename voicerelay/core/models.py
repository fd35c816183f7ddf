"""
Domain models shared by the queue, delivery client, coordinator, and
development collector.

Pydantic v2 models for wire/persisted data, plain dataclasses for
in-process delivery outcomes.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from voicerelay.core.exceptions import DeliveryError

# ---------------------------------------------------------------------------
# Voice record
# ---------------------------------------------------------------------------


class VoiceRecord(BaseModel):
    """One transcribed speech fragment bound for the collector.

    ``id`` is assigned by the producer and never reassigned. The payload
    fields are opaque: only the fields the producer supplied are sent, with
    the values it supplied (``timestamp`` may be an ISO string, epoch
    milliseconds, or anything else JSON can carry). Unknown fields are
    preserved.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(min_length=1)
    text: str = ""
    speaker: str = ""
    language: str = ""
    timestamp: Any = None
    meeting_id: str = Field(default="", alias="meetingId")

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the collector's JSON shape, leaving out fields never set."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# ---------------------------------------------------------------------------
# Collector wire bodies
# ---------------------------------------------------------------------------


class BatchPayload(BaseModel):
    """POST /voicedata/batch request body."""

    data: list[VoiceRecord]
    count: int


class AcceptedResponse(BaseModel):
    """Collector acknowledgment for single and batch submissions."""

    status: str = "accepted"
    count: int = 1
    ids: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Delivery outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Delivered:
    """The collector acknowledged the submission with a 2xx status."""

    response: Any = None


@dataclass(frozen=True)
class Failed:
    """The submission was not acknowledged; the record(s) must stay queued."""

    error: DeliveryError

    @property
    def detail(self) -> str:
        return self.error.detail


DeliveryOutcome = Delivered | Failed


# ---------------------------------------------------------------------------
# Sync results
# ---------------------------------------------------------------------------


class SyncState(StrEnum):
    """Conceptual drain state of the sync coordinator (never persisted)."""

    idle = "idle"
    draining = "draining"


class SyncResult(BaseModel):
    """Structured outcome returned to producers, the UI, and operators.

    Attributes:
        success: Whether the operation reached its goal.
        message: Human-readable status line for display.
        data: Collector response payload, when there is one.
        pending: Offline queue size after the operation.
    """

    success: bool
    message: str
    data: Any = None
    pending: int = 0
