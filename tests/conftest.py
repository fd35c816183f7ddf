"""Shared pytest fixtures for the VoiceRelay test suite.

Provides an in-memory slot store with failure injection, a record
factory, a loaded offline queue, and delivery clients wired to either a
scripted ``httpx.MockTransport`` or the development collector app.
"""

from collections.abc import Callable
from datetime import UTC, datetime

import httpx
import pytest

from voicerelay.api.collector import create_collector_app
from voicerelay.core.exceptions import PersistenceError
from voicerelay.core.models import VoiceRecord
from voicerelay.services.delivery import DeliveryClient
from voicerelay.services.queue import BaseSlotStore, PersistentQueue
from voicerelay.services.sync import SyncCoordinator

# ---------------------------------------------------------------------------
# FakeSlotStore: in-memory slot with failure injection
# ---------------------------------------------------------------------------


class FakeSlotStore(BaseSlotStore):
    """Single in-memory value that outlives the queues built on top of it.

    Setting ``fail_reads`` / ``fail_writes`` makes the corresponding
    operation raise ``PersistenceError``, mimicking a broken disk.
    """

    def __init__(self, payload: str | None = None) -> None:
        self.payload = payload
        self.fail_reads = False
        self.fail_writes = False
        self.writes = 0

    @property
    def name(self) -> str:
        return "fake-slot"

    async def read(self) -> str | None:
        if self.fail_reads:
            raise PersistenceError("simulated read failure")
        return self.payload

    async def write(self, payload: str) -> None:
        if self.fail_writes:
            raise PersistenceError("simulated write failure")
        self.payload = payload
        self.writes += 1


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def make_record(record_id: str, **overrides) -> VoiceRecord:
    """Build a fully populated record with deterministic payload fields."""
    fields = {
        "id": record_id,
        "text": f"utterance {record_id}",
        "speaker": "Speaker 1",
        "language": "en-US",
        "timestamp": datetime(2026, 10, 18, 9, 30, tzinfo=UTC),
        "meetingId": "meeting-1",
    }
    fields.update(overrides)
    return VoiceRecord.model_validate(fields)


@pytest.fixture
def record_factory() -> Callable[..., VoiceRecord]:
    """Return :func:`make_record` so tests can build records inline."""
    return make_record


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_store() -> FakeSlotStore:
    return FakeSlotStore()


@pytest.fixture
async def queue(fake_store) -> PersistentQueue:
    """A loaded, empty offline queue backed by ``fake_store``."""
    q = PersistentQueue(fake_store)
    await q.load()
    return q


# ---------------------------------------------------------------------------
# Collector transports
# ---------------------------------------------------------------------------


class ScriptedCollector:
    """``httpx.MockTransport`` handler answering every request with ``status``.

    Records each request so tests can assert on paths and bodies. Set
    ``error`` to an httpx exception class to simulate a network failure.
    """

    def __init__(self, status: int = 200) -> None:
        self.status = status
        self.error: type[httpx.TransportError] | None = None
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error("simulated network failure", request=request)
        return httpx.Response(self.status, json={"status": "accepted"})

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def scripted() -> ScriptedCollector:
    return ScriptedCollector()


@pytest.fixture
async def client(scripted):
    """DeliveryClient whose requests are answered by ``scripted``."""
    c = DeliveryClient(
        base_url="http://collector.test",
        transport=httpx.MockTransport(scripted),
    )
    yield c
    await c.aclose()


@pytest.fixture
async def coordinator(queue, client) -> SyncCoordinator:
    """A started coordinator over the fake queue and scripted collector."""
    coord = SyncCoordinator(queue, client)
    await coord.start()
    return coord


@pytest.fixture
def collector_app():
    """A fresh development collector; accepted records in ``app.state.received``."""
    return create_collector_app()


@pytest.fixture
async def collector_client(collector_app):
    """DeliveryClient talking to ``collector_app`` in-process via ASGITransport."""
    c = DeliveryClient(
        base_url="http://collector.test",
        transport=httpx.ASGITransport(app=collector_app),
    )
    yield c
    await c.aclose()
