"""
Development collector speaking the voice-data wire protocol.

``create_collector_app()`` builds a FastAPI app that accepts single and
batch submissions into an in-memory list, so the delivery client can be
exercised end to end without the real collector::

    python -m voicerelay collector --port 8080

Rejections use the envelope ``{detail, code, timestamp}``. For a body
that fails validation ``detail`` is the list of field errors, so the
sender can see which record and field were refused.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from voicerelay import __version__
from voicerelay.core.exceptions import BatchCountMismatchError, VoiceRelayError
from voicerelay.core.models import AcceptedResponse, BatchPayload, HealthResponse, VoiceRecord

logger = logging.getLogger(__name__)


def create_collector_app(received: list[VoiceRecord] | None = None) -> FastAPI:
    """Build the collector application.

    Args:
        received: List that accepted records are appended to (a new one if omitted).
            Exposed afterwards as ``app.state.received``.
    """
    app = FastAPI(
        title="VoiceRelay dev collector",
        description="Local stand-in for the remote voice-data collector.",
        version=__version__,
    )
    app.state.received = received if received is not None else []

    @app.exception_handler(VoiceRelayError)
    async def rejected_submission(request: Request, exc: VoiceRelayError) -> JSONResponse:
        logger.warning("Rejected %s: %s", request.url.path, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "code": exc.code, "timestamp": exc.timestamp},
        )

    @app.exception_handler(RequestValidationError)
    async def invalid_submission(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        logger.warning(
            "Rejected %s: %d invalid field(s), first at %s",
            request.url.path,
            len(errors),
            errors[0]["loc"] if errors else "?",
        )
        return JSONResponse(
            status_code=422,
            content={
                "detail": errors,
                "code": "VALIDATION_ERROR",
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )

    @app.get("/health", response_model=HealthResponse, tags=["system"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, timestamp=datetime.now(UTC))

    @app.post("/voicedata", response_model=AcceptedResponse, tags=["voicedata"])
    async def post_voice_data(record: VoiceRecord) -> AcceptedResponse:
        app.state.received.append(record)
        logger.info("Accepted record %s (meeting=%s)", record.id, record.meeting_id)
        return AcceptedResponse(count=1, ids=[record.id])

    @app.post("/voicedata/batch", response_model=AcceptedResponse, tags=["voicedata"])
    async def post_voice_data_batch(batch: BatchPayload) -> AcceptedResponse:
        if batch.count != len(batch.data):
            raise BatchCountMismatchError(batch.count, len(batch.data))
        app.state.received.extend(batch.data)
        logger.info("Accepted batch of %d record(s)", batch.count)
        return AcceptedResponse(count=batch.count, ids=[r.id for r in batch.data])

    return app
