"""
VoiceRelay exception hierarchy.

All application-specific exceptions inherit from VoiceRelayError.
Delivery errors never leave the delivery client (they are wrapped in a
``Failed`` outcome); persistence errors are raised by the offline queue
and handled by the sync coordinator.
"""

from datetime import UTC, datetime


class VoiceRelayError(Exception):
    """Base exception for all VoiceRelay errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VOICERELAY_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class DeliveryError(VoiceRelayError):
    """A submission to the collector did not succeed."""

    def __init__(self, detail: str = "Delivery failed", code: str = "DELIVERY_ERROR") -> None:
        super().__init__(detail=detail, code=code, status_code=502)


class NetworkFailure(DeliveryError):
    """The collector could not be reached (timeout, DNS, refused connection).

    Categories: "timeout", "connection", "network", "unknown".
    """

    def __init__(self, detail: str, category: str = "network") -> None:
        self.category = category
        super().__init__(detail=detail, code="NETWORK_FAILURE")


class RemoteRejection(DeliveryError):
    """The collector answered with a non-2xx status.

    Retryable and permanent rejections are not distinguished.
    """

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.remote_status = status_code
        super().__init__(
            detail=f"HTTP {status_code}: {detail}" if detail else f"HTTP {status_code}",
            code="REMOTE_REJECTION",
        )


class PersistenceError(VoiceRelayError):
    """Raised when the offline queue's durable slot cannot be read or written."""

    def __init__(self, detail: str = "Offline queue persistence failed") -> None:
        super().__init__(detail=detail, code="PERSISTENCE_ERROR", status_code=500)


class BatchCountMismatchError(VoiceRelayError):
    """Raised by the dev collector when ``count`` disagrees with ``len(data)``."""

    def __init__(self, count: int, actual: int) -> None:
        super().__init__(
            detail=f"Batch count {count} does not match {actual} records",
            code="BATCH_COUNT_MISMATCH",
            status_code=422,
        )
