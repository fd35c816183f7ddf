"""
Asynchronous HTTP client for the remote voice-data collector.

Uses ``httpx.AsyncClient`` so network round trips suspend the caller
without blocking the event loop. The client never retries; every call
returns a ``Delivered`` / ``Failed`` outcome instead of raising.
"""

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from voicerelay.core.exceptions import DeliveryError, NetworkFailure, RemoteRejection
from voicerelay.core.models import Delivered, DeliveryOutcome, Failed, VoiceRecord

logger = logging.getLogger(__name__)


class DeliveryClient:
    """Posts single records or batches to the collector and classifies outcomes.

    Holds no records between calls and is safe to reuse across concurrent
    submissions. Use as an async context manager, or call :meth:`aclose`.

    Args:
        base_url: Collector base URL (e.g. ``http://collector:8080``).
        timeout: Transport timeout in seconds for submissions.
        health_timeout: Timeout in seconds for :meth:`check_health`.
        transport: Optional httpx transport (``MockTransport``/``ASGITransport`` in tests).
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        timeout: float = 10.0,
        health_timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._health_timeout = health_timeout
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "DeliveryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request, translating httpx errors into delivery errors.

        Args:
            method: HTTP method name ("get", "post").
            path: Collector endpoint path (e.g. "/voicedata").
            **kwargs: Passed through to httpx (json, timeout, etc.).

        Returns:
            The httpx Response object with a successful status code.

        Raises:
            NetworkFailure: On timeout, connection, or other transport errors.
            RemoteRejection: On any non-2xx status.
        """
        try:
            resp = await getattr(self._client, method)(path, **kwargs)
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise NetworkFailure(f"Request to {path} timed out: {exc}", category="timeout") from exc
        except httpx.ConnectError as exc:
            raise NetworkFailure(
                f"Collector unreachable at {self._base_url}: {exc}", category="connection"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise RemoteRejection(
                exc.response.status_code, exc.response.reason_phrase
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkFailure(f"Network error: {exc}", category="network") from exc
        return resp

    async def _submit(self, path: str, body: Any) -> DeliveryOutcome:
        try:
            resp = await self._request("post", path, json=body)
        except DeliveryError as exc:
            logger.warning("Submission to %s failed: %s", path, exc.detail)
            return Failed(error=exc)
        except Exception as exc:
            logger.exception("Unexpected error submitting to %s", path)
            return Failed(error=NetworkFailure(f"Unexpected error: {exc}", category="unknown"))
        return Delivered(response=_parse_body(resp))

    async def submit_one(self, record: VoiceRecord) -> DeliveryOutcome:
        """POST a single record to ``/voicedata``."""
        return await self._submit("/voicedata", record.to_wire())

    async def submit_batch(self, records: Sequence[VoiceRecord]) -> DeliveryOutcome:
        """POST *records* with their count to ``/voicedata/batch`` as one atomic unit."""
        body = {
            "data": [record.to_wire() for record in records],
            "count": len(records),
        }
        return await self._submit("/voicedata/batch", body)

    async def check_health(self) -> bool:
        """Probe ``GET /health`` within ``health_timeout``. Never raises."""
        try:
            await self._request("get", "/health", timeout=self._health_timeout)
            return True
        except DeliveryError as exc:
            logger.info("Collector health check failed: %s", exc.detail)
            return False
        except Exception:
            logger.exception("Unexpected error probing collector health")
            return False


def _parse_body(resp: httpx.Response) -> Any:
    """Return the JSON body if there is one, otherwise the raw text (or None)."""
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text
