"""HttpLocationSink: POSTs batches to a remote batch-processing endpoint.

The endpoint is expected to speak the same contract as
``POST /api/gps/batch``: a camelCase JSON batch in, a JSON result with a
``success`` flag out.
"""

from __future__ import annotations

import asyncio
import logging

import requests

from delivery_tracking.domain.batch import LocationBatch
from delivery_tracking.sinks.base import SinkError

logger = logging.getLogger(__name__)


class HttpLocationSink:
    """Location sink that submits batches over HTTP.

    Args:
        url: Full URL of the batch endpoint.
        timeout_seconds: Per-request timeout handed to requests.
        headers: Extra headers (auth, API keys) sent with every request.
        session: Optional pre-configured requests.Session.
    """

    name = "http"

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 15.0,
        headers: dict[str, str] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if headers:
            self._session.headers.update(headers)

    async def submit_batch(self, batch: LocationBatch) -> None:
        # requests is blocking; keep it off the event loop
        await asyncio.to_thread(self._post, batch)

    def _post(self, batch: LocationBatch) -> None:
        try:
            response = self._session.post(self._url, json=batch.to_payload(), timeout=self._timeout)
        except requests.RequestException as exc:
            raise SinkError(self.name, str(exc)) from exc

        if not response.ok:
            raise SinkError(self.name, f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if body.get("success") is False:
            raise SinkError(self.name, str(body.get("error", "remote reported failure")))

        logger.debug(
            "Remote accepted batch %s: %s inserted",
            batch.batch_id,
            body.get("inserted_count", "?"),
        )

    def close(self) -> None:
        self._session.close()
