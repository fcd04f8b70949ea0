"""
Dispatcher — Forward normalized events and exposures to the ingestion API.

Two independent POSTs per batch:

    {base}/v1/log_event             {"events": [...]}
    {base}/v1/log_custom_exposure   {"exposures": [...]}   (only if any)

Delivery is best effort. Failures are logged, never raised and never retried.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from . import config as cfg
from .exposures import build_exposures
from .models import DispatchResult, ExposureRecord, NormalizedEvent

log = logging.getLogger("sendgrid_webhook.dispatcher")


class Dispatcher:
    """Holds immutable ingestion settings; safe to share across requests."""

    def __init__(
        self,
        base_url: str = cfg.INGESTION_BASE_URL,
        timeout: float = cfg.INGESTION_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    def endpoint_url(self, endpoint: str) -> str:
        return f"{self._base_url}/v1/{endpoint}"

    async def dispatch(
        self, api_key: str, events: List[NormalizedEvent]
    ) -> DispatchResult:
        """Send the event batch and any derived exposures concurrently."""
        exposures = build_exposures(events)

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            calls = [self.log_events(client, api_key, events)]
            if exposures:
                calls.append(self.log_exposures(client, api_key, exposures))
            results = await asyncio.gather(*calls)

        return DispatchResult(
            events_sent=len(events),
            exposures_sent=len(exposures),
            events_ok=results[0],
            exposures_ok=results[1] if exposures else None,
        )

    async def log_events(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        events: List[NormalizedEvent],
    ) -> bool:
        body = {"events": [evt.to_dict() for evt in events]}
        return await self._post(client, cfg.LOG_EVENT_ENDPOINT, api_key, body)

    async def log_exposures(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        exposures: List[ExposureRecord],
    ) -> bool:
        body = {"exposures": [exp.to_dict() for exp in exposures]}
        return await self._post(client, cfg.LOG_EXPOSURE_ENDPOINT, api_key, body)

    async def _post(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        api_key: str,
        body: Dict[str, Any],
    ) -> bool:
        """POST one payload. Returns False on encode error, transport error or non-2xx."""
        try:
            content = json.dumps(body, allow_nan=False).encode("utf-8")
        except (ValueError, RecursionError) as exc:
            log.error(f"Ingestion POST {endpoint} not sent, unencodable body: {exc!r}")
            return False

        try:
            resp = await client.post(
                self.endpoint_url(endpoint),
                content=content,
                headers={
                    "content-type": "application/json",
                    cfg.API_KEY_HEADER: api_key,
                },
            )
        except httpx.HTTPError as exc:
            log.error(f"Ingestion POST {endpoint} failed: {exc!r}")
            return False

        if not resp.is_success:
            log.warning(
                f"Ingestion POST {endpoint} rejected: "
                f"{resp.status_code} {resp.text[:200]}"
            )
            return False
        return True
