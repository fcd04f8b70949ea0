"""
Webhook Receiver Server — FastAPI.

Receives SendGrid event webhooks, normalizes them, and forwards events and
experiment exposures to the Statsig ingestion API.

    POST /?apikey=<statsig key>          JSON event or array of events
    POST /webhook?apikey=<statsig key>   same, explicit path
    GET  /health

Other methods on the webhook paths get 405 from the router.
"""

import json
import logging
import time
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request

from . import __version__
from .audit import log_delivery
from .dispatcher import Dispatcher
from .normalizer import convert_batch
from .security import extract_api_key

log = logging.getLogger("sendgrid_webhook.server")

app = FastAPI(
    title="SendGrid Statsig Webhook",
    version=__version__,
    docs_url=None,
    redoc_url=None,
)

_START_TIME = time.time()
_dispatcher: Optional[Dispatcher] = None


def get_dispatcher() -> Dispatcher:
    """Shared Dispatcher; it only holds immutable configuration."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = Dispatcher()
    return _dispatcher


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def parse_body(body: bytes):
    """Strict JSON: NaN, Infinity and -Infinity are rejected."""
    return json.loads(body, parse_constant=_reject_constant)


def _elapsed_ms(t0: float) -> int:
    return int((time.time() - t0) * 1000)


def _reject(status: int, detail: str, api_key: Optional[str], t0: float,
            events_parsed: int = 0) -> HTTPException:
    log_delivery(
        status_code=status,
        api_key=api_key,
        processing_time_ms=_elapsed_ms(t0),
        events_parsed=events_parsed,
        error_message=detail,
    )
    return HTTPException(status, detail)


# ── Main webhook endpoint ─────────────────────────────────

@app.post("/")
@app.post("/webhook")
async def receive_webhook(
    request: Request,
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    t0 = time.time()

    # 1. API key (query string)
    api_key = extract_api_key(request.query_params)
    if not api_key:
        raise _reject(401, "Unauthorized", None, t0)

    # 2. Parse body
    body = await request.body()
    try:
        payload = parse_body(body)
    except ValueError:
        raise _reject(400, "Invalid request", api_key, t0)

    # 3. Convert
    events = convert_batch(payload)
    if not events:
        raise _reject(406, "Unexpected content format", api_key, t0)

    # 4. Forward events + exposures (best effort)
    result = await dispatcher.dispatch(api_key, events)

    log_delivery(
        status_code=200,
        api_key=api_key,
        processing_time_ms=_elapsed_ms(t0),
        events_parsed=len(events),
        result=result,
    )
    return {"success": True}


# ── Health ────────────────────────────────────────────────

@app.get("/health")
async def health(dispatcher: Dispatcher = Depends(get_dispatcher)):
    return {
        "status": "healthy",
        "ingestion_base_url": dispatcher.base_url,
        "uptime_s": int(time.time() - _START_TIME),
    }
