"""
Audit Trail — one log line per inbound webhook delivery.

The service keeps no state, so the trail is the log stream itself.
"""

import logging
from typing import Optional

from .models import DispatchResult
from .security import mask_api_key

log = logging.getLogger("sendgrid_webhook.audit")


def delivery_status(status_code: int, result: Optional[DispatchResult] = None) -> str:
    if status_code != 200:
        return "rejected"
    if result is None:
        return "received"
    if result.events_ok and result.exposures_ok is not False:
        return "forwarded"
    return "partial"


def log_delivery(
    status_code: int,
    api_key: Optional[str],
    processing_time_ms: int,
    events_parsed: int = 0,
    result: Optional[DispatchResult] = None,
    error_message: Optional[str] = None,
) -> str:
    """Log a webhook delivery and return its audit status."""
    status = delivery_status(status_code, result)
    exposures = result.exposures_sent if result else 0
    line = (
        f"delivery status={status} code={status_code} "
        f"key={mask_api_key(api_key)} events={events_parsed} "
        f"exposures={exposures} time_ms={processing_time_ms}"
    )
    if error_message:
        line += f" error={error_message!r}"

    if status == "forwarded" or status == "received":
        log.info(line)
    else:
        log.warning(line)
    return status
