"""
Webhook Normalizer — Convert raw provider events to NormalizedEvents.

Provider payloads are loosely typed JSON. Every accessor here is total:
malformed input yields None (single event) or is dropped (batch), nothing
raises.
"""

import json
import math
from typing import Any, Dict, List, Optional

from .hashing import stable_id
from .models import EventUser, NormalizedEvent

STRUCTURAL_FIELDS = frozenset({"email", "timestamp", "event"})


def is_truthy(value: Any) -> bool:
    """JavaScript truthiness: empty containers are truthy, NaN is not."""
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


# Integers beyond this lose precision as JavaScript numbers
_MAX_SAFE_INT = 2 ** 53


def js_number(value: float) -> str:
    """Render a number the way JavaScript's Number#toString does.

    Shortest round-trip digits (Python's repr), fixed notation for
    1e-7 <= |x| < 1e21, exponent notation like ``1e-7`` / ``1.5e+21`` outside.
    """
    if not math.isfinite(value):
        return "null"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    text = repr(abs(value))
    mantissa, _, exp = text.partition("e")
    int_part, _, frac_part = mantissa.partition(".")
    digits = int_part + frac_part
    point = len(int_part) + int(exp or 0)

    stripped = digits.lstrip("0")
    point -= len(digits) - len(stripped)
    digits = stripped.rstrip("0")
    k = len(digits)

    if k <= point <= 21:
        body = digits + "0" * (point - k)
    elif 0 < point <= 21:
        body = digits[:point] + "." + digits[point:]
    elif -6 < point <= 0:
        body = "0." + "0" * -point + digits
    else:
        e = point - 1
        e_text = f"e{'+' if e >= 0 else '-'}{abs(e)}"
        body = (digits if k == 1 else digits[0] + "." + digits[1:]) + e_text
    return sign + body


def to_json_text(value: Any) -> str:
    """Canonical compact JSON text for a metadata value, as JSON.stringify renders it.

    Raises RecursionError for pathologically nested values.
    """
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, int):
        if abs(value) < _MAX_SAFE_INT:
            return str(value)
        try:
            return js_number(float(value))
        except OverflowError:
            return "null"
    if isinstance(value, float):
        return js_number(value)
    if isinstance(value, dict):
        items = (
            json.dumps(str(k), ensure_ascii=False) + ":" + to_json_text(v)
            for k, v in value.items()
        )
        return "{" + ",".join(items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(to_json_text(v) for v in value) + "]"
    return json.dumps(str(value), ensure_ascii=False)


def normalize_metadata(record: Dict[str, Any]) -> Dict[str, str]:
    """Flatten non-structural fields into a str -> str map."""
    metadata: Dict[str, str] = {}
    for key, value in record.items():
        if key in STRUCTURAL_FIELDS:
            continue
        metadata[str(key)] = value if isinstance(value, str) else to_json_text(value)
    return metadata


def convert_event(item: Any) -> Optional[NormalizedEvent]:
    """Map one raw provider event, or None if it is not event-shaped."""
    if not isinstance(item, dict) or not is_truthy(item.get("event")):
        return None

    email = item.get("email")
    timestamp = item.get("timestamp")
    try:
        metadata = normalize_metadata(item)
        # Passthrough fields must serialize too
        for value in (item["event"], email, timestamp):
            to_json_text(value)
    except (RecursionError, ValueError):
        return None

    user_id = stable_id(email)
    return NormalizedEvent(
        event_name=item["event"],
        time=timestamp,
        user=EventUser(user_id=user_id, email=email, stable_id=user_id),
        metadata=metadata,
    )


def convert_batch(payload: Any) -> List[NormalizedEvent]:
    """Convert a single event or a list of events, dropping malformed ones."""
    items = payload if isinstance(payload, list) else [payload]
    events = []
    for item in items:
        evt = convert_event(item)
        if evt is not None:
            events.append(evt)
    return events
