"""SendGrid event webhook → Statsig event and exposure forwarding."""

__version__ = "1.0.0"

from .hashing import UNKNOWN_ID, stable_id
from .normalizer import convert_batch, convert_event, normalize_metadata
from .exposures import build_exposures, extract_experiment
from .dispatcher import Dispatcher
from .models import DispatchResult, EventUser, ExposureRecord, NormalizedEvent

__all__ = [
    "UNKNOWN_ID",
    "stable_id",
    "normalize_metadata",
    "convert_event",
    "convert_batch",
    "extract_experiment",
    "build_exposures",
    "Dispatcher",
    "DispatchResult",
    "EventUser",
    "ExposureRecord",
    "NormalizedEvent",
]
