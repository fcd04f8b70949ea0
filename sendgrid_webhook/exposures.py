"""
Exposure extraction — derive experiment exposures from delivered emails.

Two upstream conventions carry the experiment assignment:

1. Explicit metadata fields ``statsig_experiment_name`` and
   ``statsig_variant_name`` (preferred, passed through verbatim).
2. The Single Send name encoded as ``<experiment>/<variant>``, with the
   variant normalized to ``Test`` / ``Control``.
"""

from collections.abc import Mapping
from typing import List, Optional, Tuple

from .models import ExposureRecord, NormalizedEvent
from .normalizer import is_truthy

DELIVERED = "delivered"

EXPERIMENT_FIELD = "statsig_experiment_name"
VARIANT_FIELD = "statsig_variant_name"
SINGLESEND_FIELD = "singlesend_name"

_VARIANT_GROUPS = {
    "test": "Test",
    "control": "Control",
}


def _from_singlesend(path) -> Optional[Tuple[str, str]]:
    if not path or not isinstance(path, str):
        return None
    parts = path.split("/")
    if len(parts) != 2:
        return None
    experiment_name, variant = parts[0], parts[1].lower()
    return experiment_name, _VARIANT_GROUPS.get(variant, variant)


def extract_experiment(evt: NormalizedEvent) -> Optional[Tuple[str, str]]:
    """Return (experiment_name, group) for an event, or None."""
    user = getattr(evt, "user", None)
    metadata = getattr(evt, "metadata", None)
    if not user or not isinstance(metadata, Mapping):
        return None

    experiment_name = metadata.get(EXPERIMENT_FIELD)
    variant = metadata.get(VARIANT_FIELD)
    if is_truthy(experiment_name) and is_truthy(variant):
        return experiment_name, variant

    return _from_singlesend(metadata.get(SINGLESEND_FIELD))


def build_exposures(events: List[NormalizedEvent]) -> List[ExposureRecord]:
    """Exposure records for delivered events that carry an experiment."""
    delivered = [evt for evt in events if evt.event_name == DELIVERED]
    if not delivered:
        return []

    exposures = []
    for evt in delivered:
        details = extract_experiment(evt)
        if details is None:
            continue
        experiment_name, group = details
        exposures.append(ExposureRecord(
            user=evt.user,
            experiment_name=experiment_name,
            group=group,
        ))
    return exposures
