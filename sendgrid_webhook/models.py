"""
Event models — normalized webhook events and derived exposure records.

Instances live for a single request and are never mutated after
construction. ``to_dict()`` renders the camelCase shape the ingestion API
expects.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class EventUser:
    """User block of a normalized event. user_id always equals stable_id."""

    user_id: str
    email: Any                  # Original provider value, may be None or non-str
    stable_id: str

    def to_dict(self) -> Dict[str, Any]:
        data = {"userID": self.user_id}
        if self.email is not None:
            data["email"] = self.email
        data["customIDs"] = {"stableID": self.stable_id}
        return data


@dataclass(frozen=True)
class NormalizedEvent:
    """One provider event mapped onto the ingestion API's event shape."""

    event_name: Any
    time: Any                   # Passthrough of the provider timestamp
    user: Optional[EventUser]
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self) -> Dict[str, Any]:
        # Absent passthrough fields are left out, not sent as null
        data = {"eventName": self.event_name}
        if self.time is not None:
            data["time"] = self.time
        data["user"] = self.user.to_dict() if self.user else None
        data["metadata"] = dict(self.metadata)
        return data


@dataclass(frozen=True)
class ExposureRecord:
    """A user's assignment to an experiment group at delivery time."""

    user: EventUser
    experiment_name: str
    group: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user": self.user.to_dict(),
            "experimentName": self.experiment_name,
            "group": self.group,
        }


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of forwarding one batch. Never changes the inbound response."""

    events_sent: int
    exposures_sent: int
    events_ok: bool
    exposures_ok: Optional[bool] = None     # None when the call was skipped
