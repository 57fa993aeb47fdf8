"""
Append-only event log for off-process monitoring.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class EventType(str, Enum):
    SCHEDULE_CREATED = "ScheduleCreated"
    TOKENS_RELEASED = "TokensReleased"
    SCHEDULE_REVOKED = "ScheduleRevoked"
    FUNDS_WITHDRAWN = "FundsWithdrawn"
    ADMIN_TRANSFERRED = "AdminTransferred"
    PAUSE_CHANGED = "PauseChanged"


# Args carrying uint256 values, stored as strings when serialized
INT_ARGS = {
    EventType.SCHEDULE_CREATED: ("cliff", "start", "duration", "slice_interval", "amount"),
    EventType.TOKENS_RELEASED: ("amount",),
    EventType.SCHEDULE_REVOKED: ("unreleased_amount",),
    EventType.FUNDS_WITHDRAWN: ("amount",),
}


@dataclass(frozen=True)
class VestingEvent:
    """Represents an emitted engine event."""

    event_type: EventType
    args: Dict[str, Any]
    timestamp: int
    sequence: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            # ints are stringified so uint256 values survive JSON
            "args": {k: str(v) if isinstance(v, int) and not isinstance(v, bool) else v
                     for k, v in self.args.items()},
            "timestamp": self.timestamp,
            "sequence": self.sequence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VestingEvent":
        event_type = EventType(data["event_type"])
        args = dict(data["args"])
        for key in INT_ARGS.get(event_type, ()):
            if key in args:
                args[key] = int(args[key])
        return cls(
            event_type=event_type,
            args=args,
            timestamp=int(data["timestamp"]),
            sequence=int(data["sequence"]),
        )


@dataclass
class EventLog:
    """Ordered record of events; entries are only ever appended."""

    events: List[VestingEvent] = field(default_factory=list)

    def emit(self, event_type: EventType, timestamp: int, **args: Any) -> VestingEvent:
        event = VestingEvent(
            event_type=event_type,
            args=args,
            timestamp=timestamp,
            sequence=len(self.events),
        )
        self.events.append(event)
        return event

    def filter(self, event_type: Optional[EventType] = None) -> List[VestingEvent]:
        if event_type is None:
            return list(self.events)
        return [e for e in self.events if e.event_type == event_type]

    def _truncate(self, length: int) -> None:
        # Only used to discard events of an aborted operation
        del self.events[length:]

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[VestingEvent]:
        return iter(list(self.events))

    def to_dict(self) -> Dict[str, Any]:
        return {"events": [e.to_dict() for e in self.events]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventLog":
        return cls(events=[VestingEvent.from_dict(e) for e in data.get("events", [])])
