"""
Vesting schedule record.

A schedule is immutable once built; the store replaces it with an updated
copy when a release or revoke changes its mutable fields.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict

from ..core.safe_math import checked_add


class ScheduleStatus(str, Enum):
    """Lifecycle position of a schedule."""

    ACTIVE = "active"  # Nothing released yet
    PARTIALLY_RELEASED = "partially_released"
    FULLY_RELEASED = "fully_released"
    REVOKED = "revoked"  # Terminal


@dataclass(frozen=True)
class VestingSchedule:
    """A fixed-size token grant released to one beneficiary over time."""

    schedule_id: str
    beneficiary: str
    name: str
    start: int
    cliff_offset: int
    duration: int
    slice_interval: int
    total_amount: int
    revocable: bool
    released_amount: int = 0
    revoked: bool = False
    initialized: bool = True

    @property
    def cliff(self) -> int:
        return checked_add(self.start, self.cliff_offset)

    @property
    def end(self) -> int:
        return checked_add(self.start, self.duration)

    @property
    def remaining_amount(self) -> int:
        return self.total_amount - self.released_amount

    @property
    def status(self) -> ScheduleStatus:
        if self.revoked:
            return ScheduleStatus.REVOKED
        if self.released_amount == 0:
            return ScheduleStatus.ACTIVE
        if self.released_amount < self.total_amount:
            return ScheduleStatus.PARTIALLY_RELEASED
        return ScheduleStatus.FULLY_RELEASED

    def to_dict(self) -> Dict[str, Any]:
        """Serialize schedule to a JSON-safe dictionary."""
        data = asdict(self)
        # uint256 values do not survive a round trip through JSON floats
        for key in ("start", "cliff_offset", "duration", "slice_interval",
                    "total_amount", "released_amount"):
            data[key] = str(data[key])
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VestingSchedule":
        return cls(
            schedule_id=data["schedule_id"],
            beneficiary=data["beneficiary"],
            name=data["name"],
            start=int(data["start"]),
            cliff_offset=int(data["cliff_offset"]),
            duration=int(data["duration"]),
            slice_interval=int(data["slice_interval"]),
            total_amount=int(data["total_amount"]),
            revocable=bool(data["revocable"]),
            released_amount=int(data.get("released_amount", 0)),
            revoked=bool(data.get("revoked", False)),
            initialized=bool(data.get("initialized", True)),
        )
