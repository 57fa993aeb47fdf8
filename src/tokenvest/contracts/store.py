"""
Schedule storage with append-only secondary indexes.

The store is the single owner of schedule records. The beneficiary, name and
global indexes hold schedule ids only, in insertion order, and never shrink.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ..core.exceptions import DuplicateIdError, IndexOutOfBoundsError, ScheduleNotFoundError
from ..core.safe_math import checked_add
from .identity import normalize_address
from .schedule import VestingSchedule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreSnapshot:
    """Point-in-time copy of store state used to roll back a failed operation."""

    schedules: Dict[str, VestingSchedule]
    by_beneficiary: Dict[str, Tuple[str, ...]]
    by_name: Dict[str, Tuple[str, ...]]
    ids: Tuple[str, ...]


@dataclass
class ScheduleStore:
    """Maps schedule ids to records and keeps the lookup indexes."""

    schedules: Dict[str, VestingSchedule] = field(default_factory=dict)
    by_beneficiary: Dict[str, List[str]] = field(default_factory=dict)
    by_name: Dict[str, List[str]] = field(default_factory=dict)
    ids: List[str] = field(default_factory=list)

    # ==================== Writes ====================

    def insert(self, schedule: VestingSchedule) -> None:
        """
        Insert a new schedule and index it.

        Raises:
            DuplicateIdError: If the id is already stored
        """
        if schedule.schedule_id in self.schedules:
            raise DuplicateIdError(
                f"Vesting schedule {schedule.schedule_id} already exists",
                details={"schedule_id": schedule.schedule_id},
            )

        beneficiary = normalize_address(schedule.beneficiary)
        self.schedules[schedule.schedule_id] = schedule
        self.by_beneficiary.setdefault(beneficiary, []).append(schedule.schedule_id)
        self.by_name.setdefault(schedule.name, []).append(schedule.schedule_id)
        self.ids.append(schedule.schedule_id)

        logger.debug(
            "Schedule stored",
            extra={
                "event": "store.insert",
                "schedule_id": schedule.schedule_id[:10],
                "total_schedules": len(self.ids),
            },
        )

    def _record_release(self, schedule_id: str, amount: int) -> VestingSchedule:
        schedule = self.get(schedule_id)
        updated = dataclasses.replace(
            schedule, released_amount=checked_add(schedule.released_amount, amount)
        )
        self.schedules[schedule_id] = updated
        return updated

    def _mark_revoked(self, schedule_id: str) -> VestingSchedule:
        updated = dataclasses.replace(self.get(schedule_id), revoked=True)
        self.schedules[schedule_id] = updated
        return updated

    # ==================== Reads ====================

    def get(self, schedule_id: str) -> VestingSchedule:
        try:
            return self.schedules[schedule_id]
        except KeyError:
            raise ScheduleNotFoundError(schedule_id) from None

    def contains(self, schedule_id: str) -> bool:
        return schedule_id in self.schedules

    def count(self) -> int:
        return len(self.ids)

    def id_at_index(self, index: int) -> str:
        return _at(self.ids, index)

    def count_by_beneficiary(self, beneficiary: str) -> int:
        return len(self.by_beneficiary.get(normalize_address(beneficiary), ()))

    def id_at_beneficiary_index(self, beneficiary: str, index: int) -> str:
        return _at(self.by_beneficiary.get(normalize_address(beneficiary), ()), index)

    def ids_by_beneficiary(self, beneficiary: str) -> Tuple[str, ...]:
        return tuple(self.by_beneficiary.get(normalize_address(beneficiary), ()))

    def count_by_name(self, name: str) -> int:
        return len(self.by_name.get(name, ()))

    def id_at_name_index(self, name: str, index: int) -> str:
        return _at(self.by_name.get(name, ()), index)

    def ids_by_name(self, name: str) -> Tuple[str, ...]:
        return tuple(self.by_name.get(name, ()))

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self):
        return (self.schedules[schedule_id] for schedule_id in self.ids)

    # ==================== Rollback ====================

    def snapshot(self) -> StoreSnapshot:
        # Records are frozen, so shallow copies of the containers are enough
        return StoreSnapshot(
            schedules=dict(self.schedules),
            by_beneficiary={k: tuple(v) for k, v in self.by_beneficiary.items()},
            by_name={k: tuple(v) for k, v in self.by_name.items()},
            ids=tuple(self.ids),
        )

    def restore(self, snapshot: StoreSnapshot) -> None:
        self.schedules = dict(snapshot.schedules)
        self.by_beneficiary = {k: list(v) for k, v in snapshot.by_beneficiary.items()}
        self.by_name = {k: list(v) for k, v in snapshot.by_name.items()}
        self.ids = list(snapshot.ids)

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize store state. Indexes are rebuilt on load from insertion order."""
        return {"schedules": [self.schedules[sid].to_dict() for sid in self.ids]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduleStore":
        store = cls()
        for raw in data.get("schedules", []):
            store.insert(VestingSchedule.from_dict(raw))
        return store


def _at(ids, index: int) -> str:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(ids):
        raise IndexOutOfBoundsError(index, len(ids))
    return ids[index]
