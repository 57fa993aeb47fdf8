"""
tokenvest Vesting Contracts.

This module provides the vesting engine and its collaborators:
- VestingController: create / release / revoke / withdraw lifecycle
- ScheduleStore: schedule records with beneficiary and name indexes
- Vesting math: slice-based linear vesting with a cliff
- SingleAdminGate, PauseSwitch, ReentrancyGuard: access, pause and lock
- TokenLedger: in-memory asset ledger implementing AssetLedger
"""

from .access import AccessGate, SingleAdminGate
from .events import EventLog, EventType, VestingEvent
from .guard import ReentrancyGuard
from .identity import compute_schedule_id
from .ledger import AssetLedger, TokenLedger
from .pause import PauseSwitch
from .schedule import ScheduleStatus, VestingSchedule
from .store import ScheduleStore
from .vesting import EngineState, VestingController
from .vesting_math import compute_releasable_amount, compute_vested_amount

__all__ = [
    # Engine
    "VestingController",
    "EngineState",
    "ScheduleStore",
    "VestingSchedule",
    "ScheduleStatus",
    "compute_schedule_id",
    "compute_releasable_amount",
    "compute_vested_amount",
    # Collaborators
    "AccessGate",
    "SingleAdminGate",
    "PauseSwitch",
    "ReentrancyGuard",
    "AssetLedger",
    "TokenLedger",
    # Events
    "EventLog",
    "EventType",
    "VestingEvent",
]
