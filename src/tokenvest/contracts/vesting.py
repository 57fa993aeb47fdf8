"""
Token Vesting Controller.

Holds a pool of fungible tokens on an asset ledger and releases them to
beneficiaries according to vesting schedules:
- Linear vesting with a cliff, released only at whole slice boundaries
- Beneficiary- or admin-initiated partial releases
- Optional admin revocation that pays out what has vested and frees the rest
- Admin withdrawal of funds not reserved by any live schedule

Security features:
- Checks-effects-interactions: bookkeeping is committed before every
  external transfer, so a re-entrant caller only ever sees settled state
- Non-reentrant guard around every mutating operation
- All-or-nothing operations: any failure restores the store, the reserved
  pool and the event log to their pre-call values
- Pause switch gating every mutating operation
- Checked uint256 arithmetic throughout
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from ..core.exceptions import (
    AlreadyRevokedError,
    InsufficientReleasableAmountError,
    InsufficientUnreservedBalanceError,
    InvalidParameterError,
    InvariantViolationError,
    NotFoundError,
    NotRevocableError,
    ScheduleRevokedError,
    TransferFailedError,
    UnauthorizedError,
)
from ..core.safe_math import UINT256_MAX, checked_add, checked_sub, require_uint256
from .access import AccessGate, SingleAdminGate
from .events import EventLog, EventType
from .guard import ReentrancyGuard
from .identity import ZERO_ADDRESS, compute_schedule_id, normalize_address
from .ledger import AssetLedger
from .pause import PauseSwitch
from .schedule import ScheduleStatus, VestingSchedule
from .store import ScheduleStore
from .vesting_math import compute_releasable_amount, compute_vested_amount

logger = logging.getLogger(__name__)


@dataclass
class EngineState:
    """Engine-global accounting owned by the controller."""

    # Sum of (total - released) over every schedule that is not revoked
    reserved_pool: int = 0


class VestingController:
    """
    Orchestrates the vesting schedule lifecycle.

    ``caller`` is the first argument of every operation and plays the role
    of the message sender: it is checked against the access gate or the
    schedule's beneficiary.

    Usage:
        controller = VestingController(ledger, SingleAdminGate("0xadmin"), "0xvault")
        schedule_id = controller.create_vesting_schedule(
            "0xadmin", "0xbob", start=0, cliff_offset=0, duration=100,
            slice_interval=10, revocable=True, amount=1000, name="seed",
        )
        controller.release("0xbob", schedule_id, 200)
    """

    def __init__(
        self,
        ledger: AssetLedger,
        gate: AccessGate,
        address: str,
        pause_switch: Optional[PauseSwitch] = None,
        time_provider: Optional[Callable[[], int]] = None,
        store: Optional[ScheduleStore] = None,
        events: Optional[EventLog] = None,
        state: Optional[EngineState] = None,
    ):
        if not address or normalize_address(address) == ZERO_ADDRESS:
            raise InvalidParameterError("engine address cannot be empty or zero")

        self.ledger = ledger
        self.gate = gate
        self.address = normalize_address(address)
        self._time_provider = time_provider or (lambda: int(time.time()))
        self.pause_switch = pause_switch or PauseSwitch(gate, self._time_provider)
        self.store = store if store is not None else ScheduleStore()
        self.events = events if events is not None else EventLog()
        self.state = state if state is not None else EngineState()
        self._guard = ReentrancyGuard()
        logger.info(
            "VestingController initialized",
            extra={
                "event": "vesting.initialized",
                "address": self.address[:10],
                "schedules": len(self.store),
            },
        )

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError("time_provider must return an integer timestamp") from exc

    def _query_time(self, now: Optional[int]) -> int:
        if now is None:
            return self._current_time()
        return require_uint256(now, "now")

    # ==================== Operation Boundary ====================

    @contextmanager
    def _operation(self, operation: str) -> Iterator[None]:
        """Pause check, reentrancy guard and rollback around one mutating call."""
        self.pause_switch.require_not_paused()
        with self._guard.enter(operation):
            store_snapshot = self.store.snapshot()
            reserved_before = self.state.reserved_pool
            events_before = len(self.events)
            try:
                yield
            except Exception as exc:
                self.store.restore(store_snapshot)
                self.state.reserved_pool = reserved_before
                self.events._truncate(events_before)
                logger.info(
                    "Vesting operation aborted",
                    extra={
                        "event": "vesting.aborted",
                        "operation": operation,
                        "error_type": type(exc).__name__,
                    },
                )
                raise

    # ==================== Lifecycle Operations ====================

    def create_vesting_schedule(
        self,
        caller: str,
        beneficiary: str,
        start: int,
        cliff_offset: int,
        duration: int,
        slice_interval: int,
        revocable: bool,
        amount: int,
        name: str,
    ) -> str:
        """
        Create a vesting schedule funded from the unreserved balance.

        Args:
            caller: Must be an admin
            beneficiary: Address receiving the released tokens
            start: Vesting start (unix seconds)
            cliff_offset: Seconds after start before anything is releasable
            duration: Seconds from start until fully vested
            slice_interval: Release granularity in seconds
            revocable: Whether the admin may revoke later
            amount: Total tokens to vest
            name: Free-form label used for lookup

        Returns:
            The new schedule id

        Raises:
            UnauthorizedError: If caller is not an admin
            InvalidParameterError: If any parameter is zero, empty or out of range
            InsufficientUnreservedBalanceError: If the engine cannot cover ``amount``
        """
        with self._operation("create"):
            self._require_admin(caller)

            if not isinstance(beneficiary, str) or not beneficiary.strip():
                raise InvalidParameterError("beneficiary cannot be empty")
            beneficiary = normalize_address(beneficiary)
            if beneficiary == ZERO_ADDRESS:
                raise InvalidParameterError("beneficiary is zero address")
            if not isinstance(name, str) or not name:
                raise InvalidParameterError("name cannot be empty")
            if not isinstance(revocable, bool):
                raise InvalidParameterError("revocable must be a bool")

            require_uint256(start, "start")
            require_uint256(cliff_offset, "cliff_offset")
            require_uint256(duration, "duration")
            require_uint256(slice_interval, "slice_interval")
            require_uint256(amount, "amount")
            if amount == 0:
                raise InvalidParameterError("amount must be > 0")
            if duration == 0:
                raise InvalidParameterError("duration must be > 0")
            if slice_interval < 1:
                raise InvalidParameterError("slice_interval must be >= 1")
            if cliff_offset > duration:
                raise InvalidParameterError("cliff_offset must not exceed duration")
            if start + duration > UINT256_MAX:
                raise InvalidParameterError("start + duration exceeds uint256")

            available = self.get_withdrawable_amount()
            if available < amount:
                raise InsufficientUnreservedBalanceError(
                    f"cannot create vesting schedule: unreserved balance "
                    f"{available} < {amount}",
                    details={"available": available, "requested": amount},
                )

            schedule_id = self.compute_next_schedule_id(beneficiary)
            schedule = VestingSchedule(
                schedule_id=schedule_id,
                beneficiary=beneficiary,
                name=name,
                start=start,
                cliff_offset=cliff_offset,
                duration=duration,
                slice_interval=slice_interval,
                total_amount=amount,
                revocable=revocable,
            )
            self.store.insert(schedule)
            self.state.reserved_pool = checked_add(self.state.reserved_pool, amount)

            self.events.emit(
                EventType.SCHEDULE_CREATED,
                self._current_time(),
                schedule_id=schedule_id,
                beneficiary=beneficiary,
                name=name,
                cliff=schedule.cliff,
                start=start,
                duration=duration,
                slice_interval=slice_interval,
                revocable=revocable,
                amount=amount,
            )

        logger.info(
            "Vesting schedule created",
            extra={
                "event": "vesting.created",
                "schedule_id": schedule_id[:10],
                "beneficiary": beneficiary[:10],
                "schedule_name": name,
                "amount": amount,
                "reserved_pool": self.state.reserved_pool,
            },
        )
        return schedule_id

    def release(self, caller: str, schedule_id: str, amount: int) -> int:
        """
        Release vested tokens to the schedule's beneficiary.

        Args:
            caller: The beneficiary or an admin
            schedule_id: Schedule to release from
            amount: Tokens to release, at most the releasable amount

        Returns:
            The released amount

        Raises:
            ScheduleNotFoundError: If the schedule does not exist
            UnauthorizedError: If caller is neither beneficiary nor admin
            ScheduleRevokedError: If the schedule was revoked
            InvalidParameterError: If amount is zero or malformed
            InsufficientReleasableAmountError: If amount exceeds what has vested
            TransferFailedError: If the ledger transfer fails
        """
        with self._operation("release"):
            schedule = self.store.get(schedule_id)
            if not self._is_beneficiary_or_admin(caller, schedule):
                raise UnauthorizedError(
                    "only beneficiary and admin can release vested tokens",
                    details={"caller": caller, "schedule_id": schedule_id},
                )
            if schedule.revoked:
                raise ScheduleRevokedError(
                    f"vesting schedule {schedule_id} is revoked",
                    details={"schedule_id": schedule_id},
                )
            require_uint256(amount, "amount")
            if amount == 0:
                raise InvalidParameterError("amount must be > 0")

            now = self._current_time()
            releasable = compute_releasable_amount(schedule, now)
            if amount > releasable:
                raise InsufficientReleasableAmountError(
                    f"cannot release tokens, not enough vested tokens "
                    f"({amount} > {releasable})",
                    details={"requested": amount, "releasable": releasable},
                )

            self._release(schedule, amount, now)

        return amount

    def revoke(self, caller: str, schedule_id: str) -> int:
        """
        Revoke a schedule, first paying out whatever has vested.

        Args:
            caller: Must be an admin
            schedule_id: Schedule to revoke

        Returns:
            The forfeited amount, now unreserved

        Raises:
            UnauthorizedError: If caller is not an admin
            ScheduleNotFoundError: If the schedule does not exist
            NotRevocableError: If the schedule was created non-revocable
            AlreadyRevokedError: If the schedule is already revoked
            TransferFailedError: If the auto-release transfer fails
        """
        with self._operation("revoke"):
            self._require_admin(caller)
            schedule = self.store.get(schedule_id)
            if not schedule.revocable:
                raise NotRevocableError(
                    f"vesting schedule {schedule_id} is not revocable",
                    details={"schedule_id": schedule_id},
                )
            if schedule.revoked:
                raise AlreadyRevokedError(
                    f"vesting schedule {schedule_id} is already revoked",
                    details={"schedule_id": schedule_id},
                )

            now = self._current_time()
            vested = compute_releasable_amount(schedule, now)
            if vested > 0:
                schedule = self._release(schedule, vested, now)

            unreleased = checked_sub(schedule.total_amount, schedule.released_amount)
            self.state.reserved_pool = checked_sub(self.state.reserved_pool, unreleased)
            self.store._mark_revoked(schedule_id)

            self.events.emit(
                EventType.SCHEDULE_REVOKED,
                now,
                schedule_id=schedule_id,
                beneficiary=schedule.beneficiary,
                name=schedule.name,
                unreleased_amount=unreleased,
            )

        logger.warning(
            "Vesting schedule revoked",
            extra={
                "event": "vesting.revoked",
                "schedule_id": schedule_id[:10],
                "auto_released": vested,
                "unreleased": unreleased,
                "reserved_pool": self.state.reserved_pool,
            },
        )
        return unreleased

    def withdraw_unreserved(self, caller: str, amount: int) -> int:
        """
        Withdraw tokens not reserved by any live schedule to the caller.

        Raises:
            UnauthorizedError: If caller is not an admin
            InvalidParameterError: If amount is zero or malformed
            InsufficientUnreservedBalanceError: If amount exceeds the unreserved balance
            TransferFailedError: If the ledger transfer fails
        """
        with self._operation("withdraw"):
            self._require_admin(caller)
            require_uint256(amount, "amount")
            if amount == 0:
                raise InvalidParameterError("amount must be > 0")

            available = self.get_withdrawable_amount()
            if amount > available:
                raise InsufficientUnreservedBalanceError(
                    f"not enough withdrawable funds ({amount} > {available})",
                    details={"available": available, "requested": amount},
                )

            recipient = normalize_address(caller)
            self._transfer(recipient, amount)
            self.events.emit(
                EventType.FUNDS_WITHDRAWN,
                self._current_time(),
                to=recipient,
                amount=amount,
            )

        logger.info(
            "Unreserved funds withdrawn",
            extra={"event": "vesting.withdrawn", "to": recipient[:10], "amount": amount},
        )
        return amount

    # ==================== Admin Functions ====================

    def pause(self, caller: str, reason: str = "Manual pause") -> bool:
        with self._guard.enter("pause"):
            changed = self.pause_switch.pause(caller, reason)
        if changed:
            self.events.emit(
                EventType.PAUSE_CHANGED, self._current_time(),
                caller=normalize_address(caller), paused=True,
            )
        return changed

    def unpause(self, caller: str, reason: str = "Manual unpause") -> bool:
        with self._guard.enter("unpause"):
            changed = self.pause_switch.unpause(caller, reason)
        if changed:
            self.events.emit(
                EventType.PAUSE_CHANGED, self._current_time(),
                caller=normalize_address(caller), paused=False,
            )
        return changed

    def transfer_admin(self, caller: str, new_admin: str) -> None:
        """Hand the admin slot over (only gates with a transferable slot)."""
        if not isinstance(self.gate, SingleAdminGate):
            raise InvalidParameterError("access gate does not support admin transfer")
        with self._guard.enter("transfer_admin"):
            previous = self.gate.transfer_admin(caller, new_admin)
        self.events.emit(
            EventType.ADMIN_TRANSFERRED,
            self._current_time(),
            previous_admin=previous,
            new_admin=self.gate.admin,
        )

    # ==================== View Functions ====================

    def get_token(self) -> AssetLedger:
        return self.ledger

    def is_paused(self) -> bool:
        return self.pause_switch.is_paused()

    def get_vesting_schedule(self, schedule_id: str) -> VestingSchedule:
        return self.store.get(schedule_id)

    def get_vesting_schedules_count(self) -> int:
        return self.store.count()

    def get_vesting_id_at_index(self, index: int) -> str:
        return self.store.id_at_index(index)

    def get_vesting_schedules_total_amount(self) -> int:
        return self.state.reserved_pool

    def get_schedule_count_by_beneficiary(self, beneficiary: str) -> int:
        return self.store.count_by_beneficiary(beneficiary)

    def get_schedule_id_at_beneficiary_index(self, beneficiary: str, index: int) -> str:
        return self.store.id_at_beneficiary_index(beneficiary, index)

    def get_schedule_ids_by_beneficiary(self, beneficiary: str) -> Tuple[str, ...]:
        return self.store.ids_by_beneficiary(beneficiary)

    def get_schedule_count_by_name(self, name: str) -> int:
        return self.store.count_by_name(name)

    def get_schedule_id_at_name_index(self, name: str, index: int) -> str:
        return self.store.id_at_name_index(name, index)

    def get_schedule_ids_by_name(self, name: str) -> Tuple[str, ...]:
        return self.store.ids_by_name(name)

    def get_last_vesting_schedule_for_holder(self, holder: str) -> VestingSchedule:
        count = self.store.count_by_beneficiary(holder)
        if count == 0:
            raise NotFoundError(f"no vesting schedule for {normalize_address(holder)}")
        return self.store.get(self.store.id_at_beneficiary_index(holder, count - 1))

    def compute_next_schedule_id(self, holder: str) -> str:
        return compute_schedule_id(holder, self.store.count_by_beneficiary(holder))

    def compute_releasable_amount(self, schedule_id: str, now: Optional[int] = None) -> int:
        schedule = self.store.get(schedule_id)
        return compute_releasable_amount(
            schedule, self._query_time(now)
        )

    def compute_vested_amount(self, schedule_id: str, now: Optional[int] = None) -> int:
        schedule = self.store.get(schedule_id)
        return compute_vested_amount(
            schedule, self._query_time(now)
        )

    def get_schedule_status(self, schedule_id: str) -> ScheduleStatus:
        return self.store.get(schedule_id).status

    def get_withdrawable_amount(self) -> int:
        return checked_sub(self.ledger.balance_of(self.address), self.state.reserved_pool)

    def check_invariants(self) -> None:
        """
        Verify the accounting invariants.

        Raises:
            InvariantViolationError: On the first violated invariant
        """
        outstanding = 0
        for schedule in self.store:
            if schedule.released_amount > schedule.total_amount:
                raise InvariantViolationError(
                    f"schedule {schedule.schedule_id} released more than its total",
                    details={"schedule_id": schedule.schedule_id},
                )
            if not schedule.revoked:
                outstanding += schedule.total_amount - schedule.released_amount

        if outstanding != self.state.reserved_pool:
            raise InvariantViolationError(
                f"reserved pool {self.state.reserved_pool} does not match "
                f"outstanding schedule amounts {outstanding}",
                details={"reserved_pool": self.state.reserved_pool, "outstanding": outstanding},
            )
        balance = self.ledger.balance_of(self.address)
        if self.state.reserved_pool > balance:
            raise InvariantViolationError(
                f"reserved pool {self.state.reserved_pool} exceeds ledger balance {balance}",
                details={"reserved_pool": self.state.reserved_pool, "balance": balance},
            )

    # ==================== Helpers ====================

    def _require_admin(self, caller: str) -> None:
        if not caller or not self.gate.is_admin(caller):
            raise UnauthorizedError("caller is not the admin", details={"caller": caller})

    def _is_beneficiary_or_admin(self, caller: str, schedule: VestingSchedule) -> bool:
        if not caller:
            return False
        return normalize_address(caller) == schedule.beneficiary or self.gate.is_admin(caller)

    def _release(self, schedule: VestingSchedule, amount: int, now: int) -> VestingSchedule:
        # Effects first, then the external interaction
        updated = self.store._record_release(schedule.schedule_id, amount)
        self.state.reserved_pool = checked_sub(self.state.reserved_pool, amount)
        self._transfer(updated.beneficiary, amount)

        self.events.emit(
            EventType.TOKENS_RELEASED,
            now,
            schedule_id=updated.schedule_id,
            beneficiary=updated.beneficiary,
            name=updated.name,
            amount=amount,
        )
        logger.info(
            "Vested tokens released",
            extra={
                "event": "vesting.released",
                "schedule_id": updated.schedule_id[:10],
                "beneficiary": updated.beneficiary[:10],
                "amount": amount,
                "released_total": updated.released_amount,
            },
        )
        return updated

    def _transfer(self, recipient: str, amount: int) -> None:
        try:
            ok = self.ledger.transfer(self.address, recipient, amount)
        except Exception as exc:
            raise TransferFailedError(
                f"transfer of {amount} to {recipient} failed: {exc}",
                details={"recipient": recipient, "amount": amount},
            ) from exc
        if not ok:
            raise TransferFailedError(
                f"transfer of {amount} to {recipient} rejected by ledger",
                details={"recipient": recipient, "amount": amount},
            )

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "reserved_pool": str(self.state.reserved_pool),
            "store": self.store.to_dict(),
            "events": self.events.to_dict(),
            "pause": self.pause_switch.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        ledger: AssetLedger,
        gate: AccessGate,
        time_provider: Optional[Callable[[], int]] = None,
    ) -> "VestingController":
        controller = cls(
            ledger=ledger,
            gate=gate,
            address=data["address"],
            time_provider=time_provider,
            store=ScheduleStore.from_dict(data.get("store", {})),
            events=EventLog.from_dict(data.get("events", {})),
            state=EngineState(reserved_pool=int(data.get("reserved_pool", 0))),
        )
        controller.pause_switch.load_state(data.get("pause", {}))
        return controller
