"""
Releasable-amount computation.

Tokens vest linearly between ``start`` and ``start + duration`` but only at
whole slice boundaries: the elapsed time is rounded down to the last
completed slice before the pro-rata share is taken. Nothing is releasable
before the cliff, and everything left is releasable at or after the end.
"""

from __future__ import annotations

from ..core.safe_math import checked_div, checked_mul, checked_sub
from .schedule import VestingSchedule


def compute_vested_amount(schedule: VestingSchedule, now: int) -> int:
    """
    Cumulative amount vested at ``now``, regardless of what was released.

    Revoked and uninitialized schedules vest nothing further.
    """
    if not schedule.initialized or schedule.revoked:
        return 0
    if now < schedule.cliff:
        return 0
    if now >= schedule.end:
        return schedule.total_amount

    elapsed = checked_sub(now, schedule.start)
    vested_slices = checked_div(elapsed, schedule.slice_interval)
    vested_seconds = checked_mul(vested_slices, schedule.slice_interval)
    # Multiply before dividing to keep the rounding error below one unit
    return checked_div(checked_mul(schedule.total_amount, vested_seconds), schedule.duration)


def compute_releasable_amount(schedule: VestingSchedule, now: int) -> int:
    """
    Amount the beneficiary may release at ``now``.

    Args:
        schedule: Schedule record
        now: Unix timestamp in seconds

    Returns:
        Vested minus already released; 0 before the cliff or once revoked

    Raises:
        ArithmeticOverflowError: If any intermediate leaves the uint256 range,
            including a negative result from a corrupted record
    """
    if not schedule.initialized or schedule.revoked:
        return 0
    return checked_sub(compute_vested_amount(schedule, now), schedule.released_amount)
