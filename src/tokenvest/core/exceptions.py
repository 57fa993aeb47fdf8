"""
Vesting-specific exception hierarchy for tokenvest.

Provides typed exceptions for vesting operations so callers can tell every
precondition violation apart and handle each one precisely. Every failed
operation raises exactly one of these and leaves engine state untouched.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class VestingError(Exception):
    """Base exception for all vesting engine errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ==================== Access Errors ====================


class UnauthorizedError(VestingError):
    """Raised when the caller lacks the capability an operation requires."""
    pass


class PausedError(VestingError):
    """Raised when a mutating operation is attempted while the engine is paused."""
    pass


class ReentrancyError(VestingError):
    """Raised when a guarded operation is entered while another one is in flight."""
    pass


# ==================== Validation Errors ====================


class InvalidParameterError(VestingError):
    """Raised for zero, empty or out-of-range input parameters."""
    pass


class ArithmeticOverflowError(VestingError):
    """Raised when an intermediate value leaves the uint256 range.

    Overflow is a defect, never a value to wrap around.
    """
    pass


# ==================== Lookup Errors ====================


class NotFoundError(VestingError):
    """Raised when an id or index does not resolve to a record."""
    pass


class ScheduleNotFoundError(NotFoundError):
    """Raised when no schedule exists for the given id."""

    def __init__(self, schedule_id: str, **kwargs: Any) -> None:
        super().__init__(f"Vesting schedule {schedule_id} not found", **kwargs)
        self.schedule_id = schedule_id


class IndexOutOfBoundsError(NotFoundError):
    """Raised when a positional index lookup is out of range."""

    def __init__(self, index: int, length: int, **kwargs: Any) -> None:
        super().__init__(f"Index {index} out of bounds (length {length})", **kwargs)
        self.index = index
        self.length = length


class DuplicateIdError(VestingError):
    """Raised when inserting a schedule whose id is already stored."""
    pass


# ==================== Balance Errors ====================


class InsufficientUnreservedBalanceError(VestingError):
    """Raised when an operation would commit funds already reserved for schedules."""
    pass


class InsufficientReleasableAmountError(VestingError):
    """Raised when a release asks for more than is currently vested."""
    pass


# ==================== Lifecycle Errors ====================


class LifecycleError(VestingError):
    """Raised when an operation is not allowed in the schedule's current state."""
    pass


class ScheduleRevokedError(LifecycleError):
    """Raised when releasing from a revoked schedule."""
    pass


class NotRevocableError(LifecycleError):
    """Raised when revoking a schedule created as non-revocable."""
    pass


class AlreadyRevokedError(LifecycleError):
    """Raised when revoking a schedule a second time."""
    pass


# ==================== External Errors ====================


class TransferFailedError(VestingError):
    """Raised when the asset ledger rejects or fails a transfer."""
    pass


class LedgerError(VestingError):
    """Raised by the bundled token ledger for its own rule violations."""
    pass


class InvariantViolationError(VestingError):
    """Raised when a global accounting invariant does not hold."""
    pass


class ConfigurationError(VestingError):
    """Raised when an environment setting cannot be parsed."""
    pass


class StorageError(VestingError):
    """Raised when the state database cannot be read or written."""
    pass
