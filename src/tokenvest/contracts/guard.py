"""
Non-reentrant lock.

Wraps the outer boundary of the engine's read-modify-write operations. A
nested entry, typically triggered from inside the external transfer, fails
fast instead of interleaving with the in-flight operation.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from ..core.exceptions import ReentrancyError


class ReentrancyGuard:
    """Single-flag lock that refuses nested entry."""

    def __init__(self) -> None:
        self._locked = False
        self._holder: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self._locked

    def _require_not_locked(self, operation: str) -> None:
        if self._locked:
            raise ReentrancyError(
                f"reentrant call to {operation} while {self._holder} is in progress",
                details={"operation": operation, "in_progress": self._holder},
            )

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        self._require_not_locked(operation)
        self._locked = True
        self._holder = operation
        try:
            yield
        finally:
            self._locked = False
            self._holder = None
