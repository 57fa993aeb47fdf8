"""
Manages the pause flag that suspends mutating vesting operations.

Read-only queries stay available while paused.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from ..core.exceptions import PausedError, UnauthorizedError
from .access import AccessGate

logger = logging.getLogger(__name__)


class PauseSwitch:
    """
    Admin-controlled pause flag.
    """

    def __init__(
        self,
        gate: AccessGate,
        time_provider: Optional[Callable[[], int]] = None,
    ):
        self.gate = gate
        self._time_provider = time_provider or (lambda: int(time.time()))
        self._state: Dict[str, Any] = self._default_state()

    @staticmethod
    def _default_state() -> Dict[str, Any]:
        return {
            "is_paused": False,
            "paused_by": None,
            "paused_timestamp": None,
            "reason": None,
        }

    def pause(self, caller: str, reason: str = "Manual pause") -> bool:
        """
        Pause mutating operations.

        Returns:
            True if the flag changed, False if already paused
        """
        if not self.gate.is_admin(caller):
            raise UnauthorizedError(f"Caller {caller} is not authorized to pause operations.")

        if self._state["is_paused"]:
            logger.info("Pause requested but operations already paused.")
            return False

        self._state = {
            "is_paused": True,
            "paused_by": caller,
            "paused_timestamp": int(self._time_provider()),
            "reason": reason,
        }
        logger.warning("Vesting operations paused by %s. Reason: %s", caller, reason)
        return True

    def unpause(self, caller: str, reason: str = "Manual unpause") -> bool:
        """
        Resume mutating operations.

        Returns:
            True if the flag changed, False if not paused
        """
        if not self.gate.is_admin(caller):
            raise UnauthorizedError(f"Caller {caller} is not authorized to unpause operations.")

        if not self._state["is_paused"]:
            logger.info("Unpause requested but operations not paused.")
            return False

        self._state = self._default_state()
        logger.info("Vesting operations unpaused by %s. Reason: %s", caller, reason)
        return True

    def is_paused(self) -> bool:
        return bool(self._state["is_paused"])

    def require_not_paused(self) -> None:
        if self._state["is_paused"]:
            raise PausedError(
                "vesting operations are paused",
                details={"reason": self._state["reason"]},
            )

    def get_status(self) -> Dict[str, Any]:
        return dict(self._state)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._state)

    def load_state(self, data: Dict[str, Any]) -> None:
        state = self._default_state()
        state.update({k: data[k] for k in state if k in data})
        self._state = state
