"""
Admin access gate.

The engine only needs one question answered, ``is_admin(caller)``; the
bundled ``SingleAdminGate`` answers it from a single mutable admin slot that
only the current admin can hand over.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Protocol, runtime_checkable

from ..core.exceptions import InvalidParameterError, UnauthorizedError
from .identity import ZERO_ADDRESS, normalize_address

logger = logging.getLogger(__name__)


@runtime_checkable
class AccessGate(Protocol):
    def is_admin(self, caller: str) -> bool:
        ...


@dataclass
class SingleAdminGate:
    """Ownable-style gate with one admin address."""

    admin: str

    def __post_init__(self) -> None:
        self.admin = self._validate(self.admin, "admin")

    def is_admin(self, caller: str) -> bool:
        return bool(caller) and normalize_address(caller) == self.admin

    def require_admin(self, caller: str) -> None:
        if not self.is_admin(caller):
            raise UnauthorizedError(
                "caller is not the admin",
                details={"caller": caller},
            )

    def transfer_admin(self, caller: str, new_admin: str) -> str:
        """
        Hand the admin slot to ``new_admin``.

        Returns:
            The previous admin address
        """
        self.require_admin(caller)
        new_admin = self._validate(new_admin, "new admin")
        previous, self.admin = self.admin, new_admin
        logger.warning(
            "Admin transferred",
            extra={
                "event": "access.admin_transferred",
                "previous_admin": previous[:10],
                "new_admin": new_admin[:10],
            },
        )
        return previous

    @staticmethod
    def _validate(address: str, field: str) -> str:
        if not isinstance(address, str) or not address.strip():
            raise InvalidParameterError(f"{field} cannot be empty")
        address = normalize_address(address)
        if address == ZERO_ADDRESS:
            raise InvalidParameterError(f"{field} is zero address")
        return address

    def to_dict(self) -> Dict[str, Any]:
        return {"admin": self.admin}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SingleAdminGate":
        return cls(admin=data["admin"])
