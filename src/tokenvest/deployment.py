"""
A complete local vesting deployment: token ledger, admin gate and controller,
saved to and loaded from a StorageManager as one snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .contracts.access import SingleAdminGate
from .contracts.ledger import TokenLedger
from .contracts.vesting import VestingController
from .core.exceptions import StorageError
from .database.storage_manager import StorageManager

logger = logging.getLogger(__name__)

STATE_KEYS = ("ledger", "gate", "engine")


@dataclass
class VestingDeployment:
    ledger: TokenLedger
    gate: SingleAdminGate
    controller: VestingController

    @classmethod
    def create(
        cls,
        admin: str,
        engine_address: str,
        token_name: str,
        token_symbol: str,
        decimals: int = 18,
        time_provider: Optional[Callable[[], int]] = None,
    ) -> "VestingDeployment":
        """Deploy a fresh ledger and engine; ``admin`` owns both."""
        gate = SingleAdminGate(admin)
        ledger = TokenLedger(
            name=token_name,
            symbol=token_symbol,
            decimals=decimals,
            owner=gate.admin,
        )
        controller = VestingController(
            ledger=ledger,
            gate=gate,
            address=engine_address,
            time_provider=time_provider,
        )
        logger.info(
            "Vesting deployment created",
            extra={
                "event": "deployment.created",
                "engine": controller.address[:10],
                "token": token_symbol,
            },
        )
        return cls(ledger=ledger, gate=gate, controller=controller)

    def save(self, storage: StorageManager) -> None:
        storage.set_many(
            {
                "ledger": self.ledger.to_dict(),
                "gate": self.gate.to_dict(),
                "engine": self.controller.to_dict(),
            }
        )

    @classmethod
    def load(
        cls,
        storage: StorageManager,
        time_provider: Optional[Callable[[], int]] = None,
    ) -> "VestingDeployment":
        """
        Raises:
            StorageError: If the database holds no deployment
        """
        raw = {key: storage.get(key) for key in STATE_KEYS}
        missing = [key for key, value in raw.items() if value is None]
        if missing:
            raise StorageError(
                f"no vesting deployment in {storage.db_path} (missing {', '.join(missing)})"
            )

        ledger = TokenLedger.from_dict(raw["ledger"])
        gate = SingleAdminGate.from_dict(raw["gate"])
        controller = VestingController.from_dict(
            raw["engine"], ledger=ledger, gate=gate, time_provider=time_provider
        )
        return cls(ledger=ledger, gate=gate, controller=controller)

    @staticmethod
    def exists(storage: StorageManager) -> bool:
        return storage.get("engine") is not None
