"""
Asset ledger interface and an in-memory fungible token ledger.

The vesting engine only needs two calls from the ledger that holds its
funds: ``balance_of`` and ``transfer``. ``TokenLedger`` is a small
balance book that satisfies that interface for local deployments, the CLI
and tests. It is deliberately not a token standard: no allowances, no
permits, no metadata beyond name/symbol/decimals.

Security features:
- uint256 bounds on every amount
- Zero address checks
- Balance underflow prevention
- Optional recipient hooks, invoked after balances settle, for modelling
  contracts that call back into their payer
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Protocol, runtime_checkable

from ..core.exceptions import LedgerError
from ..core.safe_math import UINT256_MAX
from .identity import ZERO_ADDRESS, normalize_address

logger = logging.getLogger(__name__)

ReceiveHook = Callable[[str, int], None]


@runtime_checkable
class AssetLedger(Protocol):
    """What the vesting engine requires from the ledger holding its funds."""

    def balance_of(self, holder: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...


@dataclass
class TokenEvent:
    """Represents a ledger transfer."""

    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class TokenLedger:
    """
    In-memory fungible token balances.

    Balances are plain integers in the token's smallest unit.
    """

    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0

    # Owner (for minting permissions)
    owner: str = ""

    balances: Dict[str, int] = field(default_factory=dict)
    events: List[TokenEvent] = field(default_factory=list)

    # Recipient address -> callback(sender, amount); not persisted
    receive_hooks: Dict[str, ReceiveHook] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.owner = normalize_address(self.owner)

    # ==================== View Functions ====================

    def balance_of(self, holder: str) -> int:
        return self.balances.get(normalize_address(holder), 0)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move ``amount`` from sender to recipient.

        Returns:
            True if successful

        Raises:
            LedgerError: If the transfer is invalid
        """
        sender_norm = normalize_address(sender)
        recipient_norm = normalize_address(recipient)

        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)

        sender_balance = self.balances.get(sender_norm, 0)
        if sender_balance < amount:
            raise LedgerError(
                f"Ledger: transfer amount exceeds balance "
                f"({amount} > {sender_balance})"
            )

        # A failing recipient hook undoes the whole transfer, nested ones included
        balances_before = dict(self.balances)
        events_before = len(self.events)
        supply_before = self.total_supply

        self.balances[sender_norm] = sender_balance - amount
        self.balances[recipient_norm] = self.balances.get(recipient_norm, 0) + amount
        self.events.append(TokenEvent(sender_norm, recipient_norm, amount))

        logger.debug(
            "Ledger transfer",
            extra={
                "event": "ledger.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            },
        )

        hook = self.receive_hooks.get(recipient_norm)
        if hook is not None:
            try:
                hook(sender_norm, amount)
            except Exception:
                self.balances = balances_before
                del self.events[events_before:]
                self.total_supply = supply_before
                raise

        return True

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """
        Mint new tokens (owner only).

        Raises:
            LedgerError: If minting fails
        """
        if normalize_address(minter) != self.owner:
            raise LedgerError("Ledger: caller is not owner")

        to_norm = normalize_address(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)
        if self.total_supply + amount > UINT256_MAX:
            raise LedgerError("Ledger: mint would exceed uint256 supply")

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self.events.append(TokenEvent(ZERO_ADDRESS, to_norm, amount))

        logger.info(
            "Ledger mint",
            extra={
                "event": "ledger.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            },
        )
        return True

    def register_receive_hook(self, recipient: str, hook: ReceiveHook) -> None:
        self.receive_hooks[normalize_address(recipient)] = hook

    # ==================== Helpers ====================

    def _validate_address(self, address: str, field: str) -> None:
        if address == ZERO_ADDRESS or not address:
            raise LedgerError(f"Ledger: {field} is zero address")

    def _validate_amount(self, amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise LedgerError("Ledger: amount must be an integer")
        if amount < 0:
            raise LedgerError("Ledger: amount cannot be negative")
        if amount > UINT256_MAX:
            raise LedgerError("Ledger: amount exceeds uint256")

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": str(self.total_supply),
            "owner": self.owner,
            "balances": {k: str(v) for k, v in self.balances.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenLedger":
        return cls(
            name=data["name"],
            symbol=data["symbol"],
            decimals=data.get("decimals", 18),
            total_supply=int(data.get("total_supply", 0)),
            owner=data.get("owner", ""),
            balances={k: int(v) for k, v in data.get("balances", {}).items()},
        )
