"""
Fungible Ledger & Asset Token

Implements the plain fungible-token ledger used on both sides of a pair:
  - FungibleLedger : balances, allowances, supply, mint / burn / transfer
  - Token          : an addressable asset exposing the transfer interface
                     the pair engine consumes (balance_of, transfer, transfer_from)

The pair engine embeds its own FungibleLedger for claim (LP) tokens rather
than inheriting from it.
"""

import hashlib
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..constants import ZERO_ADDRESS
from ..exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    ValidationError,
)
from ..logger import get_logger

logger = get_logger(__name__)


def make_address(*parts: str) -> str:
    """Deterministic 20-byte hex address derived from ``parts``."""
    raw = ":".join(parts).encode()
    return "0x" + hashlib.blake2b(raw, digest_size=20).hexdigest()


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransferEvent:
    """Emitted on every successful transfer, mint (from zero) and burn (to zero)."""
    token_symbol: str
    sender: str
    recipient: str
    amount: int
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Transfer",
            "token": self.token_symbol,
            "from": self.sender,
            "to": self.recipient,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ApprovalEvent:
    """Emitted on every successful approve."""
    token_symbol: str
    owner: str
    spender: str
    amount: int
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Approval",
            "token": self.token_symbol,
            "owner": self.owner,
            "spender": self.spender,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }


# ══════════════════════════════════════════════════════════════════════
#  LEDGER
# ══════════════════════════════════════════════════════════════════════

class FungibleLedger:
    """
    Integer balance ledger with ERC-20 semantics.

        - balance_of(holder) -> int
        - transfer(sender, recipient, amount)
        - approve(owner, spender, amount)
        - transfer_from(spender, sender, recipient, amount)
        - mint(recipient, amount) / burn(holder, amount)
        - total_supply -> int

    Invariant: the sum of all balances equals total_supply.
    """

    def __init__(self, name: str, symbol: str, decimals: int = 18):
        if not name:
            raise ValidationError("Token name cannot be empty")
        if not symbol:
            raise ValidationError("Token symbol cannot be empty")
        if decimals < 0 or decimals > 18:
            raise ValidationError(f"Decimals must be 0-18, got {decimals}")

        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)
        self._events: List[Any] = []

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    def holders(self) -> List[str]:
        return [h for h, b in self._balances.items() if b > 0]

    # ── Guards ────────────────────────────────────────────────────────

    @staticmethod
    def _require_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise ValidationError(f"Amount must be an integer, got {type(amount).__name__}")
        if amount < 0:
            raise ValidationError(f"Amount cannot be negative: {amount}")

    # ── Supply changes ────────────────────────────────────────────────

    def mint(self, recipient: str, amount: int) -> TransferEvent:
        self._require_amount(amount)
        self._total_supply += amount
        self._balances[recipient] = self.balance_of(recipient) + amount

        event = TransferEvent(self.symbol, ZERO_ADDRESS, recipient, amount)
        self._events.append(event)
        logger.debug(f"Mint: {amount} {self.symbol} → {recipient}")
        return event

    def burn(self, holder: str, amount: int) -> TransferEvent:
        self._require_amount(amount)
        bal = self.balance_of(holder)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{holder} balance {bal} < burn amount {amount}"
            )
        self._balances[holder] = bal - amount
        self._total_supply -= amount

        event = TransferEvent(self.symbol, holder, ZERO_ADDRESS, amount)
        self._events.append(event)
        logger.debug(f"Burn: {holder} burned {amount} {self.symbol}")
        return event

    # ── Core ERC-20 operations ────────────────────────────────────────

    def transfer(self, sender: str, recipient: str, amount: int) -> TransferEvent:
        self._require_amount(amount)
        self._move(sender, recipient, amount)

        event = TransferEvent(self.symbol, sender, recipient, amount)
        self._events.append(event)
        logger.debug(f"Transfer: {sender} → {recipient} {amount} {self.symbol}")
        return event

    def approve(self, owner: str, spender: str, amount: int) -> ApprovalEvent:
        self._require_amount(amount)
        self._allowances[(owner, spender)] = amount

        event = ApprovalEvent(self.symbol, owner, spender, amount)
        self._events.append(event)
        logger.debug(f"Approve: {owner} → {spender} allowance={amount} {self.symbol}")
        return event

    def transfer_from(
        self,
        spender: str,
        sender: str,
        recipient: str,
        amount: int,
    ) -> TransferEvent:
        """Transfer on behalf of *sender* using spender's allowance."""
        self._require_amount(amount)

        allow = self.allowance(sender, spender)
        if spender != sender and allow < amount:
            raise InsufficientAllowanceError(
                f"Allowance {allow} < transfer amount {amount}"
            )

        self._move(sender, recipient, amount)
        if spender != sender:
            self._allowances[(sender, spender)] = allow - amount

        event = TransferEvent(self.symbol, sender, recipient, amount)
        self._events.append(event)
        logger.debug(
            f"transferFrom: spender={spender} {sender} → {recipient} {amount} {self.symbol}"
        )
        return event

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        bal = self.balance_of(sender)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < transfer amount {amount}"
            )
        self._balances[sender] = bal - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

    # ── Snapshot / restore ────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        return {
            "total_supply": self._total_supply,
            "balances": dict(self._balances),
            "allowances": dict(self._allowances),
            "event_count": len(self._events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._total_supply = snapshot["total_supply"]
        self._balances = dict(snapshot["balances"])
        self._allowances = dict(snapshot["allowances"])
        del self._events[snapshot["event_count"]:]

    def __repr__(self) -> str:
        return f"<FungibleLedger {self.symbol} supply={self._total_supply}>"


# ══════════════════════════════════════════════════════════════════════
#  ASSET TOKEN
# ══════════════════════════════════════════════════════════════════════

class Token(FungibleLedger):
    """
    An addressable fungible asset.

    ``address`` is the asset identifier used for canonical pair ordering.
    It defaults to a deterministic hash of name and symbol.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        decimals: int = 18,
        total_supply: int = 0,
        deployer: str = "",
        address: Optional[str] = None,
    ):
        super().__init__(name, symbol, decimals)
        if total_supply < 0:
            raise ValidationError("Total supply cannot be negative")
        self.address = address if address is not None else make_address("token", name, symbol)
        self.deployer = deployer

        # Credit deployer with initial supply
        if total_supply > 0 and deployer:
            self.mint(deployer, total_supply)

        logger.info(f"Token deployed: {symbol} ({name}) at {self.address}, supply={total_supply}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "address": self.address,
            "totalSupply": self._total_supply,
            "deployer": self.deployer,
            "holders": len(self.holders()),
        }

    def __repr__(self) -> str:
        return f"<Token {self.symbol} {self.address[:10]} supply={self._total_supply}>"
