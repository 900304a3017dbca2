"""
PairSwap Pair Engine

Constant-product pair holding two assets:
  - Reserve store: two uint112 reserves + uint32 last-update timestamp
  - Price accumulator: UQ112x112 cumulative prices integrated over time
  - Liquidity mint / burn against an embedded claim-token ledger
  - Optimistic swap with an unconditional fee-adjusted invariant check
  - sync / skim recovery after direct asset donations

Security features:
  - Busy flag on every mutating call; re-entry fails immediately
  - Deltas come from custodied balances, never from caller-declared amounts
  - MINIMUM_LIQUIDITY claim tokens locked forever at first provision
  - Checked uint112 reserve writes (no silent wrap)
  - All-or-nothing: any failure restores the pair and both assets
"""

from __future__ import annotations

import dataclasses
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from pairswap.constants import (
    CLAIM_TOKEN_DECIMALS,
    CLAIM_TOKEN_NAME,
    CLAIM_TOKEN_SYMBOL,
    FEE_DENOMINATOR,
    FEE_NUMERATOR,
    MINIMUM_LIQUIDITY,
    ZERO_ADDRESS,
)
from pairswap.exceptions import (
    IdenticalAddressesError,
    InsufficientInputAmountError,
    InsufficientLiquidityBurnedError,
    InsufficientLiquidityError,
    InsufficientLiquidityMintedError,
    InsufficientOutputAmountError,
    InvalidRecipientError,
    KInvariantError,
    ReentrancyError,
    TransferFailedError,
    ValidationError,
    ZeroAddressError,
)
from pairswap.exchange import uq112
from pairswap.exchange.journal import atomic
from pairswap.tokens.ledger import FungibleLedger, Token, make_address

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def wall_clock() -> int:
    return int(time.time())


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class PairState:
    """
    Persisted fields of a pair.

    token0 < token1 (canonical ordering). Reserves are the engine's own
    bookkeeping as of the last update, not necessarily the custodied balance.
    """
    address: str
    token0: str
    token1: str
    reserve0: int = 0
    reserve1: int = 0
    block_timestamp_last: int = 0
    price0_cumulative_last: int = 0
    price1_cumulative_last: int = 0


@dataclass(frozen=True)
class SyncEvent:
    pair: str
    reserve0: int
    reserve1: int

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "Sync", "pair": self.pair,
                "reserve0": self.reserve0, "reserve1": self.reserve1}


@dataclass(frozen=True)
class MintEvent:
    pair: str
    sender: str
    amount0: int
    amount1: int
    to: str

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "Mint", "pair": self.pair, "sender": self.sender,
                "amount0": self.amount0, "amount1": self.amount1, "to": self.to}


@dataclass(frozen=True)
class BurnEvent:
    pair: str
    sender: str
    amount0: int
    amount1: int
    to: str

    def to_dict(self) -> Dict[str, Any]:
        return {"event": "Burn", "pair": self.pair, "sender": self.sender,
                "amount0": self.amount0, "amount1": self.amount1, "to": self.to}


@dataclass(frozen=True)
class SwapEvent:
    pair: str
    sender: str
    amount0_in: int
    amount1_in: int
    amount0_out: int
    amount1_out: int
    to: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Swap",
            "pair": self.pair,
            "sender": self.sender,
            "amount0In": self.amount0_in,
            "amount1In": self.amount1_in,
            "amount0Out": self.amount0_out,
            "amount1Out": self.amount1_out,
            "to": self.to,
        }


# ---------------------------------------------------------------------------
# Pair Engine
# ---------------------------------------------------------------------------

class Pair:
    """
    Single constant-product pair engine.

    Implements:
      - mint / burn of claim tokens against deposited assets
      - swap (optimistic transfer-out, then invariant check)
      - sync / skim
      - time-weighted price accumulation on every reserve update
      - reentrancy protection
    """

    def __init__(
        self,
        token0: Token,
        token1: Token,
        address: Optional[str] = None,
        factory: str = "",
        clock: Optional[Clock] = None,
    ):
        if token0.address == token1.address:
            raise IdenticalAddressesError("Pair assets must differ")
        if ZERO_ADDRESS in (token0.address, token1.address):
            raise ZeroAddressError("Pair asset cannot be the zero address")
        if token0.address > token1.address:
            raise ValidationError("Pair assets must be in canonical order (token0 < token1)")

        self.token0 = token0
        self.token1 = token1
        self.factory = factory
        self.state = PairState(
            address=address or make_address("pair", token0.address, token1.address),
            token0=token0.address,
            token1=token1.address,
        )
        self.lp = FungibleLedger(CLAIM_TOKEN_NAME, CLAIM_TOKEN_SYMBOL, CLAIM_TOKEN_DECIMALS)
        self._clock: Clock = clock or wall_clock
        self._locked: bool = False   # reentrancy guard
        self._events: List[Any] = []

    # -- Read-only views ----------------------------------------------------

    @property
    def address(self) -> str:
        return self.state.address

    @property
    def reserve0(self) -> int:
        return self.state.reserve0

    @property
    def reserve1(self) -> int:
        return self.state.reserve1

    @property
    def block_timestamp_last(self) -> int:
        return self.state.block_timestamp_last

    @property
    def price0_cumulative_last(self) -> int:
        return self.state.price0_cumulative_last

    @property
    def price1_cumulative_last(self) -> int:
        return self.state.price1_cumulative_last

    @property
    def is_locked(self) -> bool:
        return self._locked

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    def get_reserves(self) -> Tuple[int, int, int]:
        """(reserve0, reserve1, block_timestamp_last)."""
        return self.state.reserve0, self.state.reserve1, self.state.block_timestamp_last

    get_state = get_reserves

    def now(self) -> int:
        return self._clock()

    # -- Claim-token surface (delegates to the embedded ledger) -------------

    @property
    def total_supply(self) -> int:
        return self.lp.total_supply

    def balance_of(self, holder: str) -> int:
        return self.lp.balance_of(holder)

    def allowance(self, owner: str, spender: str) -> int:
        return self.lp.allowance(owner, spender)

    def approve(self, owner: str, spender: str, amount: int):
        return self.lp.approve(owner, spender, amount)

    def transfer(self, sender: str, recipient: str, amount: int):
        return self.lp.transfer(sender, recipient, amount)

    def transfer_from(self, spender: str, sender: str, recipient: str, amount: int):
        return self.lp.transfer_from(spender, sender, recipient, amount)

    # -- Reentrancy guard ---------------------------------------------------

    def _acquire_lock(self) -> None:
        if self._locked:
            logger.warning("Reentrant call rejected: pair %s is locked", self.address)
            raise ReentrancyError("locked")
        self._locked = True

    def _release_lock(self) -> None:
        self._locked = False

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        """Busy flag + all-or-nothing over the pair and both assets."""
        self._acquire_lock()
        try:
            with atomic(self, self.token0, self.token1):
                yield
        finally:
            self._release_lock()

    # -- Snapshot / restore -------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": dataclasses.replace(self.state),
            "lp": self.lp.snapshot(),
            "event_count": len(self._events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self.state = dataclasses.replace(snapshot["state"])
        self.lp.restore(snapshot["lp"])
        del self._events[snapshot["event_count"]:]

    # -- Internal -----------------------------------------------------------

    def _balances(self) -> Tuple[int, int]:
        return self.token0.balance_of(self.address), self.token1.balance_of(self.address)

    def _safe_transfer(self, token: Token, to: str, value: int) -> None:
        if not token.transfer(self.address, to, value):
            raise TransferFailedError(f"Transfer of {value} {token.symbol} to {to} failed")

    def _update(self, balance0: int, balance1: int, reserve0: int, reserve1: int) -> None:
        """Accumulate prices over the elapsed interval at the PRIOR reserves, then store balances."""
        balance0 = uq112.to_uint112(balance0)
        balance1 = uq112.to_uint112(balance1)

        block_timestamp = uq112.to_uint32(self._clock())
        elapsed = uq112.elapsed_uint32(block_timestamp, self.state.block_timestamp_last)
        if elapsed > 0 and reserve0 != 0 and reserve1 != 0:
            self.state.price0_cumulative_last = uq112.wrapping_add_uint256(
                self.state.price0_cumulative_last, uq112.fraction(reserve1, reserve0) * elapsed
            )
            self.state.price1_cumulative_last = uq112.wrapping_add_uint256(
                self.state.price1_cumulative_last, uq112.fraction(reserve0, reserve1) * elapsed
            )

        self.state.reserve0 = balance0
        self.state.reserve1 = balance1
        self.state.block_timestamp_last = block_timestamp

        event = SyncEvent(self.address, balance0, balance1)
        self._events.append(event)
        logger.debug("Sync: pair=%s reserve0=%d reserve1=%d", self.address, balance0, balance1)

    # -- Liquidity ----------------------------------------------------------

    def mint(self, to: str, sender: str = "") -> int:
        """
        Issue claim tokens for assets deposited since the last update.

        The caller must transfer both assets to the pair first.

        Returns:
            The claim amount issued to ``to``
        """
        with self._mutation():
            reserve0, reserve1, _ = self.get_reserves()
            balance0, balance1 = self._balances()
            amount0 = balance0 - reserve0
            amount1 = balance1 - reserve1
            if amount0 < 0 or amount1 < 0:
                raise InsufficientLiquidityMintedError("Custodied balance below reserves")

            total_supply = self.lp.total_supply
            if total_supply == 0:
                liquidity = uq112.isqrt(amount0 * amount1) - MINIMUM_LIQUIDITY
                if liquidity <= 0:
                    raise InsufficientLiquidityMintedError(
                        "Insufficient liquidity minted: sqrt(amount0*amount1) <= MINIMUM_LIQUIDITY"
                    )
                # Permanently locked; supply can never return to zero
                self.lp.mint(ZERO_ADDRESS, MINIMUM_LIQUIDITY)
            else:
                liquidity = min(
                    amount0 * total_supply // reserve0,
                    amount1 * total_supply // reserve1,
                )
                if liquidity <= 0:
                    raise InsufficientLiquidityMintedError(
                        f"Insufficient liquidity minted: {liquidity}"
                    )

            self.lp.mint(to, liquidity)
            self._update(balance0, balance1, reserve0, reserve1)

            self._events.append(MintEvent(self.address, sender, amount0, amount1, to))
            if total_supply == 0:
                logger.info(
                    "First liquidity on pair %s: amount0=%d amount1=%d liquidity=%d",
                    self.address, amount0, amount1, liquidity,
                )
            logger.debug(
                "Mint: pair=%s sender=%s amount0=%d amount1=%d liquidity=%d to=%s",
                self.address, sender, amount0, amount1, liquidity, to,
            )
            return liquidity

    def burn(self, to: str, sender: str = "") -> Tuple[int, int]:
        """
        Redeem the claim tokens held by the pair itself.

        The caller must transfer claim tokens to the pair first.

        Returns:
            (amount0, amount1) sent to ``to``
        """
        with self._mutation():
            reserve0, reserve1, _ = self.get_reserves()
            balance0, balance1 = self._balances()
            liquidity = self.lp.balance_of(self.address)

            total_supply = self.lp.total_supply
            if total_supply == 0:
                raise InsufficientLiquidityBurnedError("Pair has no liquidity")
            amount0 = liquidity * balance0 // total_supply
            amount1 = liquidity * balance1 // total_supply
            if amount0 <= 0 or amount1 <= 0:
                raise InsufficientLiquidityBurnedError(
                    f"Insufficient liquidity burned: ({amount0}, {amount1})"
                )

            self.lp.burn(self.address, liquidity)
            self._safe_transfer(self.token0, to, amount0)
            self._safe_transfer(self.token1, to, amount1)

            balance0, balance1 = self._balances()
            self._update(balance0, balance1, reserve0, reserve1)

            self._events.append(BurnEvent(self.address, sender, amount0, amount1, to))
            logger.debug(
                "Burn: pair=%s sender=%s liquidity=%d amount0=%d amount1=%d to=%s",
                self.address, sender, liquidity, amount0, amount1, to,
            )
            return amount0, amount1

    # -- Swap ---------------------------------------------------------------

    def swap(
        self,
        amount0_out: int,
        amount1_out: int,
        to: str,
        data: bytes = b"",
        sender: str = "",
    ) -> None:
        """
        Send the requested outputs to ``to``, then require payment.

        Outputs are transferred before inputs are known; the fee-adjusted
        product check on the re-read balances is what makes this safe.
        ``data`` is accepted but triggers no callback.

        Raises:
            InsufficientOutputAmountError: both outputs are zero
            InsufficientLiquidityError: an output is not below its reserve
            InsufficientInputAmountError: nothing was paid in
            KInvariantError: fee-adjusted product below the prior product
        """
        if amount0_out < 0 or amount1_out < 0:
            raise ValidationError("Output amounts cannot be negative")
        if amount0_out == 0 and amount1_out == 0:
            raise InsufficientOutputAmountError("Insufficient output amount")

        with self._mutation():
            reserve0, reserve1, _ = self.get_reserves()
            if amount0_out >= reserve0 or amount1_out >= reserve1:
                raise InsufficientLiquidityError(
                    f"Insufficient liquidity: out=({amount0_out}, {amount1_out}) "
                    f"reserves=({reserve0}, {reserve1})"
                )
            if to in (self.token0.address, self.token1.address):
                raise InvalidRecipientError(f"Invalid recipient {to}")

            # Optimistic transfers
            if amount0_out > 0:
                self._safe_transfer(self.token0, to, amount0_out)
            if amount1_out > 0:
                self._safe_transfer(self.token1, to, amount1_out)

            balance0, balance1 = self._balances()
            amount0_in = max(0, balance0 - (reserve0 - amount0_out))
            amount1_in = max(0, balance1 - (reserve1 - amount1_out))
            if amount0_in == 0 and amount1_in == 0:
                raise InsufficientInputAmountError("Insufficient input amount")

            balance0_adjusted = balance0 * FEE_DENOMINATOR - amount0_in * FEE_NUMERATOR
            balance1_adjusted = balance1 * FEE_DENOMINATOR - amount1_in * FEE_NUMERATOR
            if balance0_adjusted * balance1_adjusted < reserve0 * reserve1 * FEE_DENOMINATOR ** 2:
                raise KInvariantError("K")

            self._update(balance0, balance1, reserve0, reserve1)

            self._events.append(SwapEvent(
                self.address, sender, amount0_in, amount1_in, amount0_out, amount1_out, to,
            ))
            logger.debug(
                "Swap: pair=%s sender=%s in=(%d, %d) out=(%d, %d) to=%s",
                self.address, sender, amount0_in, amount1_in, amount0_out, amount1_out, to,
            )

    # -- Recovery -----------------------------------------------------------

    def skim(self, to: str) -> Tuple[int, int]:
        """Send custodied balances in excess of the reserves to ``to``."""
        with self._mutation():
            balance0, balance1 = self._balances()
            excess0 = balance0 - self.state.reserve0
            excess1 = balance1 - self.state.reserve1
            if excess0 > 0:
                self._safe_transfer(self.token0, to, excess0)
            if excess1 > 0:
                self._safe_transfer(self.token1, to, excess1)
            logger.debug("Skim: pair=%s excess=(%d, %d) to=%s", self.address, excess0, excess1, to)
            return max(excess0, 0), max(excess1, 0)

    def sync(self) -> None:
        """Force reserves to match custodied balances."""
        with self._mutation():
            balance0, balance1 = self._balances()
            self._update(balance0, balance1, self.state.reserve0, self.state.reserve1)

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "token0": self.state.token0,
            "token1": self.state.token1,
            "reserve0": self.state.reserve0,
            "reserve1": self.state.reserve1,
            "blockTimestampLast": self.state.block_timestamp_last,
            "price0CumulativeLast": self.state.price0_cumulative_last,
            "price1CumulativeLast": self.state.price1_cumulative_last,
            "totalSupply": self.lp.total_supply,
        }

    def __repr__(self) -> str:
        return (
            f"<Pair {self.token0.symbol}/{self.token1.symbol} "
            f"reserves=({self.state.reserve0}, {self.state.reserve1})>"
        )
