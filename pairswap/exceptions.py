"""
PairSwap Exceptions

Custom exception classes for the pair engine and its collaborators.
Every failure unwinds the whole operation; none is retried internally.
"""


class PairSwapError(Exception):
    """Base exception for PairSwap."""
    pass


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

class ValidationError(PairSwapError):
    """Caller-supplied input is invalid."""
    pass


class IdenticalAddressesError(ValidationError):
    """Both assets of a pair are the same."""
    pass


class ZeroAddressError(ValidationError):
    """An asset identifier is the null address."""
    pass


class InsufficientAmountError(ValidationError):
    """A quoted amount is zero."""
    pass


class InsufficientInputAmountError(ValidationError):
    """Nothing was paid in, or an input amount is zero."""
    pass


class InsufficientOutputAmountError(ValidationError):
    """Requested or achievable output is zero or below the caller's minimum."""
    pass


class InsufficientLiquidityError(ValidationError):
    """Reserves are empty or a requested output would drain them."""
    pass


class ExcessiveInputAmountError(ValidationError):
    """Required input exceeds the caller's maximum."""
    pass


class InvalidPathError(ValidationError):
    """Swap path is too short or malformed."""
    pass


class PairNotFoundError(InvalidPathError):
    """No pair is registered for an asset pair."""
    pass


class PairExistsError(ValidationError):
    """A pair is already registered for an asset pair."""
    pass


class InvalidRecipientError(ValidationError):
    """Output recipient is one of the pair's assets."""
    pass


class ExpiredError(ValidationError):
    """The caller's deadline has passed."""
    pass


class OrderError(ValidationError):
    """Order book request is invalid (unknown order, not owner, inactive)."""
    pass


# ---------------------------------------------------------------------------
# Liquidity math
# ---------------------------------------------------------------------------

class LiquidityMathError(PairSwapError):
    """Computed claim amount is not positive."""
    pass


class InsufficientLiquidityMintedError(LiquidityMathError):
    pass


class InsufficientLiquidityBurnedError(LiquidityMathError):
    pass


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------

class InvariantError(PairSwapError):
    """An engine invariant would be violated."""
    pass


class KInvariantError(InvariantError):
    """Fee-adjusted post-trade product is below the pre-trade product."""
    pass


class ReserveOverflowError(InvariantError):
    """A balance does not fit the fixed-width reserve slot."""
    pass


# ---------------------------------------------------------------------------
# External transfers
# ---------------------------------------------------------------------------

class TransferError(PairSwapError):
    """An asset transfer failed."""
    pass


class TransferFailedError(TransferError):
    """The asset reported failure."""
    pass


class InsufficientBalanceError(TransferError):
    """Sender balance is too low."""
    pass


class InsufficientAllowanceError(TransferError):
    """Spender allowance is too low."""
    pass


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class ReentrancyError(PairSwapError):
    """A mutating call arrived while the pair was busy."""
    pass


# ---------------------------------------------------------------------------
# TWAP guard
# ---------------------------------------------------------------------------

class OracleError(PairSwapError):
    """Base exception for TWAP guard failures."""
    pass


class NoObservationError(OracleError):
    pass


class TimeNotAdvancedError(OracleError):
    pass


class WindowNotElapsedError(OracleError):
    pass


class ZeroPriceDeltaError(OracleError):
    pass
