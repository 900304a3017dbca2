"""
PairSwap Token Ledger

Provides:
  - FungibleLedger : integer balance ledger (ERC-20 semantics)
  - Token          : addressable asset consumed by the pair engine
"""

from .ledger import (
    FungibleLedger,
    Token,
    TransferEvent,
    ApprovalEvent,
    make_address,
)

__all__ = [
    "FungibleLedger",
    "Token",
    "TransferEvent",
    "ApprovalEvent",
    "make_address",
]
