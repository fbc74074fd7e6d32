"""
treasury-core: order ledger, buyback-and-burn, caller incentives, fee hook.

No file or network I/O. Collaborators (token ledger, quoter, swap venue) are
injected; see the ``venue`` package for the protocols and paper implementations.
"""

from treasury_core.audit import AuditRecord, AuditTrail
from treasury_core.buyback import BuybackBurner
from treasury_core.contracts import (
    NATIVE,
    BuyResult,
    FeeHookConfig,
    Order,
    OrderStatus,
    SellResult,
    TreasuryBalances,
    TreasuryConfig,
)
from treasury_core.errors import TreasuryError
from treasury_core.fee_hook import FeeExtractionHook
from treasury_core.incentives import CallerIncentives
from treasury_core.ledger import LedgerState, TreasuryLedger

__all__ = [
    "NATIVE",
    "AuditRecord",
    "AuditTrail",
    "BuyResult",
    "BuybackBurner",
    "CallerIncentives",
    "FeeExtractionHook",
    "FeeHookConfig",
    "LedgerState",
    "Order",
    "OrderStatus",
    "SellResult",
    "TreasuryBalances",
    "TreasuryConfig",
    "TreasuryError",
    "TreasuryLedger",
]
