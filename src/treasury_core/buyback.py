"""
Buyback-and-burn: realised proceeds -> buyback asset -> destroyed supply.

The swap accepts any output (no minimum): the budget is already-realised
profit and buyback slippage is an accepted cost. Swap failures propagate so
the enclosing sell reverts as a whole.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from treasury_core.audit import BuybackExecuted
from treasury_core.contracts import NATIVE
from treasury_core.errors import InvalidConfiguration

if TYPE_CHECKING:
    from venue.interfaces import SwapVenue, TokenLedger

logger = logging.getLogger("treasury.buyback")


class BuybackBurner:
    def __init__(
        self,
        bank: TokenLedger,
        venue: SwapVenue,
        treasury: str,
        *,
        settlement_asset: str = NATIVE,
    ) -> None:
        self._bank = bank
        self._venue = venue
        self._treasury = treasury
        self._settlement = settlement_asset

    def execute(self, budget: int, asset: str, fee_tier: int, *, order_id: int = 0) -> BuybackExecuted:
        """Swap the whole budget into ``asset`` and burn everything received."""
        if budget <= 0:
            raise InvalidConfiguration(f"buyback budget must be positive, got {budget}")
        if not asset:
            raise InvalidConfiguration("buyback asset is not configured")

        before = self._bank.balance_of(self._treasury, asset)
        self._venue.swap_exact_input(self._treasury, self._settlement, asset, fee_tier, budget, 0)
        acquired = self._bank.balance_of(self._treasury, asset) - before

        burned = 0
        if acquired > 0:
            self._bank.burn(asset, self._treasury, acquired)
            burned = acquired
        logger.info("buyback order=%d budget=%d acquired=%d burned=%d %s", order_id, budget, acquired, burned, asset)
        return BuybackExecuted(order_id=order_id, asset=asset, budget=budget, acquired=acquired, burned=burned)
