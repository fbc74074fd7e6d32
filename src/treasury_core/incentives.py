"""
Caller incentive distributor.

Pays a flat, administrator-configured reward in settlement currency to
whoever triggers a buy or sell. On sell the reward is capped at proceeds.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from treasury_core.contracts import MAX_CALLER_REWARD, NATIVE
from treasury_core.errors import InvalidConfiguration, RewardTransferFailed, TransferFailed

if TYPE_CHECKING:
    from venue.interfaces import TokenLedger

logger = logging.getLogger("treasury.incentives")


def validate_reward(amount: int) -> None:
    if amount < 0 or amount > MAX_CALLER_REWARD:
        raise InvalidConfiguration(f"caller reward must be in [0, {MAX_CALLER_REWARD}], got {amount}")


def split_proceeds(proceeds: int, configured_reward: int) -> tuple[int, int]:
    """Return (caller_reward, buyback_budget) for a sale."""
    reward = min(proceeds, configured_reward)
    return reward, proceeds - reward


class CallerIncentives:
    """Stateless with respect to orders; only moves the amounts handed to it."""

    def __init__(self, bank: TokenLedger, treasury: str, *, settlement_asset: str = NATIVE) -> None:
        self._bank = bank
        self._treasury = treasury
        self._settlement = settlement_asset

    def split(self, proceeds: int, configured_reward: int) -> tuple[int, int]:
        return split_proceeds(proceeds, configured_reward)

    def pay(self, caller: str, amount: int) -> int:
        """Transfer ``amount`` to ``caller``. Raises RewardTransferFailed if the leg fails."""
        validate_reward(amount)
        if amount == 0:
            return 0
        try:
            self._bank.transfer(self._settlement, self._treasury, caller, amount)
        except TransferFailed as exc:
            raise RewardTransferFailed(f"reward of {amount} to {caller} failed: {exc}") from exc
        logger.info("paid caller reward %d to %s", amount, caller)
        return amount
