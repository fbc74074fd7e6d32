"""
Fee-extraction hook: taxes the output leg of swaps on a governed pool.

Called by the venue right after a swap settles, with the swapper-side
BalanceDelta (negative = paid in, positive = received):

    output currency = currency1 if zero_for_one else currency0
    fee             = |output delta| * fee_percent // FEE_DENOMINATOR

The fee is taken out of the pool before the swapper is paid, converted to the
settlement currency through the same pool when needed, and forwarded to the
fee recipient with a strict-success transfer. A governed pool must pair with
the settlement currency; the venue checks this through ``validate_pool`` when
the pool is created or restored.

The returned adjustment tells the venue how much to deduct from the
swapper's payout.

Swaps sent by the hook itself (its own conversion) are not taxed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from treasury_core.audit import AuditTrail, FeeWithheld
from treasury_core.contracts import (
    AFTER_SWAP_ACK,
    FEE_DENOMINATOR,
    NATIVE,
    BalanceDelta,
    FeeHookConfig,
    PoolKey,
    SwapParams,
    is_zero_address,
)
from treasury_core.errors import InvalidConfiguration, Unauthorized
from treasury_core.guard import CallGuard

if TYPE_CHECKING:
    from venue.interfaces import SwapVenue, TokenLedger

logger = logging.getLogger("treasury.hook")


def output_leg(key: PoolKey, params: SwapParams, delta: BalanceDelta) -> tuple[str, int]:
    """(currency, delta) of the side the swapper received."""
    if params.zero_for_one:
        return key.currency1, delta.amount1
    return key.currency0, delta.amount0


def withheld_amount(output_delta: int, fee_percent: int) -> int:
    return abs(output_delta) * fee_percent // FEE_DENOMINATOR


class FeeExtractionHook:
    def __init__(
        self,
        address: str,
        *,
        bank: TokenLedger,
        venue: SwapVenue,
        config: FeeHookConfig,
        settlement_asset: str = NATIVE,
        audit: AuditTrail | None = None,
    ) -> None:
        if not 0 <= config.fee_percent <= FEE_DENOMINATOR:
            raise InvalidConfiguration(f"fee_percent must be in [0, {FEE_DENOMINATOR}], got {config.fee_percent}")
        if is_zero_address(config.fee_recipient):
            raise InvalidConfiguration("fee recipient cannot be the zero address")
        self.address = address
        self._bank = bank
        self._venue = venue
        self._fee_percent = config.fee_percent
        self._fee_recipient = config.fee_recipient
        self._settlement = settlement_asset
        self._audit = audit if audit is not None else AuditTrail()
        self._guard = CallGuard(f"hook {address}")

    @property
    def fee_percent(self) -> int:
        return self._fee_percent

    @property
    def fee_recipient(self) -> str:
        return self._fee_recipient

    @property
    def audit(self) -> AuditTrail:
        return self._audit

    def set_fee_recipient(self, caller: str, new_recipient: str) -> None:
        """Single-step handover; only the current recipient may call it."""
        if caller != self._fee_recipient:
            raise Unauthorized(f"{caller} is not the current fee recipient")
        if is_zero_address(new_recipient):
            raise InvalidConfiguration("fee recipient cannot be the zero address")
        logger.info("fee recipient changed from %s to %s", self._fee_recipient, new_recipient)
        self._fee_recipient = new_recipient

    def validate_pool(self, key: PoolKey) -> None:
        if self._settlement not in (key.currency0, key.currency1):
            raise InvalidConfiguration(
                f"hooked pool {key.pair_id} does not pair with settlement asset {self._settlement}"
            )

    def after_swap(self, sender: str, key: PoolKey, params: SwapParams, delta: BalanceDelta) -> tuple[str, int]:
        if sender == self.address:
            return AFTER_SWAP_ACK, 0

        currency, output_delta = output_leg(key, params, delta)
        fee = withheld_amount(output_delta, self._fee_percent)
        if fee == 0:
            return AFTER_SWAP_ACK, 0

        with self._guard.enter("after_swap"):
            self._venue.take(key, currency, self.address, fee)
            if currency == self._settlement:
                forwarded = fee
            else:
                before = self._bank.balance_of(self.address, self._settlement)
                self._venue.swap_exact_input(self.address, currency, self._settlement, key.fee, fee, 0)
                forwarded = self._bank.balance_of(self.address, self._settlement) - before
            if forwarded > 0:
                self._bank.transfer(self._settlement, self.address, self._fee_recipient, forwarded)

        self._audit.stage(
            FeeWithheld(
                pool=key.pair_id,
                currency=currency,
                fee_amount=fee,
                forwarded=forwarded,
                recipient=self._fee_recipient,
            )
        )
        logger.info("withheld %d %s on %s, forwarded %d %s", fee, currency, key.pair_id, forwarded, self._settlement)
        return AFTER_SWAP_ACK, fee
