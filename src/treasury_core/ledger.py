"""
Order ledger and state machine: open_and_buy -> close_and_sell.

Responsibilities:
    - Single active lane: at most one order in BUYING or SELLING
    - Exact-size acquisitions bounded by a slippage-inflated quote
    - Profit floor enforced on every sale (rounded up, never understated)
    - Caller incentives on both transitions, buyback-and-burn of sale proceeds
    - All-or-nothing: a failed call restores the ledger, the token ledger and
      every registered checkpoint participant to the state before the call

Audit records are staged during the unit of work and flushed only after it
commits.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Sequence

from treasury_core.atomic import Checkpointable, atomic
from treasury_core.audit import AuditTrail, EmergencyWithdrawal, OrderClosed, OrderOpened
from treasury_core.buyback import BuybackBurner
from treasury_core.contracts import (
    FEE_TIER_DENOMINATOR,
    NATIVE,
    BuyResult,
    Order,
    OrderStatus,
    SellResult,
    TreasuryBalances,
    TreasuryConfig,
)
from treasury_core.errors import (
    FillMismatch,
    InsufficientFunds,
    InsufficientProfit,
    InvalidConfiguration,
    InvalidOrderState,
    SlippageExceeded,
    Unauthorized,
)
from treasury_core.guard import CallGuard
from treasury_core.incentives import CallerIncentives, validate_reward
from treasury_core.pricing import buy_price, profit_floor, realized_profit, spend_ceiling, target_sell_price

if TYPE_CHECKING:
    from venue.interfaces import PriceQuoter, SwapVenue, TokenLedger

logger = logging.getLogger("treasury.ledger")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_config(config: TreasuryConfig, settlement_asset: str = NATIVE) -> None:
    """Range checks. Unset assets (empty strings) are allowed until an operation needs them."""
    if config.acquisition_size < 0:
        raise InvalidConfiguration(f"acquisition_size must be >= 0, got {config.acquisition_size}")
    if not 1 <= config.min_profit_percent <= 100:
        raise InvalidConfiguration(f"min_profit_percent must be in [1, 100], got {config.min_profit_percent}")
    for name in ("fee_tier", "buyback_fee_tier"):
        tier = getattr(config, name)
        if not 0 <= tier < FEE_TIER_DENOMINATOR:
            raise InvalidConfiguration(f"{name} must be in [0, {FEE_TIER_DENOMINATOR}), got {tier}")
    validate_reward(config.caller_reward)
    for name in ("target_asset", "buyback_asset"):
        if getattr(config, name) == settlement_asset:
            raise InvalidConfiguration(f"{name} cannot be the settlement currency")


@dataclass(frozen=True)
class LedgerState:
    """Persistable ledger state."""

    config: TreasuryConfig
    orders: tuple[Order, ...]
    next_order_id: int
    active_order_id: int


class TreasuryLedger:
    """Owns every Order for its lifetime; nothing else mutates an Order."""

    def __init__(
        self,
        config: TreasuryConfig,
        *,
        admin: str,
        treasury: str,
        bank: TokenLedger,
        venue: SwapVenue,
        quoter: PriceQuoter,
        burner: BuybackBurner | None = None,
        incentives: CallerIncentives | None = None,
        audit: AuditTrail | None = None,
        checkpoints: Sequence[Checkpointable] = (),
        settlement_asset: str = NATIVE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        validate_config(config, settlement_asset)
        self._config = config
        self._admin = admin
        self._treasury = treasury
        self._bank = bank
        self._venue = venue
        self._quoter = quoter
        self._settlement = settlement_asset
        self._burner = burner or BuybackBurner(bank, venue, treasury, settlement_asset=settlement_asset)
        self._incentives = incentives or CallerIncentives(bank, treasury, settlement_asset=settlement_asset)
        self._audit = audit if audit is not None else AuditTrail()
        self._checkpoints = tuple(checkpoints)
        self._clock = clock
        self._guard = CallGuard("treasury")

        self._orders: dict[int, Order] = {}
        self._next_order_id = 1
        self._active_order_id = 0

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    @property
    def config(self) -> TreasuryConfig:
        return self._config

    @property
    def admin(self) -> str:
        return self._admin

    @property
    def treasury(self) -> str:
        return self._treasury

    @property
    def audit(self) -> AuditTrail:
        return self._audit

    @property
    def next_order_id(self) -> int:
        """Pre-allocated id the next buy will open."""
        return self._next_order_id

    def get_order(self, order_id: int) -> Order | None:
        order = self._orders.get(order_id)
        return dataclasses.replace(order) if order else None

    def orders(self) -> list[Order]:
        return [dataclasses.replace(o) for _, o in sorted(self._orders.items())]

    def active_order(self) -> Order | None:
        return self.get_order(self._active_order_id) if self._active_order_id else None

    def balances(self) -> TreasuryBalances:
        cfg = self._config
        return TreasuryBalances(
            settlement=self._bank.balance_of(self._treasury, self._settlement),
            target_asset=self._bank.balance_of(self._treasury, cfg.target_asset) if cfg.target_asset else 0,
            buyback_asset=self._bank.balance_of(self._treasury, cfg.buyback_asset) if cfg.buyback_asset else 0,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open_and_buy(self, caller: str) -> BuyResult:
        """Acquire exactly ``acquisition_size`` of the target asset and open an order."""
        with self._guard.enter("open_and_buy"):
            with atomic(*self._participants()):
                result = self._open_and_buy(caller)
            self._audit.flush()
        return result

    def close_and_sell(self, order_id: int, caller: str) -> SellResult:
        """Sell the order's tokens above its profit floor, reward the caller, buy back and burn."""
        with self._guard.enter("close_and_sell"):
            with atomic(*self._participants()):
                result = self._close_and_sell(order_id, caller)
            self._audit.flush()
        return result

    def _open_and_buy(self, caller: str) -> BuyResult:
        cfg = self._config
        if not cfg.target_asset:
            raise InvalidConfiguration("target asset is not configured")
        if cfg.acquisition_size <= 0:
            raise InvalidConfiguration("acquisition size must be positive")
        if self._active_order_id:
            active = self._orders[self._active_order_id]
            raise InvalidOrderState(
                f"order {active.id} is {active.status.value}; it must complete before a new order opens"
            )

        estimate = self._quoter.estimate_input_for_exact_output(
            self._settlement, cfg.target_asset, cfg.fee_tier, cfg.acquisition_size
        )
        ceiling = spend_ceiling(estimate)
        available = self._bank.balance_of(self._treasury, self._settlement)
        if available < ceiling + cfg.caller_reward:
            raise InsufficientFunds(
                f"treasury holds {available}, needs {ceiling} spend ceiling + {cfg.caller_reward} reward"
            )

        order = Order(
            id=self._next_order_id,
            asset=cfg.target_asset,
            spend=0,
            token_amount=0,
            buy_price=0,
            target_sell_price=0,
            min_profit_percent=cfg.min_profit_percent,
            fee_tier=cfg.fee_tier,
            buy_timestamp=self._clock(),
        )
        self._orders[order.id] = order
        self._active_order_id = order.id

        settlement_before = self._bank.balance_of(self._treasury, self._settlement)
        tokens_before = self._bank.balance_of(self._treasury, cfg.target_asset)
        self._venue.swap_exact_output(
            self._treasury, self._settlement, cfg.target_asset, cfg.fee_tier, cfg.acquisition_size, ceiling
        )
        tokens_received = self._bank.balance_of(self._treasury, cfg.target_asset) - tokens_before
        spend = settlement_before - self._bank.balance_of(self._treasury, self._settlement)
        if tokens_received != cfg.acquisition_size:
            raise FillMismatch(f"requested {cfg.acquisition_size} {cfg.target_asset}, received {tokens_received}")

        order.spend = spend
        order.token_amount = tokens_received
        order.buy_price = buy_price(spend, tokens_received)
        order.target_sell_price = target_sell_price(order.buy_price, order.min_profit_percent)
        order.status = OrderStatus.SELLING
        self._next_order_id = order.id + 1

        reward = self._incentives.pay(caller, cfg.caller_reward)
        self._audit.stage(
            OrderOpened(
                order_id=order.id,
                asset=order.asset,
                spend=spend,
                tokens_received=tokens_received,
                buy_price=order.buy_price,
                caller=caller,
                reward=reward,
            )
        )
        logger.info(
            "order %d opened: spent %d for %d %s (buy_price=%d, ceiling=%d)",
            order.id, spend, tokens_received, order.asset, order.buy_price, ceiling,
        )
        return BuyResult(order=dataclasses.replace(order), spend=spend, tokens_received=tokens_received, reward_paid=reward)

    def _close_and_sell(self, order_id: int, caller: str) -> SellResult:
        cfg = self._config
        if not cfg.buyback_asset:
            raise InvalidConfiguration("buyback asset is not configured")
        order = self._orders.get(order_id)
        if order is None:
            raise InvalidOrderState(f"order {order_id} does not exist")
        if order.status != OrderStatus.SELLING:
            raise InvalidOrderState(f"order {order_id} is {order.status.value}, expected SELLING")

        floor = profit_floor(order.spend, order.min_profit_percent)
        before = self._bank.balance_of(self._treasury, self._settlement)
        try:
            self._venue.swap_exact_input(
                self._treasury, order.asset, self._settlement, order.fee_tier, order.token_amount, floor
            )
        except SlippageExceeded as exc:
            raise InsufficientProfit(f"order {order_id}: sale cannot clear profit floor {floor}") from exc
        proceeds = self._bank.balance_of(self._treasury, self._settlement) - before
        if proceeds < floor:
            raise InsufficientProfit(f"order {order_id}: proceeds {proceeds} below profit floor {floor}")

        profit = realized_profit(proceeds, order.spend)
        order.proceeds = proceeds
        order.profit = profit
        order.sell_timestamp = self._clock()
        order.status = OrderStatus.SUCCESS
        self._active_order_id = 0

        reward, budget = self._incentives.split(proceeds, cfg.caller_reward)
        self._audit.stage(
            OrderClosed(order_id=order.id, proceeds=proceeds, profit=profit, caller=caller, reward=reward)
        )
        burned = 0
        if budget > 0:
            buyback = self._burner.execute(budget, cfg.buyback_asset, cfg.buyback_fee_tier, order_id=order.id)
            burned = buyback.burned
            self._audit.stage(buyback)
        reward_paid = self._incentives.pay(caller, reward)

        logger.info(
            "order %d closed: proceeds=%d profit=%d reward=%d buyback=%d burned=%d",
            order.id, proceeds, profit, reward_paid, budget, burned,
        )
        return SellResult(
            order=dataclasses.replace(order),
            proceeds=proceeds,
            profit=profit,
            reward_paid=reward_paid,
            buyback_budget=budget,
            burned=burned,
        )

    # ------------------------------------------------------------------
    # Administrative surface
    # ------------------------------------------------------------------

    def _require_admin(self, caller: str) -> None:
        if caller != self._admin:
            raise Unauthorized(f"{caller} is not the treasury administrator")

    def update_config(self, caller: str, **changes: Any) -> TreasuryConfig:
        """Replace configuration fields. Applies to the next order, never to open ones."""
        self._require_admin(caller)
        try:
            updated = dataclasses.replace(self._config, **changes)
        except TypeError as exc:
            raise InvalidConfiguration(str(exc)) from exc
        validate_config(updated, self._settlement)
        self._config = updated
        logger.info("config updated by %s: %s", caller, changes)
        return updated

    def emergency_withdraw(
        self,
        caller: str,
        asset: str,
        amount: int | None = None,
        recipient: str | None = None,
    ) -> int:
        """Move held funds out of the treasury. ``amount=None`` withdraws everything held."""
        self._require_admin(caller)
        with self._guard.enter("emergency_withdraw"):
            held = self._bank.balance_of(self._treasury, asset)
            if amount is None:
                if held == 0:
                    raise InsufficientFunds(f"treasury holds no {asset}")
                amount = held
            elif amount <= 0:
                raise InvalidConfiguration(f"withdrawal amount must be positive, got {amount}")
            if amount > held:
                raise InsufficientFunds(f"treasury holds {held} {asset}, cannot withdraw {amount}")
            recipient = recipient or self._admin
            with atomic(*self._participants()):
                self._bank.transfer(asset, self._treasury, recipient, amount)
                self._audit.stage(EmergencyWithdrawal(asset=asset, amount=amount, recipient=recipient))
            self._audit.flush()
        logger.warning("emergency withdrawal of %d %s to %s", amount, asset, recipient)
        return amount

    # ------------------------------------------------------------------
    # Checkpointing and persistence
    # ------------------------------------------------------------------

    def _participants(self) -> tuple[Checkpointable, ...]:
        return (self, self._bank, self._audit, *self._checkpoints)

    def snapshot(self) -> Any:
        return self.state()

    def restore(self, state: Any) -> None:
        self.load(state)

    def state(self) -> LedgerState:
        return LedgerState(
            config=self._config,
            orders=tuple(self.orders()),
            next_order_id=self._next_order_id,
            active_order_id=self._active_order_id,
        )

    def load(self, state: LedgerState) -> None:
        validate_config(state.config, self._settlement)
        active = [o.id for o in state.orders if o.is_active]
        if len(active) > 1:
            raise InvalidOrderState(f"more than one active order in persisted state: {active}")
        self._config = state.config
        self._orders = {o.id: dataclasses.replace(o) for o in state.orders}
        self._next_order_id = state.next_order_id
        self._active_order_id = state.active_order_id
