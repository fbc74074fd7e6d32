"""
Data contracts for treasury-core: Order, TreasuryConfig, FeeHookConfig, pool primitives.

treasury-core consumes quotes and swap results from the venue layer and
produces Order state plus audit records. No I/O; these are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

NATIVE = "native"
ZERO_ADDRESS = "0x" + "0" * 40

PRICE_SCALE = 10**18
BUY_SLIPPAGE_PERCENT = 3
MAX_CALLER_REWARD = 10**17
FEE_DENOMINATOR = 100_000
FEE_TIER_DENOMINATOR = 1_000_000
AFTER_SWAP_ACK = "after_swap"


def is_zero_address(address: str | None) -> bool:
    return not address or address == ZERO_ADDRESS


# ---------------------------------------------------------------------------
# Order lifecycle
# ---------------------------------------------------------------------------


class OrderStatus(str, Enum):
    """Linear order lifecycle: BUYING -> SELLING -> SUCCESS."""

    BUYING = "BUYING"
    SELLING = "SELLING"
    SUCCESS = "SUCCESS"


@dataclass
class Order:
    """One buy-hold-sell cycle. Owned exclusively by the ledger."""

    id: int
    asset: str
    spend: int
    token_amount: int
    buy_price: int
    target_sell_price: int
    min_profit_percent: int
    fee_tier: int
    buy_timestamp: datetime
    status: OrderStatus = OrderStatus.BUYING
    sell_timestamp: datetime | None = None
    proceeds: int = 0
    profit: int = 0

    @property
    def is_active(self) -> bool:
        return self.status in (OrderStatus.BUYING, OrderStatus.SELLING)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TreasuryConfig:
    """Treasury trading parameters. Replaced wholesale on update, never mutated."""

    target_asset: str
    acquisition_size: int
    min_profit_percent: int
    fee_tier: int
    caller_reward: int
    buyback_asset: str
    buyback_fee_tier: int


@dataclass(frozen=True)
class FeeHookConfig:
    fee_percent: int
    fee_recipient: str


@dataclass(frozen=True)
class TreasuryBalances:
    """Aggregate holdings of the treasury address."""

    settlement: int
    target_asset: int
    buyback_asset: int


# ---------------------------------------------------------------------------
# Pool primitives (swapper-perspective sign convention)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PoolKey:
    """Identifies a pool: sorted currency pair, fee tier, optional hook address."""

    currency0: str
    currency1: str
    fee: int
    hook: str | None = None

    def __post_init__(self) -> None:
        if self.currency0 >= self.currency1:
            raise ValueError(f"currencies must be sorted and distinct: {self.currency0!r}, {self.currency1!r}")

    @classmethod
    def for_pair(cls, asset_a: str, asset_b: str, fee: int, hook: str | None = None) -> PoolKey:
        c0, c1 = sorted((asset_a, asset_b))
        return cls(c0, c1, fee, hook)

    @property
    def pair_id(self) -> str:
        return f"{self.currency0}/{self.currency1}@{self.fee}"


@dataclass(frozen=True)
class SwapParams:
    """amount_specified < 0 means exact input, > 0 means exact output."""

    zero_for_one: bool
    amount_specified: int

    @property
    def exact_input(self) -> bool:
        return self.amount_specified < 0


@dataclass(frozen=True)
class BalanceDelta:
    """Net change per pool currency from the swapper's side: negative paid, positive received."""

    amount0: int
    amount1: int


@dataclass(frozen=True)
class BuyResult:
    order: Order
    spend: int
    tokens_received: int
    reward_paid: int


@dataclass(frozen=True)
class SellResult:
    order: Order
    proceeds: int
    profit: int
    reward_paid: int
    buyback_budget: int
    burned: int
