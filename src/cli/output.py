"""
Human-readable treasury output for the terminal.

Every CLI command uses these formatters. The journal receives the same data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from treasury_core.contracts import PRICE_SCALE, Order, TreasuryBalances, TreasuryConfig
from treasury_core.pricing import profit_floor

if TYPE_CHECKING:
    from treasury_core.contracts import BuyResult, SellResult
    from venue.paper_venue import Pool

UNIT = 10**18


def fmt_amount(amount: int) -> str:
    """Render an 18-decimal integer amount with up to 6 fractional digits."""
    whole, frac = divmod(abs(amount), UNIT)
    sign = "-" if amount < 0 else ""
    frac_str = f"{frac:018d}"[:6].rstrip("0")
    return f"{sign}{whole:,}.{frac_str}" if frac_str else f"{sign}{whole:,}"


def fmt_price(price: int) -> str:
    return f"{price / PRICE_SCALE:.8f}"


def format_config(cfg: TreasuryConfig) -> str:
    lines = [
        "--- Treasury Config ---",
        f"Target asset   : {cfg.target_asset or '(unset)'}  fee tier {cfg.fee_tier}",
        f"Acquisition    : {fmt_amount(cfg.acquisition_size)}",
        f"Min profit     : {cfg.min_profit_percent}%",
        f"Caller reward  : {fmt_amount(cfg.caller_reward)}",
        f"Buyback asset  : {cfg.buyback_asset or '(unset)'}  fee tier {cfg.buyback_fee_tier}",
    ]
    return "\n".join(lines)


def format_balances(balances: TreasuryBalances, cfg: TreasuryConfig) -> str:
    lines = [
        "--- Balances ---",
        f"Settlement     : {fmt_amount(balances.settlement)}",
        f"{cfg.target_asset or 'target':15s}: {fmt_amount(balances.target_asset)}",
        f"{cfg.buyback_asset or 'buyback':15s}: {fmt_amount(balances.buyback_asset)}",
    ]
    return "\n".join(lines)


def format_order(order: Order) -> str:
    lines = [
        f"--- Order #{order.id} [{order.status.value}] ---",
        f"Asset          : {order.asset}",
        f"Spend          : {fmt_amount(order.spend)}",
        f"Tokens         : {fmt_amount(order.token_amount)}",
        f"Buy price      : {fmt_price(order.buy_price)}",
        f"Target price   : {fmt_price(order.target_sell_price)}  (min profit {order.min_profit_percent}%)",
        f"Profit floor   : {fmt_amount(profit_floor(order.spend, order.min_profit_percent))}",
        f"Bought at      : {order.buy_timestamp.isoformat()}",
    ]
    if order.sell_timestamp:
        lines += [
            f"Sold at        : {order.sell_timestamp.isoformat()}",
            f"Proceeds       : {fmt_amount(order.proceeds)}",
            f"Profit         : {fmt_amount(order.profit)}",
        ]
    return "\n".join(lines)


def format_order_row(order: Order) -> str:
    proceeds = fmt_amount(order.proceeds) if order.sell_timestamp else "-"
    return (
        f"  #{order.id:<4d} {order.status.value:8s} {order.asset:8s} "
        f"spend {fmt_amount(order.spend):>14s}  proceeds {proceeds:>14s}"
    )


def format_buy(result: BuyResult) -> str:
    o = result.order
    return (
        f"Order #{o.id} opened: bought {fmt_amount(result.tokens_received)} {o.asset} "
        f"for {fmt_amount(result.spend)} (price {fmt_price(o.buy_price)}). "
        f"Caller reward {fmt_amount(result.reward_paid)}."
    )


def format_sell(result: SellResult) -> str:
    o = result.order
    lines = [
        f"Order #{o.id} closed: proceeds {fmt_amount(result.proceeds)}, profit {fmt_amount(result.profit)}.",
        f"  Caller reward {fmt_amount(result.reward_paid)}",
        f"  Buyback budget {fmt_amount(result.buyback_budget)}, burned {fmt_amount(result.burned)}",
    ]
    return "\n".join(lines)


def format_pools(pools: list[Pool]) -> str:
    if not pools:
        return "No pools."
    lines = ["--- Pools ---"]
    for p in pools:
        price = p.reserve1 / p.reserve0 if p.reserve0 else 0.0
        hook = f"  hook={p.key.hook}" if p.key.hook else ""
        lines.append(
            f"  {p.key.pair_id:28s} {fmt_amount(p.reserve0):>16s} / {fmt_amount(p.reserve1):<16s} "
            f"({p.key.currency1} per {p.key.currency0}: {price:.6f}){hook}"
        )
    return "\n".join(lines)
