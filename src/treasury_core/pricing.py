"""
Integer pricing helpers for the order ledger.

All arithmetic is integer-only. Division truncates toward zero except for the
profit floor, which rounds up so the required minimum is never understated.
"""

from treasury_core.contracts import BUY_SLIPPAGE_PERCENT, PRICE_SCALE


def ceil_div(numerator: int, denominator: int) -> int:
    """Ceiling division for non-negative integers."""
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    return -(-numerator // denominator)


def spend_ceiling(estimated_input: int, slippage_percent: int = BUY_SLIPPAGE_PERCENT) -> int:
    """Quoted cost inflated by the buy slippage margin."""
    return estimated_input * (100 + slippage_percent) // 100


def buy_price(spend: int, token_amount: int) -> int:
    """Settlement units per token, scaled by PRICE_SCALE."""
    if token_amount <= 0:
        raise ValueError(f"token_amount must be positive, got {token_amount}")
    return spend * PRICE_SCALE // token_amount


def target_sell_price(price: int, min_profit_percent: int) -> int:
    """Reporting-only price the order must reach to clear its profit floor."""
    return price * (100 + min_profit_percent) // 100


def profit_floor(spend: int, min_profit_percent: int) -> int:
    """Minimum acceptable sale proceeds: ceil(spend * (100 + p) / 100)."""
    return ceil_div(spend * (100 + min_profit_percent), 100)


def realized_profit(proceeds: int, spend: int) -> int:
    return max(proceeds - spend, 0)
