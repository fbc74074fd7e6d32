"""Constant product paper venue with pool hooks.

Each pool keeps x * y = k reserves and charges its fee tier on the input
(fee-on-input, gamma = 1 - fee). Custody of pool funds lives in the shared
TokenBank under the pool's address, so a rolled-back bank restores payouts
and a rolled-back venue restores reserves.

Rounding always favours the pool: exact-input swaps truncate the output,
exact-output swaps round the required input up by one unit.

Pools may carry a hook. After the input is settled and reserves move, the
hook's ``after_swap`` is called with the swapper-side BalanceDelta. The hook
may ``take`` part of the output currency from the pool and must return exactly
the amount it took; the swapper's payout is reduced by that amount.
A hook vets every pool it is attached to through ``validate_pool``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from treasury_core.atomic import atomic
from treasury_core.contracts import (
    AFTER_SWAP_ACK,
    FEE_TIER_DENOMINATOR,
    BalanceDelta,
    PoolKey,
    SwapParams,
)
from treasury_core.errors import SlippageExceeded, SwapFailed
from venue.bank import TokenBank
from venue.interfaces import SwapHook

logger = logging.getLogger("treasury.venue")


def amount_out_for_input(reserve_in: int, reserve_out: int, amount_in: int, fee: int) -> int:
    """Output for an exact input: (x + gamma*dx)(y - dy) = k, truncated."""
    if amount_in <= 0:
        return 0
    in_after_fee = amount_in * (FEE_TIER_DENOMINATOR - fee)
    return in_after_fee * reserve_out // (reserve_in * FEE_TIER_DENOMINATOR + in_after_fee)


def amount_in_for_output(reserve_in: int, reserve_out: int, amount_out: int, fee: int) -> int:
    """Input required for an exact output, rounded up."""
    if amount_out <= 0:
        return 0
    if amount_out >= reserve_out:
        raise SwapFailed(f"insufficient liquidity: want {amount_out}, pool holds {reserve_out}")
    numerator = reserve_in * amount_out * FEE_TIER_DENOMINATOR
    denominator = (reserve_out - amount_out) * (FEE_TIER_DENOMINATOR - fee)
    return numerator // denominator + 1


@dataclass
class Pool:
    key: PoolKey
    reserve0: int
    reserve1: int

    @property
    def address(self) -> str:
        return f"pool:{self.key.pair_id}"

    def reserves_for(self, zero_for_one: bool) -> tuple[int, int]:
        """(reserve_in, reserve_out) for the given direction."""
        if zero_for_one:
            return self.reserve0, self.reserve1
        return self.reserve1, self.reserve0


@dataclass
class _CallbackFrame:
    key: PoolKey
    taken: int = 0
    currency: str | None = field(default=None)


class PaperVenue:
    """Price quoter and swap venue over constant product pools."""

    def __init__(self, bank: TokenBank) -> None:
        self._bank = bank
        self._pools: dict[tuple[str, str, int], Pool] = {}
        self._hooks: dict[str, SwapHook] = {}
        self._frames: list[_CallbackFrame] = []

    # -- pool management ----------------------------------------------------

    def register_hook(self, hook: SwapHook) -> None:
        self._hooks[hook.address] = hook

    def create_pool(
        self,
        asset_a: str,
        asset_b: str,
        fee: int,
        reserve_a: int,
        reserve_b: int,
        *,
        hook: str | None = None,
    ) -> Pool:
        """Create a pool and mint its seed liquidity into pool custody."""
        if not 0 <= fee < FEE_TIER_DENOMINATOR:
            raise ValueError(f"fee tier must be in [0, {FEE_TIER_DENOMINATOR}), got {fee}")
        if reserve_a <= 0 or reserve_b <= 0:
            raise ValueError("pool reserves must be positive")
        if hook is not None and hook not in self._hooks:
            raise ValueError(f"hook {hook!r} is not registered")
        key = PoolKey.for_pair(asset_a, asset_b, fee, hook)
        if hook is not None:
            self._hooks[hook].validate_pool(key)
        index = (key.currency0, key.currency1, fee)
        if index in self._pools:
            raise ValueError(f"pool already exists: {key.pair_id}")
        r0, r1 = (reserve_a, reserve_b) if key.currency0 == asset_a else (reserve_b, reserve_a)
        pool = Pool(key=key, reserve0=r0, reserve1=r1)
        self._pools[index] = pool
        self._bank.mint(key.currency0, pool.address, r0)
        self._bank.mint(key.currency1, pool.address, r1)
        logger.info("created pool %s (hook=%s) reserves %d/%d", key.pair_id, hook, r0, r1)
        return pool

    def restore_pool(self, key: PoolKey, reserve0: int, reserve1: int) -> Pool:
        """Re-register a persisted pool without minting (custody is restored separately)."""
        if key.hook is not None and key.hook not in self._hooks:
            raise ValueError(f"hook {key.hook!r} is not registered")
        if key.hook is not None:
            self._hooks[key.hook].validate_pool(key)
        pool = Pool(key=key, reserve0=reserve0, reserve1=reserve1)
        self._pools[(key.currency0, key.currency1, key.fee)] = pool
        return pool

    def pools(self) -> list[Pool]:
        return list(self._pools.values())

    def find_pool(self, asset_a: str, asset_b: str, fee: int) -> Pool:
        c0, c1 = sorted((asset_a, asset_b))
        pool = self._pools.get((c0, c1, fee))
        if pool is None:
            raise SwapFailed(f"no pool for {c0}/{c1}@{fee}")
        return pool

    # -- quoting ------------------------------------------------------------

    def estimate_input_for_exact_output(self, asset_in: str, asset_out: str, fee_tier: int, amount_out: int) -> int:
        pool = self.find_pool(asset_in, asset_out, fee_tier)
        r_in, r_out = pool.reserves_for(asset_in == pool.key.currency0)
        return amount_in_for_output(r_in, r_out, amount_out, fee_tier)

    def estimate_output_for_exact_input(self, asset_in: str, asset_out: str, fee_tier: int, amount_in: int) -> int:
        pool = self.find_pool(asset_in, asset_out, fee_tier)
        r_in, r_out = pool.reserves_for(asset_in == pool.key.currency0)
        return amount_out_for_input(r_in, r_out, amount_in, fee_tier)

    # -- swaps --------------------------------------------------------------

    def swap_exact_input(
        self,
        sender: str,
        asset_in: str,
        asset_out: str,
        fee_tier: int,
        amount_in: int,
        output_floor: int,
    ) -> int:
        if amount_in <= 0:
            raise SwapFailed(f"amount_in must be positive, got {amount_in}")
        pool = self.find_pool(asset_in, asset_out, fee_tier)
        zero_for_one = asset_in == pool.key.currency0
        r_in, r_out = pool.reserves_for(zero_for_one)
        amount_out = amount_out_for_input(r_in, r_out, amount_in, fee_tier)
        with atomic(self._bank, self):
            received = self._settle(sender, pool, SwapParams(zero_for_one, -amount_in), amount_in, amount_out)
            if received < output_floor:
                raise SlippageExceeded(
                    f"{pool.key.pair_id}: output {received} below floor {output_floor}"
                )
        return received

    def swap_exact_output(
        self,
        sender: str,
        asset_in: str,
        asset_out: str,
        fee_tier: int,
        amount_out: int,
        input_cap: int,
    ) -> int:
        if amount_out <= 0:
            raise SwapFailed(f"amount_out must be positive, got {amount_out}")
        pool = self.find_pool(asset_in, asset_out, fee_tier)
        zero_for_one = asset_in == pool.key.currency0
        r_in, r_out = pool.reserves_for(zero_for_one)
        amount_in = amount_in_for_output(r_in, r_out, amount_out, fee_tier)
        if amount_in > input_cap:
            raise SlippageExceeded(f"{pool.key.pair_id}: input {amount_in} above cap {input_cap}")
        with atomic(self._bank, self):
            self._settle(sender, pool, SwapParams(zero_for_one, amount_out), amount_in, amount_out)
        return amount_in

    def take(self, key: PoolKey, currency: str, recipient: str, amount: int) -> None:
        if not self._frames or self._frames[-1].key != key:
            raise SwapFailed(f"take() outside a hook callback for {key.pair_id}")
        if currency not in (key.currency0, key.currency1):
            raise SwapFailed(f"{currency!r} is not a currency of {key.pair_id}")
        frame = self._frames[-1]
        pool = self._pools[(key.currency0, key.currency1, key.fee)]
        self._bank.transfer(currency, pool.address, recipient, amount)
        frame.taken += amount
        frame.currency = currency

    def _settle(self, sender: str, pool: Pool, params: SwapParams, amount_in: int, amount_out: int) -> int:
        key = pool.key
        asset_in, asset_out = (key.currency0, key.currency1) if params.zero_for_one else (key.currency1, key.currency0)
        self._bank.transfer(asset_in, sender, pool.address, amount_in)
        if params.zero_for_one:
            pool.reserve0 += amount_in
            pool.reserve1 -= amount_out
            delta = BalanceDelta(-amount_in, amount_out)
        else:
            pool.reserve1 += amount_in
            pool.reserve0 -= amount_out
            delta = BalanceDelta(amount_out, -amount_in)

        adjustment = 0
        if key.hook is not None:
            adjustment = self._call_hook(sender, key, params, delta, asset_out, amount_out)

        payout = amount_out - adjustment
        self._bank.transfer(asset_out, pool.address, sender, payout)
        logger.debug(
            "swap %s by %s: in %d %s, out %d %s (hook adjustment %d)",
            key.pair_id, sender, amount_in, asset_in, payout, asset_out, adjustment,
        )
        return payout

    def _call_hook(
        self,
        sender: str,
        key: PoolKey,
        params: SwapParams,
        delta: BalanceDelta,
        asset_out: str,
        amount_out: int,
    ) -> int:
        hook = self._hooks[key.hook]
        frame = _CallbackFrame(key=key)
        self._frames.append(frame)
        try:
            ack, adjustment = hook.after_swap(sender, key, params, delta)
        finally:
            self._frames.pop()
        if ack != AFTER_SWAP_ACK:
            raise SwapFailed(f"hook {key.hook} returned invalid acknowledgement {ack!r}")
        if adjustment < 0 or adjustment > amount_out:
            raise SwapFailed(f"hook {key.hook} adjustment {adjustment} out of range [0, {amount_out}]")
        if frame.taken != adjustment or (adjustment and frame.currency != asset_out):
            raise SwapFailed(
                f"hook {key.hook} delta not settled: took {frame.taken} {frame.currency}, "
                f"returned {adjustment} {asset_out}"
            )
        return adjustment

    # -- checkpointing ------------------------------------------------------

    def snapshot(self) -> Any:
        return {index: (p.reserve0, p.reserve1) for index, p in self._pools.items()}

    def restore(self, state: Any) -> None:
        for index, pool in list(self._pools.items()):
            if index not in state:
                del self._pools[index]
                continue
            pool.reserve0, pool.reserve1 = state[index]
