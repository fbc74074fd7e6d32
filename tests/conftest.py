"""Pytest fixtures: token bank, paper venue, scripted venue double, ledgers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from treasury_core.audit import AuditTrail
from treasury_core.contracts import NATIVE, TreasuryConfig
from treasury_core.errors import SlippageExceeded, SwapFailed
from treasury_core.ledger import TreasuryLedger
from venue.bank import TokenBank
from venue.paper_venue import PaperVenue

UNIT = 10**18
ADMIN = "admin"
TREASURY = "treasury"


def _clock() -> datetime:
    return datetime(2026, 1, 2, 9, 30, tzinfo=timezone.utc)


class ScriptedVenue:
    """Quoter + venue double with fixed prices.

    Buys cost ``cost`` (defaults to ``quote``) and deliver ``fill`` tokens
    (defaults to the requested size). Sales of the target asset pay
    ``sale_proceeds``; any other exact-input swap (the buyback) converts at
    ``buyback_rate`` (numerator, denominator).
    """

    def __init__(
        self,
        bank: TokenBank,
        *,
        target_asset: str = "TGT",
        quote: int = 1000,
        cost: int | None = None,
        fill: int | None = None,
        sale_proceeds: int = 0,
        buyback_rate: tuple[int, int] = (1, 1),
    ) -> None:
        self.bank = bank
        self.target_asset = target_asset
        self.quote = quote
        self.cost = cost
        self.fill = fill
        self.sale_proceeds = sale_proceeds
        self.buyback_rate = buyback_rate
        self.fail_buyback = False
        self.on_swap: Callable[[], Any] | None = None
        self.calls: list[tuple] = []

    def estimate_input_for_exact_output(self, asset_in: str, asset_out: str, fee_tier: int, amount_out: int) -> int:
        return self.quote

    def swap_exact_output(self, sender, asset_in, asset_out, fee_tier, amount_out, input_cap) -> int:
        self.calls.append(("exact_output", asset_in, asset_out, fee_tier, amount_out, input_cap))
        if self.on_swap is not None:
            self.on_swap()
        cost = self.quote if self.cost is None else self.cost
        if cost > input_cap:
            raise SlippageExceeded(f"input {cost} above cap {input_cap}")
        self.bank.burn(asset_in, sender, cost)
        self.bank.mint(asset_out, sender, amount_out if self.fill is None else self.fill)
        return cost

    def swap_exact_input(self, sender, asset_in, asset_out, fee_tier, amount_in, output_floor) -> int:
        self.calls.append(("exact_input", asset_in, asset_out, fee_tier, amount_in, output_floor))
        if asset_in == self.target_asset:
            out = self.sale_proceeds
        else:
            if self.fail_buyback:
                raise SwapFailed("buyback pool unavailable")
            num, den = self.buyback_rate
            out = amount_in * num // den
        if out < output_floor:
            raise SlippageExceeded(f"output {out} below floor {output_floor}")
        self.bank.burn(asset_in, sender, amount_in)
        self.bank.mint(asset_out, sender, out)
        return out

    def take(self, key, currency, recipient, amount) -> None:
        raise SwapFailed("no hooks on the scripted venue")


def make_config(**overrides: Any) -> TreasuryConfig:
    base = dict(
        target_asset="TGT",
        acquisition_size=1000,
        min_profit_percent=10,
        fee_tier=3000,
        caller_reward=1,
        buyback_asset="BURN",
        buyback_fee_tier=3000,
    )
    base.update(overrides)
    return TreasuryConfig(**base)


def make_ledger(bank: TokenBank, venue: Any, config: TreasuryConfig | None = None, **kwargs: Any) -> TreasuryLedger:
    return TreasuryLedger(
        config or make_config(),
        admin=ADMIN,
        treasury=TREASURY,
        bank=bank,
        venue=venue,
        quoter=venue,
        clock=_clock,
        **kwargs,
    )


@pytest.fixture
def bank() -> TokenBank:
    b = TokenBank()
    b.mint(NATIVE, TREASURY, 10_000)
    return b


@pytest.fixture
def scripted(bank: TokenBank) -> ScriptedVenue:
    return ScriptedVenue(bank, quote=1000, sale_proceeds=1150)


@pytest.fixture
def ledger(bank: TokenBank, scripted: ScriptedVenue) -> TreasuryLedger:
    return make_ledger(bank, scripted)


@pytest.fixture
def paper_bank() -> TokenBank:
    b = TokenBank()
    b.mint(NATIVE, TREASURY, 100_000 * UNIT)
    return b


@pytest.fixture
def paper_venue(paper_bank: TokenBank) -> PaperVenue:
    """Two unhooked pools: native/TGT and native/BURN, 1:1 and 1:10."""
    v = PaperVenue(paper_bank)
    v.create_pool(NATIVE, "TGT", 3000, 1_000_000 * UNIT, 1_000_000 * UNIT)
    v.create_pool(NATIVE, "BURN", 3000, 500_000 * UNIT, 5_000_000 * UNIT)
    return v


@pytest.fixture
def paper_ledger(paper_bank: TokenBank, paper_venue: PaperVenue) -> TreasuryLedger:
    config = make_config(acquisition_size=1000 * UNIT, caller_reward=10**15)
    return TreasuryLedger(
        config,
        admin=ADMIN,
        treasury=TREASURY,
        bank=paper_bank,
        venue=paper_venue,
        quoter=paper_venue,
        audit=AuditTrail(),
        checkpoints=(paper_venue,),
        clock=_clock,
    )


@pytest.fixture
def app_config_path(tmp_path):
    """Temp config.yaml with a small paper world (native/TGT, native/BURN, hooked native/FEE)."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        f"""
state_path: "{tmp_path / 'state.db'}"
settlement_asset: native
identities:
  admin: admin
  treasury: treasury
  hook: fee-hook
paper:
  treasury_funding: {100_000 * UNIT}
  pools:
    - {{asset_a: native, asset_b: TGT, fee: 3000, reserve_a: {1_000_000 * UNIT}, reserve_b: {1_000_000 * UNIT}}}
    - {{asset_a: native, asset_b: BURN, fee: 3000, reserve_a: {500_000 * UNIT}, reserve_b: {5_000_000 * UNIT}}}
    - {{asset_a: native, asset_b: FEE, fee: 10000, reserve_a: {200_000 * UNIT}, reserve_b: {200_000 * UNIT}, hooked: true}}
journal:
  path: "{tmp_path / 'journal.jsonl'}"
  echo_stdout: false
alerting:
  structured_logs: false
keeper:
  interval_seconds: 1
  caller: keeper
"""
    )
    return config_path
