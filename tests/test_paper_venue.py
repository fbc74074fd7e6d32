"""Tests for the constant product paper venue and the ledger running against it."""

import pytest

from conftest import TREASURY, UNIT
from treasury_core.contracts import AFTER_SWAP_ACK, NATIVE, OrderStatus, PoolKey
from treasury_core.errors import InsufficientProfit, RewardTransferFailed, SlippageExceeded, SwapFailed
from venue.bank import TokenBank
from venue.paper_venue import PaperVenue, amount_in_for_output, amount_out_for_input


def _custody_matches_reserves(bank: TokenBank, venue: PaperVenue) -> bool:
    return all(
        bank.balance_of(p.address, p.key.currency0) == p.reserve0
        and bank.balance_of(p.address, p.key.currency1) == p.reserve1
        for p in venue.pools()
    )


# ---------------------------------------------------------------------------
# Pool math
# ---------------------------------------------------------------------------


def test_amount_out_truncates() -> None:
    assert amount_out_for_input(1000, 1000, 100, 0) == 90


def test_amount_out_applies_fee_on_input() -> None:
    no_fee = amount_out_for_input(10**6, 10**6, 10**4, 0)
    with_fee = amount_out_for_input(10**6, 10**6, 10**4, 3000)
    assert with_fee < no_fee


def test_amount_in_rounds_up() -> None:
    needed = amount_in_for_output(1000, 1000, 90, 0)
    assert needed == 99
    assert amount_out_for_input(1000, 1000, needed, 0) >= 90


def test_amount_in_rejects_draining_the_pool() -> None:
    with pytest.raises(SwapFailed):
        amount_in_for_output(1000, 1000, 1000, 3000)


def test_zero_amounts() -> None:
    assert amount_out_for_input(1000, 1000, 0, 3000) == 0
    assert amount_in_for_output(1000, 1000, 0, 3000) == 0


# ---------------------------------------------------------------------------
# Pool management
# ---------------------------------------------------------------------------


def test_create_pool_sorts_currencies_and_mints_custody(paper_bank, paper_venue) -> None:
    pool = paper_venue.find_pool(NATIVE, "TGT", 3000)
    assert pool.key == PoolKey("TGT", NATIVE, 3000)
    assert pool.key.pair_id == "TGT/native@3000"
    assert _custody_matches_reserves(paper_bank, paper_venue)


def test_create_pool_rejects_duplicates_and_unknown_hooks(paper_venue) -> None:
    with pytest.raises(ValueError):
        paper_venue.create_pool("TGT", NATIVE, 3000, UNIT, UNIT)
    with pytest.raises(ValueError):
        paper_venue.create_pool(NATIVE, "XYZ", 3000, UNIT, UNIT, hook="nobody")


def test_find_pool_unknown(paper_venue) -> None:
    with pytest.raises(SwapFailed):
        paper_venue.find_pool(NATIVE, "TGT", 500)


# ---------------------------------------------------------------------------
# Swaps
# ---------------------------------------------------------------------------


def test_exact_input_swap_moves_reserves(paper_bank, paper_venue) -> None:
    paper_bank.mint(NATIVE, "trader", 10 * UNIT)
    expected = paper_venue.estimate_output_for_exact_input(NATIVE, "TGT", 3000, 10 * UNIT)
    received = paper_venue.swap_exact_input("trader", NATIVE, "TGT", 3000, 10 * UNIT, 0)
    assert received == expected
    assert paper_bank.balance_of("trader", "TGT") == expected
    assert paper_bank.balance_of("trader", NATIVE) == 0
    assert _custody_matches_reserves(paper_bank, paper_venue)


def test_exact_output_swap_charges_quoted_input(paper_bank, paper_venue) -> None:
    paper_bank.mint(NATIVE, "trader", 20 * UNIT)
    quote = paper_venue.estimate_input_for_exact_output(NATIVE, "TGT", 3000, 10 * UNIT)
    spent = paper_venue.swap_exact_output("trader", NATIVE, "TGT", 3000, 10 * UNIT, quote)
    assert spent == quote
    assert paper_bank.balance_of("trader", "TGT") == 10 * UNIT
    assert _custody_matches_reserves(paper_bank, paper_venue)


def test_exact_output_above_cap_is_rejected(paper_bank, paper_venue) -> None:
    paper_bank.mint(NATIVE, "trader", 20 * UNIT)
    quote = paper_venue.estimate_input_for_exact_output(NATIVE, "TGT", 3000, 10 * UNIT)
    before = paper_venue.snapshot()
    with pytest.raises(SlippageExceeded):
        paper_venue.swap_exact_output("trader", NATIVE, "TGT", 3000, 10 * UNIT, quote - 1)
    assert paper_venue.snapshot() == before
    assert paper_bank.balance_of("trader", NATIVE) == 20 * UNIT


def test_exact_input_below_floor_reverts(paper_bank, paper_venue) -> None:
    paper_bank.mint(NATIVE, "trader", 10 * UNIT)
    expected = paper_venue.estimate_output_for_exact_input(NATIVE, "TGT", 3000, 10 * UNIT)
    before = paper_venue.snapshot()
    with pytest.raises(SlippageExceeded):
        paper_venue.swap_exact_input("trader", NATIVE, "TGT", 3000, 10 * UNIT, expected + 1)
    assert paper_venue.snapshot() == before
    assert paper_bank.balance_of("trader", NATIVE) == 10 * UNIT
    assert paper_bank.balance_of("trader", "TGT") == 0


def test_take_outside_callback_is_rejected(paper_venue) -> None:
    key = paper_venue.find_pool(NATIVE, "TGT", 3000).key
    with pytest.raises(SwapFailed):
        paper_venue.take(key, NATIVE, "thief", 1)


class _Hook:
    def __init__(self, address: str, venue: PaperVenue, *, ack: str = AFTER_SWAP_ACK, take: int = 0, claim: int = 0):
        self.address = address
        self.venue = venue
        self.ack = ack
        self.take = take
        self.claim = claim

    def validate_pool(self, key):
        pass

    def after_swap(self, sender, key, params, delta):
        if self.take:
            self.venue.take(key, key.currency1 if params.zero_for_one else key.currency0, self.address, self.take)
        return self.ack, self.claim


@pytest.mark.parametrize(
    "kwargs",
    [
        {"ack": "nope"},
        {"claim": 5},  # claims an adjustment it never took
        {"take": 5, "claim": 4},
    ],
)
def test_misbehaving_hook_fails_the_swap(paper_bank, kwargs) -> None:
    venue = PaperVenue(paper_bank)
    hook = _Hook("bad-hook", venue, **kwargs)
    venue.register_hook(hook)
    venue.create_pool(NATIVE, "HKD", 3000, 1000 * UNIT, 1000 * UNIT, hook="bad-hook")
    paper_bank.mint(NATIVE, "trader", UNIT)
    before = paper_bank.snapshot()
    with pytest.raises(SwapFailed):
        venue.swap_exact_input("trader", NATIVE, "HKD", 3000, UNIT, 0)
    assert paper_bank.snapshot() == before


def test_well_behaved_hook_reduces_payout(paper_bank) -> None:
    venue = PaperVenue(paper_bank)
    venue.register_hook(_Hook("ok-hook", venue, take=7, claim=7))
    venue.create_pool(NATIVE, "HKD", 3000, 1000 * UNIT, 1000 * UNIT, hook="ok-hook")
    paper_bank.mint(NATIVE, "trader", UNIT)
    expected = venue.estimate_output_for_exact_input(NATIVE, "HKD", 3000, UNIT)
    assert venue.swap_exact_input("trader", NATIVE, "HKD", 3000, UNIT, 0) == expected - 7
    assert paper_bank.balance_of("ok-hook", "HKD") == 7
    assert _custody_matches_reserves(paper_bank, venue)


# ---------------------------------------------------------------------------
# Ledger on the paper venue
# ---------------------------------------------------------------------------


def test_paper_buy_spends_the_quote(paper_ledger, paper_venue) -> None:
    quote = paper_venue.estimate_input_for_exact_output(NATIVE, "TGT", 3000, 1000 * UNIT)
    order = paper_ledger.open_and_buy("alice").order
    assert order.spend == quote
    assert order.token_amount == 1000 * UNIT


def test_paper_sell_needs_price_to_move(paper_ledger, paper_bank, paper_venue) -> None:
    paper_ledger.open_and_buy("alice")
    with pytest.raises(InsufficientProfit):
        paper_ledger.close_and_sell(1, "bob")

    paper_bank.mint(NATIVE, "whale", 500_000 * UNIT)
    paper_venue.swap_exact_input("whale", NATIVE, "TGT", 3000, 500_000 * UNIT, 0)

    burn_supply = paper_bank.total_supply("BURN")
    result = paper_ledger.close_and_sell(1, "bob")
    assert result.order.status == OrderStatus.SUCCESS
    assert result.proceeds >= result.order.spend * 110 // 100
    assert result.burned > 0
    assert paper_bank.total_supply("BURN") == burn_supply - result.burned
    assert paper_bank.balance_of(TREASURY, "BURN") == 0
    assert paper_bank.balance_of("bob", NATIVE) == 10**15
    assert _custody_matches_reserves(paper_bank, paper_venue)


def test_paper_failure_restores_reserves(paper_ledger, paper_bank, paper_venue) -> None:
    paper_bank.set_refusing("alice")
    reserves = paper_venue.snapshot()
    balances = paper_bank.snapshot()
    with pytest.raises(RewardTransferFailed):
        paper_ledger.open_and_buy("alice")
    assert paper_venue.snapshot() == reserves
    assert paper_bank.snapshot() == balances
