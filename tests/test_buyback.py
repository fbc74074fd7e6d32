"""Tests for buyback-and-burn and caller incentives."""

import pytest

from conftest import TREASURY, ScriptedVenue
from treasury_core.buyback import BuybackBurner
from treasury_core.contracts import MAX_CALLER_REWARD, NATIVE
from treasury_core.errors import InvalidConfiguration, RewardTransferFailed
from treasury_core.incentives import CallerIncentives, split_proceeds, validate_reward

# ---------------------------------------------------------------------------
# BuybackBurner
# ---------------------------------------------------------------------------


def test_buyback_burns_everything_acquired(bank) -> None:
    venue = ScriptedVenue(bank, buyback_rate=(5, 2))
    burner = BuybackBurner(bank, venue, TREASURY)
    record = burner.execute(400, "BURN", 3000, order_id=7)
    assert record.order_id == 7
    assert record.budget == 400
    assert record.acquired == 1000
    assert record.burned == 1000
    assert bank.balance_of(TREASURY, "BURN") == 0
    assert bank.total_supply("BURN") == 0
    assert bank.balance_of(TREASURY, NATIVE) == 10_000 - 400


def test_buyback_accepts_zero_output(bank) -> None:
    venue = ScriptedVenue(bank, buyback_rate=(0, 1))
    record = BuybackBurner(bank, venue, TREASURY).execute(400, "BURN", 3000)
    assert record.acquired == 0
    assert record.burned == 0
    assert venue.calls[-1][5] == 0


def test_buyback_does_not_touch_preexisting_holdings(bank) -> None:
    bank.mint("BURN", TREASURY, 50)
    venue = ScriptedVenue(bank)
    record = BuybackBurner(bank, venue, TREASURY).execute(10, "BURN", 3000)
    assert record.burned == 10
    assert bank.balance_of(TREASURY, "BURN") == 50


@pytest.mark.parametrize("budget, asset", [(0, "BURN"), (-1, "BURN"), (10, "")])
def test_buyback_rejects_bad_inputs(bank, budget, asset) -> None:
    with pytest.raises(InvalidConfiguration):
        BuybackBurner(bank, ScriptedVenue(bank), TREASURY).execute(budget, asset, 3000)


# ---------------------------------------------------------------------------
# CallerIncentives
# ---------------------------------------------------------------------------


def test_split_caps_reward_at_proceeds() -> None:
    assert split_proceeds(1150, 1) == (1, 1149)
    assert split_proceeds(2, 10) == (2, 0)
    assert split_proceeds(0, 10) == (0, 0)


def test_validate_reward_bounds() -> None:
    validate_reward(0)
    validate_reward(MAX_CALLER_REWARD)
    with pytest.raises(InvalidConfiguration):
        validate_reward(MAX_CALLER_REWARD + 1)
    with pytest.raises(InvalidConfiguration):
        validate_reward(-1)


def test_pay_moves_settlement_to_caller(bank) -> None:
    incentives = CallerIncentives(bank, TREASURY)
    assert incentives.pay("alice", 25) == 25
    assert bank.balance_of("alice", NATIVE) == 25


def test_pay_zero_is_a_no_op(bank) -> None:
    bank.set_refusing("alice")
    assert CallerIncentives(bank, TREASURY).pay("alice", 0) == 0


def test_pay_failure_is_reported_as_reward_failure(bank) -> None:
    bank.set_refusing("alice")
    with pytest.raises(RewardTransferFailed):
        CallerIncentives(bank, TREASURY).pay("alice", 25)
    assert bank.balance_of(TREASURY, NATIVE) == 10_000
