"""Tests for the treasury session and SQLite store. Single writer; restart-safe."""

from pathlib import Path

import pytest

from config.loader import load_config
from execution import TreasurySession, TreasuryStore
from treasury_core.contracts import NATIVE, OrderStatus
from treasury_core.errors import SlippageExceeded

UNIT = 10**18


@pytest.fixture
def cfg(app_config_path: Path, monkeypatch):
    monkeypatch.delenv("TREASURY_ADMIN", raising=False)
    return load_config(app_config_path)


def test_fresh_session_seeds_world(cfg) -> None:
    session = TreasurySession(cfg)
    assert session.store.is_initialized()
    assert session.bank.balance_of("treasury", NATIVE) == 100_000 * UNIT
    assert len(session.venue.pools()) == 3
    hooked = [p for p in session.venue.pools() if p.key.hook]
    assert [p.key.pair_id for p in hooked] == ["FEE/native@10000"]
    assert session.hook.fee_recipient == "treasury"


def test_ledger_and_hook_share_the_session_trail(cfg) -> None:
    session = TreasurySession(cfg)
    assert session.ledger.audit is session.audit
    assert session.hook.audit is session.audit


def test_state_survives_restart(cfg) -> None:
    first = TreasurySession(cfg)
    bought = first.ledger.open_and_buy("alice").order
    first.save()

    second = TreasurySession(cfg)
    order = second.ledger.get_order(bought.id)
    assert order is not None
    assert order.status == OrderStatus.SELLING
    assert order.spend == bought.spend
    assert order.buy_timestamp == bought.buy_timestamp
    assert second.ledger.active_order().id == bought.id
    assert second.ledger.next_order_id == 2
    assert second.bank.holdings() == first.bank.holdings()
    assert second.bank.supplies() == first.bank.supplies()
    assert second.venue.snapshot() == first.venue.snapshot()


def test_large_amounts_round_trip(cfg) -> None:
    session = TreasurySession(cfg)
    huge = 10**40
    session.bank.mint("TGT", "whale", huge)
    session.save()
    assert TreasurySession(cfg).bank.balance_of("whale", "TGT") == huge
    assert TreasuryStore(cfg.state_path).load_pools()[0][1] > 0


def test_config_and_fee_recipient_persist(cfg) -> None:
    session = TreasurySession(cfg)
    session.ledger.update_config("admin", min_profit_percent=30)
    session.hook.set_fee_recipient("treasury", "collector")
    session.save()

    reloaded = TreasurySession(cfg)
    assert reloaded.ledger.config.min_profit_percent == 30
    assert reloaded.hook.fee_recipient == "collector"


def test_unsaved_changes_are_discarded(cfg) -> None:
    session = TreasurySession(cfg)
    session.ledger.open_and_buy("alice")
    assert TreasurySession(cfg).ledger.orders() == []


def test_trader_swap_through_hooked_pool_pays_recipient(cfg) -> None:
    session = TreasurySession(cfg)
    seen = []
    session.audit.subscribe(seen.append)
    before = session.bank.balance_of("treasury", NATIVE)
    received = session.swap("trader", "FEE", NATIVE, 10_000, 100 * UNIT, fund=True)
    assert received > 0
    assert session.bank.balance_of("treasury", NATIVE) > before
    assert [r.kind for r in seen] == ["fee_withheld"]


def test_failed_swap_leaves_no_trace(cfg) -> None:
    session = TreasurySession(cfg)
    seen = []
    session.audit.subscribe(seen.append)
    holdings = session.bank.holdings()
    with pytest.raises(SlippageExceeded):
        session.swap("trader", "FEE", NATIVE, 10_000, 100 * UNIT, min_out=100 * UNIT, fund=True)
    assert session.bank.holdings() == holdings
    assert seen == []
    assert session.audit.pending == ()


def test_store_lists_orders(cfg) -> None:
    session = TreasurySession(cfg)
    session.ledger.open_and_buy("alice")
    session.save()
    orders = TreasuryStore(cfg.state_path).list_orders()
    assert [o.id for o in orders] == [1]
    assert orders[0].asset == "TGT"
