"""Tests for journal writer. Append-only; one line per committed record."""

import json
from pathlib import Path

from journal.writer import JournalWriter
from treasury_core.audit import AuditTrail, BuybackExecuted, OrderOpened


def _lines(path: Path) -> list[dict]:
    with open(path) as f:
        return [json.loads(line) for line in f]


def test_journal_records_audit_events(tmp_path: Path) -> None:
    path = tmp_path / "journal.jsonl"
    j = JournalWriter(path)
    trail = AuditTrail()
    trail.subscribe(j.record)
    trail.stage(
        OrderOpened(order_id=1, asset="TGT", spend=10**21, tokens_received=10**21, buy_price=10**18, caller="a", reward=1)
    )
    trail.stage(BuybackExecuted(order_id=1, asset="BURN", budget=5, acquired=40, burned=40))
    trail.flush()

    r0, r1 = _lines(path)
    assert r0["event"] == "order_opened"
    assert r0["spend"] == 10**21
    assert r0["caller"] == "a"
    assert r1["event"] == "buyback_executed"
    assert r1["burned"] == 40
    assert "ts_utc" in r1


def test_journal_is_append_only(tmp_path: Path) -> None:
    path = tmp_path / "journal.jsonl"
    JournalWriter(path).operation_failed("buy", "InsufficientFunds", "treasury holds 0")
    JournalWriter(path).operation_failed("sell #1", "InsufficientProfit", "below floor", caller="keeper")
    records = _lines(path)
    assert [r["operation"] for r in records] == ["buy", "sell #1"]
    assert records[1]["caller"] == "keeper"
    assert records[1]["error"] == "InsufficientProfit"


def test_rolled_back_records_never_reach_the_journal(tmp_path: Path) -> None:
    path = tmp_path / "journal.jsonl"
    trail = AuditTrail()
    trail.subscribe(JournalWriter(path).record)
    mark = trail.snapshot()
    trail.stage(BuybackExecuted(order_id=1, asset="BURN", budget=5, acquired=40, burned=40))
    trail.restore(mark)
    trail.flush()
    assert not path.exists() or path.read_text() == ""


def test_config_and_recipient_changes(tmp_path: Path) -> None:
    path = tmp_path / "sub" / "journal.jsonl"
    j = JournalWriter(path)
    j.config_updated("admin", {"min_profit_percent": 20})
    j.fee_recipient_changed("treasury", "collector")
    r0, r1 = _lines(path)
    assert r0["event"] == "config_updated"
    assert r0["changes"] == {"min_profit_percent": 20}
    assert r1 == {**r1, "event": "fee_recipient_changed", "previous": "treasury", "current": "collector"}


def test_echo_stdout(tmp_path: Path, capsys) -> None:
    JournalWriter(tmp_path / "j.jsonl", echo_stdout=True).operation_failed("buy", "X", "y")
    assert '"operation_failed"' in capsys.readouterr().out
