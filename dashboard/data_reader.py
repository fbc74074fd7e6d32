"""
Read-only access to the treasury paper world for the dashboard.

Sources: <data dir>/treasury_state.db (written by TreasuryStore) and
<data dir>/journal.jsonl (written by JournalWriter). Every reader returns an
empty result instead of raising when a source is missing or locked.
"""

import json
import os
import sqlite3
from collections import deque
from pathlib import Path
from typing import Any

STATE_DB = "treasury_state.db"
JOURNAL = "journal.jsonl"

ORDER_COLUMNS = ("id", "asset", "spend", "token_amount", "status", "proceeds", "profit", "buy_ts_utc", "sell_ts_utc")
AMOUNT_COLUMNS = {"spend", "token_amount", "proceeds", "profit", "amount", "reserve0", "reserve1"}


def _data_dir() -> Path:
    """<repo>/data unless TREASURY_DASHBOARD_DATA_DIR is set."""
    override = os.environ.get("TREASURY_DASHBOARD_DATA_DIR")
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "data"


def _query(sql: str, params: tuple = (), data_dir: Path | None = None) -> list[dict[str, Any]]:
    """Run a read query; amounts (stored as TEXT) come back as int."""
    db = (data_dir or _data_dir()) / STATE_DB
    if not db.exists():
        return []
    try:
        conn = sqlite3.connect(f"file:{db}?mode=ro", uri=True, timeout=5.0)
        try:
            cursor = conn.execute(sql, params)
            names = [d[0] for d in cursor.description]
            rows = cursor.fetchall()
        finally:
            conn.close()
    except (sqlite3.Error, OSError):
        return []
    return [
        {name: int(value) if name in AMOUNT_COLUMNS else value for name, value in zip(names, row)}
        for row in rows
    ]


def get_balances(holder: str, data_dir: Path | None = None) -> dict[str, int]:
    rows = _query("SELECT asset, amount FROM balances WHERE holder = ?", (holder,), data_dir)
    return {r["asset"]: r["amount"] for r in rows}


def get_orders(limit: int = 20, data_dir: Path | None = None) -> list[dict[str, Any]]:
    """Most recent orders first."""
    sql = f"SELECT {', '.join(ORDER_COLUMNS)} FROM orders ORDER BY id DESC LIMIT ?"
    return _query(sql, (limit,), data_dir)


def get_active_order(data_dir: Path | None = None) -> dict[str, Any] | None:
    rows = _query(
        f"SELECT {', '.join(ORDER_COLUMNS)} FROM orders WHERE status IN ('BUYING', 'SELLING') LIMIT 1",
        data_dir=data_dir,
    )
    return rows[0] if rows else None


def get_pools(data_dir: Path | None = None) -> list[dict[str, Any]]:
    rows = _query(
        "SELECT currency0, currency1, fee, hook, reserve0, reserve1 FROM pools ORDER BY currency0, currency1, fee",
        data_dir=data_dir,
    )
    for r in rows:
        r["pair"] = f"{r['currency0']}/{r['currency1']}@{r['fee']}"
    return rows


def get_recent_journal_events(
    event_type: str | None = None,
    limit: int = 50,
    data_dir: Path | None = None,
) -> list[dict[str, Any]]:
    """
    Newest-first journal events, optionally only those whose "event" equals
    event_type (order_opened, order_closed, buyback_executed, fee_withheld,
    operation_failed, ...). The limit applies after filtering.
    """
    path = (data_dir or _data_dir()) / JOURNAL
    if not path.exists():
        return []
    recent: deque[dict[str, Any]] = deque(maxlen=limit or None)
    try:
        with open(path) as f:
            for raw in f:
                if not raw.strip():
                    continue
                try:
                    event = json.loads(raw)
                except json.JSONDecodeError:
                    continue
                if event_type is None or event.get("event") == event_type:
                    recent.append(event)
    except OSError:
        return []
    return list(reversed(recent))
