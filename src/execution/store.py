"""
Treasury store: single-writer paper world state in SQLite, restart-safe.

Persists token balances and supplies, pool reserves, orders, ledger counters,
the treasury config and the fee recipient. Amounts are stored as TEXT because
token amounts overflow SQLite's 64-bit INTEGER.
"""

import json
import sqlite3
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

from treasury_core.contracts import Order, OrderStatus, PoolKey, TreasuryConfig
from treasury_core.ledger import LedgerState
from venue.bank import TokenBank
from venue.paper_venue import PaperVenue


def _utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class TreasuryStore:
    """
    Snapshot store for the paper world. Every save rewrites the state in one
    transaction, so a crash mid-save leaves the previous state intact.
    """

    def __init__(self, state_path: str | Path) -> None:
        self._path = Path(state_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def path(self) -> Path:
        return self._path

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._path), timeout=10.0)

    def _init_schema(self) -> None:
        with self._conn() as c:
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS balances (
                    holder TEXT NOT NULL,
                    asset TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    PRIMARY KEY (holder, asset)
                )
                """
            )
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS supplies (
                    asset TEXT PRIMARY KEY,
                    amount TEXT NOT NULL
                )
                """
            )
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS pools (
                    currency0 TEXT NOT NULL,
                    currency1 TEXT NOT NULL,
                    fee INTEGER NOT NULL,
                    hook TEXT,
                    reserve0 TEXT NOT NULL,
                    reserve1 TEXT NOT NULL,
                    PRIMARY KEY (currency0, currency1, fee)
                )
                """
            )
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS orders (
                    id INTEGER PRIMARY KEY,
                    asset TEXT NOT NULL,
                    spend TEXT NOT NULL,
                    token_amount TEXT NOT NULL,
                    buy_price TEXT NOT NULL,
                    target_sell_price TEXT NOT NULL,
                    min_profit_percent INTEGER NOT NULL,
                    fee_tier INTEGER NOT NULL,
                    buy_ts_utc TEXT NOT NULL,
                    sell_ts_utc TEXT,
                    status TEXT NOT NULL,
                    proceeds TEXT NOT NULL,
                    profit TEXT NOT NULL
                )
                """
            )
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS ledger (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    next_order_id INTEGER NOT NULL,
                    active_order_id INTEGER NOT NULL,
                    config_json TEXT NOT NULL,
                    fee_recipient TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def is_initialized(self) -> bool:
        with self._conn() as c:
            return c.execute("SELECT 1 FROM ledger WHERE id = 1").fetchone() is not None

    # -- save ---------------------------------------------------------------

    def save(self, bank: TokenBank, venue: PaperVenue, state: LedgerState, fee_recipient: str) -> None:
        """Replace the persisted world with the given state in one transaction."""
        ts = datetime.now(timezone.utc).isoformat()
        with self._conn() as c:
            c.execute("DELETE FROM balances")
            c.executemany(
                "INSERT INTO balances (holder, asset, amount) VALUES (?, ?, ?)",
                [(holder, asset, str(amount)) for (holder, asset), amount in bank.holdings().items()],
            )
            c.execute("DELETE FROM supplies")
            c.executemany(
                "INSERT INTO supplies (asset, amount) VALUES (?, ?)",
                [(asset, str(amount)) for asset, amount in bank.supplies().items()],
            )
            c.execute("DELETE FROM pools")
            c.executemany(
                "INSERT INTO pools (currency0, currency1, fee, hook, reserve0, reserve1) VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (p.key.currency0, p.key.currency1, p.key.fee, p.key.hook, str(p.reserve0), str(p.reserve1))
                    for p in venue.pools()
                ],
            )
            c.execute("DELETE FROM orders")
            c.executemany(
                """INSERT INTO orders (id, asset, spend, token_amount, buy_price, target_sell_price,
                       min_profit_percent, fee_tier, buy_ts_utc, sell_ts_utc, status, proceeds, profit)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        o.id,
                        o.asset,
                        str(o.spend),
                        str(o.token_amount),
                        str(o.buy_price),
                        str(o.target_sell_price),
                        o.min_profit_percent,
                        o.fee_tier,
                        _utc(o.buy_timestamp).isoformat(),
                        _utc(o.sell_timestamp).isoformat() if o.sell_timestamp else None,
                        o.status.value,
                        str(o.proceeds),
                        str(o.profit),
                    )
                    for o in state.orders
                ],
            )
            c.execute(
                """INSERT OR REPLACE INTO ledger (id, next_order_id, active_order_id, config_json, fee_recipient, updated_at)
                   VALUES (1, ?, ?, ?, ?, ?)""",
                (state.next_order_id, state.active_order_id, json.dumps(asdict(state.config)), fee_recipient, ts),
            )

    # -- load ---------------------------------------------------------------

    def load_bank(self, bank: TokenBank) -> None:
        with self._conn() as c:
            balances = {(r[0], r[1]): int(r[2]) for r in c.execute("SELECT holder, asset, amount FROM balances")}
            supplies = {r[0]: int(r[1]) for r in c.execute("SELECT asset, amount FROM supplies")}
        bank.restore((balances, supplies))

    def load_pools(self) -> list[tuple[PoolKey, int, int]]:
        with self._conn() as c:
            rows = c.execute(
                "SELECT currency0, currency1, fee, hook, reserve0, reserve1 FROM pools ORDER BY currency0, currency1, fee"
            ).fetchall()
        return [(PoolKey(r[0], r[1], r[2], r[3]), int(r[4]), int(r[5])) for r in rows]

    def load_ledger_state(self) -> LedgerState | None:
        with self._conn() as c:
            row = c.execute(
                "SELECT next_order_id, active_order_id, config_json FROM ledger WHERE id = 1"
            ).fetchone()
            if not row:
                return None
        return LedgerState(
            config=TreasuryConfig(**json.loads(row[2])),
            orders=tuple(self.list_orders()),
            next_order_id=row[0],
            active_order_id=row[1],
        )

    def load_fee_recipient(self) -> str | None:
        with self._conn() as c:
            row = c.execute("SELECT fee_recipient FROM ledger WHERE id = 1").fetchone()
            return row[0] if row else None

    def list_orders(self) -> list[Order]:
        query = (
            "SELECT id, asset, spend, token_amount, buy_price, target_sell_price, min_profit_percent, "
            "fee_tier, buy_ts_utc, sell_ts_utc, status, proceeds, profit FROM orders ORDER BY id"
        )
        with self._conn() as c:
            rows = c.execute(query).fetchall()
        orders = [
            Order(
                id=r[0],
                asset=r[1],
                spend=int(r[2]),
                token_amount=int(r[3]),
                buy_price=int(r[4]),
                target_sell_price=int(r[5]),
                min_profit_percent=r[6],
                fee_tier=r[7],
                buy_timestamp=_parse_ts(r[8]),
                sell_timestamp=_parse_ts(r[9]),
                status=OrderStatus(r[10]),
                proceeds=int(r[11]),
                profit=int(r[12]),
            )
            for r in rows
        ]
        return orders
