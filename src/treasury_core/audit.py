"""
Append-only audit trail: order opened, order closed, buyback, fee withheld.

Operations stage records while they run and publish them only after their
unit of work commits, so a reverted call leaves no trace. Subscribers (the
journal, the structured event logger) receive each record once.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar, Iterable


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AuditRecord:
    kind: ClassVar[str] = "audit"

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        ts = payload.pop("ts", None)
        return {
            "event": self.kind,
            "ts_utc": ts.isoformat() if isinstance(ts, datetime) else ts,
            **payload,
        }


@dataclass(frozen=True)
class OrderOpened(AuditRecord):
    kind: ClassVar[str] = "order_opened"

    order_id: int
    asset: str
    spend: int
    tokens_received: int
    buy_price: int
    caller: str
    reward: int
    ts: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class OrderClosed(AuditRecord):
    kind: ClassVar[str] = "order_closed"

    order_id: int
    proceeds: int
    profit: int
    caller: str
    reward: int
    ts: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class BuybackExecuted(AuditRecord):
    kind: ClassVar[str] = "buyback_executed"

    order_id: int
    asset: str
    budget: int
    acquired: int
    burned: int
    ts: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class FeeWithheld(AuditRecord):
    kind: ClassVar[str] = "fee_withheld"

    pool: str
    currency: str
    fee_amount: int
    forwarded: int
    recipient: str
    ts: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class EmergencyWithdrawal(AuditRecord):
    kind: ClassVar[str] = "emergency_withdrawal"

    asset: str
    amount: int
    recipient: str
    ts: datetime = field(default_factory=_now)


Subscriber = Callable[[AuditRecord], None]


class AuditTrail:
    """Append-only list of committed audit records with fan-out to subscribers.

    Records are staged first. ``snapshot``/``restore`` cover only the staged
    records, so the trail can take part in an ``atomic`` block; ``flush``
    commits the staged records and notifies subscribers.
    """

    def __init__(self) -> None:
        self._records: list[AuditRecord] = []
        self._pending: list[AuditRecord] = []
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def stage(self, record: AuditRecord) -> None:
        self._pending.append(record)

    def flush(self) -> list[AuditRecord]:
        committed, self._pending = self._pending, []
        self._publish(committed)
        return committed

    def _publish(self, records: Iterable[AuditRecord]) -> None:
        for record in records:
            self._records.append(record)
            for callback in self._subscribers:
                callback(record)

    def snapshot(self) -> Any:
        return len(self._pending)

    def restore(self, state: Any) -> None:
        del self._pending[state:]

    @property
    def pending(self) -> tuple[AuditRecord, ...]:
        return tuple(self._pending)

    @property
    def records(self) -> tuple[AuditRecord, ...]:
        return tuple(self._records)

    def of_kind(self, kind: str) -> list[AuditRecord]:
        return [r for r in self._records if r.kind == kind]

    def __len__(self) -> int:
        return len(self._records)
