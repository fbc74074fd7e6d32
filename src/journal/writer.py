"""
Structured journal: append-only JSON lines.

One line per committed audit record (order opened/closed, buyback, fee
withheld, emergency withdrawal), plus rejected operations and administrative
changes. Lines are never rewritten; the dashboard and post-mortems read the
file back as-is.
"""

import dataclasses
import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from treasury_core.audit import AuditRecord


def _jsonable(value: Any) -> Any:
    """json.dumps default hook for the few non-JSON types a payload can carry."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"cannot journal {type(value).__name__}")


class JournalWriter:
    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout

    @property
    def path(self) -> Path:
        return self._path

    def _append(self, entry: dict[str, Any]) -> None:
        line = json.dumps(entry, default=_jsonable)
        with open(self._path, "a") as f:
            f.write(line + "\n")
        if self._echo:
            print(line)

    def _event(self, event_type: str, **payload: Any) -> None:
        self._append({"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload})

    def record(self, audit: AuditRecord) -> None:
        """AuditTrail subscriber. Keeps the record's own timestamp."""
        entry = audit.to_dict()
        self._append({"ts_utc": entry.pop("ts_utc"), "event": entry.pop("event"), **entry})

    def operation_failed(self, operation: str, error: str, reason: str, **extra: Any) -> None:
        self._event("operation_failed", operation=operation, error=error, reason=reason, **extra)

    def config_updated(self, caller: str, changes: dict[str, Any], **extra: Any) -> None:
        self._event("config_updated", caller=caller, changes=changes, **extra)

    def fee_recipient_changed(self, previous: str, current: str) -> None:
        self._event("fee_recipient_changed", previous=previous, current=current)
