"""
Structured treasury events: one JSON object per line (stderr by default),
ready for a log shipper. Committed audit records arrive through the
AuditTrail subscription; keeper cycles, rejections and errors are emitted
directly by the CLI.

When a webhook URL is configured, order lifecycle events, rejections and
errors are also POSTed there. A failed POST is logged and never interrupts
the operation that produced the event.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import IO, Any

from treasury_core.audit import AuditRecord

logger = logging.getLogger("treasury.events")

ALERT_EVENTS = frozenset({"order_opened", "order_closed", "operation_failed", "error"})


class StructuredEventLogger:
    def __init__(
        self,
        treasury: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: IO[str] | None = None,
    ) -> None:
        self._treasury = treasury
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr

    def _emit(self, event_type: str, **fields: Any) -> dict:
        event = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "treasury": self._treasury,
        }
        event.update(fields)
        line = json.dumps(event)
        if self._enabled:
            print(line, file=self._stream, flush=True)
        if self._webhook_url and event_type in ALERT_EVENTS:
            self._notify(line)
        return event

    def _notify(self, body: str) -> None:
        request = urllib.request.Request(
            self._webhook_url,
            data=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            urllib.request.urlopen(request, timeout=5)
        except Exception as exc:
            logger.warning("alert webhook unreachable: %s", exc)

    # -- audit trail subscriber ---------------------------------------------

    def audit(self, record: AuditRecord) -> dict:
        fields = record.to_dict()
        fields.pop("ts_utc", None)
        return self._emit(fields.pop("event"), **fields)

    # -- direct events -------------------------------------------------------

    def operation_failed(self, operation: str, error: str, reason: str) -> dict:
        return self._emit("operation_failed", operation=operation, error=error, reason=reason)

    def keeper_cycle(self, cycle: int, action: str, outcome: str) -> dict:
        return self._emit("keeper_cycle", cycle=cycle, action=action, outcome=outcome)

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)

    def shutdown(self, cycles: int) -> dict:
        return self._emit("shutdown", cycles=cycles)
