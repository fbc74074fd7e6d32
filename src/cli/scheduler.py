"""
Keeper loop: periodically advances the order lane as an incentivised caller.

Each cycle reloads the paper world, sells the active order if there is one
(it fails harmlessly until the profit floor can be met), otherwise opens a new
order. Expected rejections are logged and retried next cycle; the core never
retries on its own.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

import click

from cli.structured_log import StructuredEventLogger
from config.loader import AppConfig
from treasury_core.errors import TreasuryError

logger = logging.getLogger("treasury.keeper")


def run_keeper_cycle(cfg: AppConfig, caller: str, events: StructuredEventLogger | None = None) -> tuple[str, str]:
    """Single keeper evaluation. Returns (action, outcome)."""
    from cli.output import format_buy, format_sell
    from execution import TreasurySession
    from journal import JournalWriter

    session = TreasurySession(cfg)
    journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout)
    session.audit.subscribe(journal.record)
    if events is not None:
        session.audit.subscribe(events.audit)

    active = session.ledger.active_order()
    action = f"sell #{active.id}" if active else "buy"
    try:
        if active:
            message = format_sell(session.ledger.close_and_sell(active.id, caller))
        else:
            message = format_buy(session.ledger.open_and_buy(caller))
    except TreasuryError as exc:
        journal.operation_failed(action, type(exc).__name__, str(exc), caller=caller)
        if events is not None:
            events.operation_failed(action, type(exc).__name__, str(exc))
        logger.info("keeper %s rejected: %s: %s", action, type(exc).__name__, exc)
        return action, type(exc).__name__
    session.save()
    click.echo(message)
    return action, "ok"


def run_keeper_loop(
    cfg: AppConfig,
    caller: str,
    interval_seconds: float,
    *,
    max_cycles: int | None = None,
    events: StructuredEventLogger | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Main loop: evaluate, sleep, repeat. Ctrl+C for graceful shutdown.
    Returns the number of completed cycles.
    """
    cycles = 0
    click.echo(f"Keeper started as {caller!r}, every {interval_seconds:.0f}s  |  Ctrl+C to stop\n")

    try:
        while max_cycles is None or cycles < max_cycles:
            now = datetime.now(timezone.utc)
            action, outcome = run_keeper_cycle(cfg, caller, events)
            cycles += 1
            click.echo(f"[{now:%H:%M:%S} UTC] cycle {cycles}: {action} -> {outcome}")
            if events is not None:
                events.keeper_cycle(cycles, action, outcome)
            if max_cycles is not None and cycles >= max_cycles:
                break
            sleep(interval_seconds)
    except KeyboardInterrupt:
        click.echo(f"\n\nShutting down after {cycles} cycle(s). Goodbye.")

    if events is not None:
        events.shutdown(cycles)
    return cycles
