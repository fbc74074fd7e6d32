"""
CLI entry point: treasury init | buy | sell | status | order | configure | withdraw | swap | keeper | health.

Every command loads config from --config (default config.yaml), runs against
the persisted paper world, prints human-readable results, and journals every
committed audit record. Amounts are integer base units (18 decimals).
"""

import logging
import sys

import click
from dotenv import load_dotenv

from config import load_config
from treasury_core.errors import TreasuryError

load_dotenv()

logger = logging.getLogger("treasury")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """treasury-engine: profit-gated treasury trading with buyback-and-burn."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _open(ctx: click.Context):
    """Load config and session; subscribe journal and structured events to the audit trail."""
    from cli.structured_log import StructuredEventLogger
    from execution import TreasurySession
    from journal import JournalWriter

    cfg = load_config(ctx.obj["config_path"])
    session = TreasurySession(cfg)
    journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout)
    events = StructuredEventLogger(
        cfg.identities.treasury,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    session.audit.subscribe(journal.record)
    session.audit.subscribe(events.audit)
    return cfg, session, journal, events


def _reject(journal, events, operation: str, exc: TreasuryError) -> None:
    name = type(exc).__name__
    journal.operation_failed(operation, name, str(exc))
    events.operation_failed(operation, name, str(exc))
    click.echo(f"Rejected: {name}: {exc}")
    raise SystemExit(1)


# ---------- treasury init ----------


@cli.command()
@click.option("--force", is_flag=True, default=False, help="Discard existing state and reseed the paper world.")
@click.pass_context
def init(ctx: click.Context, force: bool) -> None:
    """Seed the paper world (treasury funding, pools) from config."""
    from cli.output import format_balances, format_config, format_pools
    from execution import TreasurySession, TreasuryStore

    cfg = load_config(ctx.obj["config_path"])
    store = TreasuryStore(cfg.state_path)
    if store.is_initialized() and not force:
        click.echo(f"State already initialized at {cfg.state_path}. Use --force to reseed.")
        return
    if force:
        store.path.unlink(missing_ok=True)
        store = TreasuryStore(cfg.state_path)

    session = TreasurySession(cfg, store=store)
    click.echo(f"Initialized paper world at {cfg.state_path}")
    click.echo(format_config(session.ledger.config))
    click.echo(format_balances(session.ledger.balances(), session.ledger.config))
    click.echo(format_pools(session.venue.pools()))


# ---------- treasury buy / sell ----------


@cli.command()
@click.option("--caller", default=None, help="Identity triggering the buy (receives the caller reward).")
@click.pass_context
def buy(ctx: click.Context, caller: str | None) -> None:
    """Open a new order: acquire exactly the configured size of the target asset."""
    from cli.output import format_buy

    cfg, session, journal, events = _open(ctx)
    caller = caller or cfg.keeper.caller
    try:
        result = session.ledger.open_and_buy(caller)
    except TreasuryError as exc:
        _reject(journal, events, "buy", exc)
        return
    session.save()
    click.echo(format_buy(result))


@cli.command()
@click.argument("order_id", type=int)
@click.option("--caller", default=None, help="Identity triggering the sell (receives the caller reward).")
@click.pass_context
def sell(ctx: click.Context, order_id: int, caller: str | None) -> None:
    """Close ORDER_ID above its profit floor, then buy back and burn."""
    from cli.output import format_sell

    cfg, session, journal, events = _open(ctx)
    caller = caller or cfg.keeper.caller
    try:
        result = session.ledger.close_and_sell(order_id, caller)
    except TreasuryError as exc:
        _reject(journal, events, f"sell #{order_id}", exc)
        return
    session.save()
    click.echo(format_sell(result))


# ---------- treasury status / order ----------


@cli.command()
@click.option("--orders", "order_count", default=5, help="Number of recent orders to show.")
@click.pass_context
def status(ctx: click.Context, order_count: int) -> None:
    """Show config, balances, active order, pools and recent orders."""
    from cli.output import format_balances, format_config, format_order, format_order_row, format_pools

    cfg, session, _, _ = _open(ctx)
    ledger = session.ledger
    click.echo(format_config(ledger.config))
    click.echo(format_balances(ledger.balances(), ledger.config))
    click.echo(f"Fee recipient  : {session.hook.fee_recipient}  (fee {session.hook.fee_percent}/100000)")
    click.echo(f"Next order id  : {ledger.next_order_id}")

    active = ledger.active_order()
    click.echo("")
    click.echo(format_order(active) if active else "No active order.")
    click.echo("")
    click.echo(format_pools(session.venue.pools()))

    recent = ledger.orders()[-order_count:]
    if recent:
        click.echo(f"\nRecent orders ({len(recent)}):")
        for order in recent:
            click.echo(format_order_row(order))
    else:
        click.echo("\nNo orders yet.")


@cli.command()
@click.argument("order_id", type=int)
@click.pass_context
def order(ctx: click.Context, order_id: int) -> None:
    """Show a single order."""
    from cli.output import format_order

    _, session, _, _ = _open(ctx)
    found = session.ledger.get_order(order_id)
    if found is None:
        click.echo(f"Order #{order_id} not found.")
        raise SystemExit(1)
    click.echo(format_order(found))


# ---------- treasury configure / withdraw / set-fee-recipient ----------


@cli.command()
@click.option("--as", "caller", required=True, help="Identity issuing the change (must be the administrator).")
@click.option("--target-asset", default=None)
@click.option("--acquisition-size", type=int, default=None)
@click.option("--min-profit", "min_profit_percent", type=int, default=None, help="Minimum profit percent (1-100).")
@click.option("--fee-tier", type=int, default=None)
@click.option("--caller-reward", type=int, default=None)
@click.option("--buyback-asset", default=None)
@click.option("--buyback-fee-tier", type=int, default=None)
@click.pass_context
def configure(ctx: click.Context, caller: str, **options) -> None:
    """Update treasury parameters. Applies to the next order only."""
    from cli.output import format_config

    _, session, journal, events = _open(ctx)
    changes = {k: v for k, v in options.items() if v is not None}
    if not changes:
        click.echo(format_config(session.ledger.config))
        return
    try:
        updated = session.ledger.update_config(caller, **changes)
    except TreasuryError as exc:
        _reject(journal, events, "configure", exc)
        return
    session.save()
    journal.config_updated(caller, changes)
    click.echo(format_config(updated))


@cli.command()
@click.argument("asset")
@click.argument("amount", type=int, required=False)
@click.option("--as", "caller", required=True, help="Identity issuing the withdrawal (must be the administrator).")
@click.option("--to", "recipient", default=None, help="Recipient (default: administrator).")
@click.pass_context
def withdraw(ctx: click.Context, asset: str, amount: int | None, caller: str, recipient: str | None) -> None:
    """Emergency withdrawal of ASSET (all of it when AMOUNT is omitted)."""
    from cli.output import fmt_amount

    _, session, journal, events = _open(ctx)
    try:
        moved = session.ledger.emergency_withdraw(caller, asset, amount, recipient)
    except TreasuryError as exc:
        _reject(journal, events, "withdraw", exc)
        return
    session.save()
    click.echo(f"Withdrew {fmt_amount(moved)} {asset} to {recipient or caller}.")


@cli.command("set-fee-recipient")
@click.argument("new_recipient")
@click.option("--as", "caller", required=True, help="Current fee recipient.")
@click.pass_context
def set_fee_recipient(ctx: click.Context, new_recipient: str, caller: str) -> None:
    """Hand the fee hook's recipient role to NEW_RECIPIENT."""
    _, session, journal, events = _open(ctx)
    previous = session.hook.fee_recipient
    try:
        session.hook.set_fee_recipient(caller, new_recipient)
    except TreasuryError as exc:
        _reject(journal, events, "set-fee-recipient", exc)
        return
    session.save()
    journal.fee_recipient_changed(previous, new_recipient)
    click.echo(f"Fee recipient: {previous} -> {new_recipient}")


# ---------- treasury swap ----------


@cli.command()
@click.argument("asset_in")
@click.argument("asset_out")
@click.argument("amount", type=int)
@click.option("--fee", "fee_tier", type=int, default=3000, show_default=True, help="Pool fee tier.")
@click.option("--trader", default="trader", show_default=True)
@click.option("--min-out", type=int, default=0, show_default=True)
@click.option("--fund/--no-fund", default=True, show_default=True, help="Mint AMOUNT of ASSET_IN to the trader first.")
@click.pass_context
def swap(
    ctx: click.Context,
    asset_in: str,
    asset_out: str,
    amount: int,
    fee_tier: int,
    trader: str,
    min_out: int,
    fund: bool,
) -> None:
    """Trade AMOUNT of ASSET_IN for ASSET_OUT on a paper pool (moves prices; hooked pools pay fees)."""
    from cli.output import fmt_amount

    _, session, journal, events = _open(ctx)
    try:
        received = session.swap(trader, asset_in, asset_out, fee_tier, amount, min_out=min_out, fund=fund)
    except TreasuryError as exc:
        _reject(journal, events, "swap", exc)
        return
    session.save()
    click.echo(f"{trader} swapped {fmt_amount(amount)} {asset_in} for {fmt_amount(received)} {asset_out}.")


# ---------- treasury keeper ----------


@cli.command()
@click.option("--interval", default=None, type=float, help="Seconds between cycles (default: config keeper.interval_seconds).")
@click.option("--caller", default=None, help="Keeper identity (default: config keeper.caller).")
@click.option("--cycles", default=None, type=int, help="Stop after N cycles (default: run until Ctrl+C).")
@click.pass_context
def keeper(ctx: click.Context, interval: float | None, caller: str | None, cycles: int | None) -> None:
    """Run the keeper loop: sell the active order when profitable, otherwise open a new one."""
    from cli.scheduler import run_keeper_loop
    from cli.structured_log import StructuredEventLogger

    cfg = load_config(ctx.obj["config_path"])
    events = StructuredEventLogger(
        cfg.identities.treasury,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    run_keeper_loop(
        cfg,
        caller or cfg.keeper.caller,
        interval if interval is not None else cfg.keeper.interval_seconds,
        max_cycles=cycles,
        events=events,
    )


# ---------- treasury health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check system health: config, treasury params, state DB.

    Exit code 0 = healthy, 1 = unhealthy. Designed for Docker HEALTHCHECK.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded (treasury={cfg.identities.treasury})"))
    except Exception as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        from config.treasury_config import load_treasury_config
        params = load_treasury_config(cfg.treasury_params_path or None)
        checks.append(("treasury_params", True, f"validated (version={params.version})"))
    except Exception as e:
        checks.append(("treasury_params", False, str(e)))

    try:
        from execution import TreasuryStore
        store = TreasuryStore(cfg.state_path)
        if store.is_initialized():
            checks.append(("state", True, f"{len(store.list_orders())} orders, {len(store.load_pools())} pools"))
        else:
            checks.append(("state", False, f"not initialized at {cfg.state_path}; run 'treasury init'"))
    except Exception as e:
        checks.append(("state", False, str(e)))

    _print_health(checks)
    healthy = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if healthy else 1)


def _print_health(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")


if __name__ == "__main__":
    cli()
