"""
CLI entry point: ledger record | edit | delete | repair | positions | show | import | health.

Every command loads config from --config (default config.yaml),
prints human-readable output, and logs to the journal.
"""

import logging
import sys

import click
from dotenv import load_dotenv

from config import load_config

load_dotenv()

logger = logging.getLogger("ledger")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


def _recorder(ctx: click.Context):
    """Build store, engine, journal and event logger from config."""
    cfg = load_config(ctx.obj["config_path"])
    from cli.structured_log import StructuredEventLogger
    from journal import JournalWriter
    from ledger_core.engine import PositionReplayEngine
    from store import SQLiteLedgerStore, TransactionRecorder

    store = SQLiteLedgerStore(cfg.store.path)
    engine = PositionReplayEngine(store, store, store, epsilon=cfg.ledger.closure_epsilon)
    journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout)
    events = StructuredEventLogger(
        store.path.name,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    return store, TransactionRecorder(store, engine=engine, journal=journal, events=events)


def _fail(recorder, message: str, exc: Exception) -> None:
    """Report a failed command on stdout and as an error event, exit 1."""
    click.echo(str(exc))
    if recorder.events is not None:
        recorder.events.error(message, detail=str(exc))
    raise SystemExit(1)


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """ledger: trade journal with deterministic position replay."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ---------- ledger record ----------


@cli.command()
@click.argument("asset")
@click.argument("tx_type", type=click.Choice(["buy", "sell"]))
@click.argument("amount", type=float)
@click.argument("price", type=float)
@click.option("--date", "date_str", default=None, help="Trade date (ISO, e.g. 2024-01-02). Defaults to today.")
@click.option("--memo", default=None, help="Free-text note; the first buy's memo becomes the position thesis.")
@click.pass_context
def record(ctx: click.Context, asset: str, tx_type: str, amount: float, price: float, date_str: str | None, memo: str | None) -> None:
    """Record a buy or sell and replay the position it joins."""
    from cli.output import format_replay_result

    _, recorder = _recorder(ctx)
    result = recorder.record(asset, tx_type, amount, price, date_str, memo=memo)
    click.echo(f"Recorded {tx_type} {amount} {result.transaction.asset} @ {price}  [{result.transaction.id}]")
    if result.position_id is None:
        click.echo("  No open position for this asset; stored as orphan sell.")
        return
    click.echo(format_replay_result(result.replay))


# ---------- ledger edit ----------


@cli.command()
@click.argument("tx_id")
@click.option("--type", "tx_type", type=click.Choice(["buy", "sell"]), default=None)
@click.option("--amount", type=float, default=None)
@click.option("--price", type=float, default=None)
@click.option("--date", "date_str", default=None)
@click.option("--memo", default=None)
@click.pass_context
def edit(ctx: click.Context, tx_id: str, tx_type: str | None, amount: float | None, price: float | None, date_str: str | None, memo: str | None) -> None:
    """Edit a transaction and replay its position."""
    from cli.output import format_replay_result
    from ledger_core.contracts import LedgerError

    changes = {
        k: v
        for k, v in {"type": tx_type, "amount": amount, "price": price, "date": date_str, "memo": memo}.items()
        if v is not None
    }
    if not changes:
        click.echo("Nothing to change. Pass at least one of --type/--amount/--price/--date/--memo.")
        raise SystemExit(2)

    _, recorder = _recorder(ctx)
    try:
        result = recorder.update(tx_id, **changes)
    except LedgerError as e:
        _fail(recorder, "edit failed", e)
    click.echo(f"Updated {tx_id}: {', '.join(sorted(changes))}")
    if result.replay is not None:
        click.echo(format_replay_result(result.replay))
        if not result.replay.ok:
            raise SystemExit(1)


# ---------- ledger delete ----------


@cli.command()
@click.argument("tx_id")
@click.pass_context
def delete(ctx: click.Context, tx_id: str) -> None:
    """Delete a transaction and replay its position."""
    from cli.output import format_replay_result
    from ledger_core.contracts import LedgerError

    _, recorder = _recorder(ctx)
    try:
        result = recorder.delete(tx_id)
    except LedgerError as e:
        _fail(recorder, "delete failed", e)
    click.echo(f"Deleted {tx_id}")
    if result.replay is not None:
        click.echo(format_replay_result(result.replay))
        if not result.replay.ok:
            raise SystemExit(1)


# ---------- ledger repair ----------


@cli.command()
@click.argument("position_id", required=False)
@click.option("--all", "all_positions", is_flag=True, default=False, help="Recalculate every position.")
@click.pass_context
def repair(ctx: click.Context, position_id: str | None, all_positions: bool) -> None:
    """Recalculate a position from its transactions (or all with --all).

    Exit code 0 when every position was recalculated or had nothing to
    replay; 1 when a position was not found or a write failed.
    """
    from cli.output import format_replay_result

    if not position_id and not all_positions:
        click.echo("Pass a POSITION_ID or --all.")
        raise SystemExit(2)

    _, recorder = _recorder(ctx)
    results = recorder.recalculate_all() if all_positions else [recorder.recalculate(position_id)]
    if not results:
        click.echo("No positions in ledger.")
        return
    for result in results:
        click.echo(format_replay_result(result))
    if not all(r.ok for r in results):
        raise SystemExit(1)


# ---------- ledger positions ----------


@cli.command()
@click.option("--status", "status_filter", type=click.Choice(["open", "closed"]), default=None)
@click.pass_context
def positions(ctx: click.Context, status_filter: str | None) -> None:
    """List positions."""
    from cli.output import format_positions
    from ledger_core.contracts import PositionStatus

    store, _ = _recorder(ctx)
    status = PositionStatus(status_filter) if status_filter else None
    click.echo(format_positions(store.list_positions(status)))


# ---------- ledger show ----------


@cli.command()
@click.argument("position_id")
@click.pass_context
def show(ctx: click.Context, position_id: str) -> None:
    """Show one position with its transactions."""
    from cli.output import format_position_detail
    from ledger_core.contracts import PositionNotFoundError

    store, recorder = _recorder(ctx)
    try:
        pos = recorder.position(position_id)
    except PositionNotFoundError as e:
        click.echo(str(e))
        raise SystemExit(1)
    click.echo(format_position_detail(pos, store.list_transactions(position_id)))


# ---------- ledger import ----------


@cli.command("import")
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
def import_(ctx: click.Context, path: str) -> None:
    """Import transactions from a JSON file (array of {asset, type, amount, price, date, memo})."""
    from store.importer import ImportValidationError

    _, recorder = _recorder(ctx)
    try:
        results = recorder.bulk_import(path)
    except ImportValidationError as e:
        _fail(recorder, "import failed", e)

    touched = {r.position_id for r in results if r.position_id}
    orphans = sum(1 for r in results if r.position_id is None)
    click.echo(f"Imported {len(results)} transaction(s) into {len(touched)} position(s).")
    if orphans:
        click.echo(f"  {orphans} orphan sell(s) with no open position.")


# ---------- ledger health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check system health: config, ledger DB access, journal path.

    Exit code 0 = healthy, 1 = unhealthy.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded (store={cfg.store.path})"))
    except Exception as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        from store import SQLiteLedgerStore
        store = SQLiteLedgerStore(cfg.store.path)
        all_positions = store.list_positions()
        open_count = sum(1 for p in all_positions if p.status.value == "open")
        checks.append(("ledger", True, f"{len(all_positions)} positions ({open_count} open)"))
    except Exception as e:
        checks.append(("ledger", False, str(e)))

    try:
        from journal import JournalWriter
        JournalWriter(cfg.journal.path)
        checks.append(("journal", True, cfg.journal.path))
    except Exception as e:
        checks.append(("journal", False, str(e)))

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
