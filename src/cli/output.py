"""
Human-readable ledger output for the terminal.

Every CLI command uses these formatters. Journal receives the same data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from ledger_core.contracts import ReplayOutcome

if TYPE_CHECKING:
    from ledger_core.contracts import Position, ReplayResult, Transaction


def _fmt_num(value) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:,.8g}"
    return repr(value)


def format_replay_result(result: ReplayResult) -> str:
    """One block per recalculate call: outcome, counts, derived fields."""
    lines = [f"=== Recalculate: {result.position_id} ==="]
    lines.append(f"Outcome      : {result.outcome.value}")
    if result.outcome == ReplayOutcome.RECALCULATED and result.derived is not None:
        d = result.derived
        lines.append(f"Transactions : {result.transactions_loaded} loaded, {result.transactions_missing} missing")
        lines.append(f"Size         : {_fmt_num(d.current_size)}")
        lines.append(f"Bought       : {_fmt_num(d.total_buy_amount)} for {_fmt_num(d.total_cost)}")
        lines.append(f"Avg entry    : {d.avg_entry_price:.4f}")
        lines.append(f"Realized PnL : {d.realized_pnl_abs:+,.2f}")
        lines.append(f"Status       : {d.status.value}" + (f" (closed {d.closed_at})" if d.closed_at else ""))
        if result.skipped_types or result.coerced_values:
            lines.append(f"Warnings     : {result.skipped_types} unknown type(s), {result.coerced_values} value(s) coerced to 0")
    elif result.message:
        lines.append(f"Reason       : {result.message}")
    lines.append("===")
    return "\n".join(lines)


def format_positions(positions: Sequence[Position]) -> str:
    """Table of positions, oldest first."""
    if not positions:
        return "No positions."
    lines = [f"{'ID':32s}  {'ASSET':8s}  {'STATUS':6s}  {'SIZE':>14s}  {'AVG ENTRY':>12s}  {'REALIZED':>12s}"]
    for p in positions:
        lines.append(
            f"{p.id:32s}  {p.asset:8s}  {p.status.value:6s}  {p.current_size:>14,.6f}  "
            f"{p.avg_entry_price:>12,.4f}  {p.realized_pnl_abs:>+12,.2f}"
        )
    return "\n".join(lines)


def format_position_detail(position: Position, transactions: Sequence[Transaction]) -> str:
    """Position fields followed by its transactions in stored order."""
    lines = [
        f"=== Position {position.id} ===",
        f"Asset        : {position.asset}",
        f"Status       : {position.status.value}",
        f"Size         : {_fmt_num(position.current_size)}",
        f"Total bought : {_fmt_num(position.total_buy_amount)}",
        f"Total cost   : {_fmt_num(position.total_cost)}",
        f"Avg entry    : {position.avg_entry_price:.4f}",
        f"Realized PnL : {position.realized_pnl_abs:+,.2f}",
        f"Updated      : {position.updated_at or '-'}",
    ]
    if position.closed_at:
        lines.append(f"Closed       : {position.closed_at}")
    if position.main_thesis:
        lines.append(f"Thesis       : {position.main_thesis}")
    lines.append("")
    if transactions:
        lines.append(f"Transactions ({len(transactions)}):")
        for tx in transactions:
            lines.append(f"  {tx.date!s:25s} {tx.type!s:5s} {_fmt_num(tx.amount)} @ {_fmt_num(tx.price)}  [{tx.id}]")
    else:
        lines.append("No transactions.")
    lines.append("===")
    return "\n".join(lines)
