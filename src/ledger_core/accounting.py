"""
Accounting state machine: fold ordered transactions into running ledger state.

Average cost from inception: a sell realizes (price - avg_entry) * amount
against the lifetime buy average and never reduces total_buy_amount or
total_cost. This is not lot accounting and must not be turned into FIFO/LIFO.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from ledger_core.contracts import DerivedFields, PositionStatus, Transaction, TransactionType

logger = logging.getLogger("ledger.replay")

EPSILON = 1e-8


def coerce_number(value: Any) -> tuple[float, bool]:
    """Return (number, was_coerced). Missing or non-numeric values become 0.0."""
    if isinstance(value, bool):
        return float(value), False
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0, True
        try:
            number = float(text)
        except ValueError:
            return 0.0, True
    else:
        return 0.0, True
    if not math.isfinite(number):
        return 0.0, True
    return number, False


def average_entry(total_cost: float, total_buy_amount: float) -> float:
    if total_buy_amount > 0:
        return total_cost / total_buy_amount
    return 0.0


@dataclass
class LedgerState:
    """Running totals carried across the fold. All start at zero."""

    current_size: float = 0.0
    total_buy_amount: float = 0.0
    total_cost: float = 0.0
    realized_pnl_abs: float = 0.0
    skipped_types: int = 0
    coerced_values: int = 0

    def apply(self, tx: Transaction) -> None:
        """Apply exactly one transition rule for tx.type."""
        if tx.type == TransactionType.BUY.value:
            amount, price = self._numbers(tx)
            self.current_size += amount
            self.total_buy_amount += amount
            self.total_cost += amount * price
        elif tx.type == TransactionType.SELL.value:
            amount, price = self._numbers(tx)
            self.current_size -= amount
            avg_entry = average_entry(self.total_cost, self.total_buy_amount)
            self.realized_pnl_abs += (price - avg_entry) * amount
        else:
            self.skipped_types += 1
            logger.warning("Skipping transaction %s with unknown type %r", tx.id, tx.type)

    def _numbers(self, tx: Transaction) -> tuple[float, float]:
        amount, bad_amount = coerce_number(tx.amount)
        price, bad_price = coerce_number(tx.price)
        if bad_amount or bad_price:
            self.coerced_values += int(bad_amount) + int(bad_price)
            logger.warning(
                "Transaction %s has non-numeric amount/price (%r, %r); using 0",
                tx.id,
                tx.amount,
                tx.price,
            )
        return amount, price


def replay(ordered: Sequence[Transaction]) -> LedgerState:
    """Fold transactions (already in canonical order) into a fresh LedgerState."""
    state = LedgerState()
    for tx in ordered:
        state.apply(tx)
    return state


def finalize(
    state: LedgerState,
    last_tx: Transaction | None,
    now: datetime,
    *,
    epsilon: float = EPSILON,
) -> DerivedFields:
    """Derive avg entry, status and closure time from terminal state.

    Only sizes within [-epsilon, epsilon] close the position; a net-short
    size (sell with no matching buy) stays open with its negative value.
    """
    now_iso = now.isoformat()
    current_size = state.current_size
    if -epsilon <= current_size <= epsilon:
        current_size = 0.0
        status = PositionStatus.CLOSED
        closed_at = (last_tx.created_at if last_tx is not None else None) or now_iso
    else:
        status = PositionStatus.OPEN
        closed_at = None
    return DerivedFields(
        current_size=current_size,
        total_buy_amount=state.total_buy_amount,
        total_cost=state.total_cost,
        avg_entry_price=average_entry(state.total_cost, state.total_buy_amount),
        realized_pnl_abs=state.realized_pnl_abs,
        status=status,
        closed_at=closed_at,
        updated_at=now_iso,
    )
