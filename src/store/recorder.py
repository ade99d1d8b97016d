"""
Transaction recorder: record / edit / delete / import transactions, keep
position membership, and replay every position a change touches.

Position linking: a transaction joins the open position for its asset; a buy
with no open position opens a new one; a sell with no open position is stored
as an orphan (no position). Derived fields are only ever written by the
replay engine, except when a position's last transaction is deleted: the
engine reports an empty ledger and the recorder retires the position.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ledger_core.accounting import LedgerState, finalize
from ledger_core.contracts import (
    Position,
    PositionNotFoundError,
    PositionStatus,
    ReplayOutcome,
    ReplayResult,
    SinkWriteError,
    Transaction,
    TransactionNotFoundError,
    TransactionType,
)
from ledger_core.engine import Clock, PositionReplayEngine, utc_now
from ledger_core.ordering import OLDEST_INSTANT, parse_instant
from store.importer import load_import_file

if TYPE_CHECKING:
    from cli.structured_log import StructuredEventLogger
    from journal.writer import JournalWriter
    from store.base import LedgerStore

logger = logging.getLogger("ledger.store")

EDITABLE_FIELDS = ("type", "amount", "price", "date", "memo")


@dataclass(frozen=True)
class RecordResult:
    """A stored transaction and the replay of the position it joined (if any)."""

    transaction: Transaction
    position_id: str | None
    replay: ReplayResult | None = None


class TransactionRecorder:
    """Mutates the transaction log and re-derives affected positions."""

    def __init__(
        self,
        store: LedgerStore,
        *,
        engine: PositionReplayEngine | None = None,
        journal: JournalWriter | None = None,
        events: StructuredEventLogger | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or utc_now
        self._engine = engine or PositionReplayEngine(store, store, store, clock=self._clock)
        self._journal = journal
        self._events = events

    @property
    def engine(self) -> PositionReplayEngine:
        return self._engine

    @property
    def events(self) -> StructuredEventLogger | None:
        return self._events

    def position(self, position_id: str) -> Position:
        """Look up a position; raises PositionNotFoundError when it doesn't exist."""
        pos = self._store.get_position(position_id)
        if pos is None:
            raise PositionNotFoundError(f"Position not found: {position_id}")
        return pos

    def record(
        self,
        asset: str,
        tx_type: str,
        amount: Any,
        price: Any,
        date: Any = None,
        *,
        memo: str | None = None,
    ) -> RecordResult:
        """Store a new transaction, link it to a position, replay that position."""
        now = self._clock()
        asset = asset.strip().upper()
        if date is None:
            date = now.date().isoformat()

        position_id: str | None = None
        open_position = self._store.get_open_position(asset)
        if open_position is not None:
            position_id = open_position.id
            logger.info("Linking %s %s to open position %s", tx_type, asset, position_id)
        elif tx_type == TransactionType.BUY.value:
            created = self._store.create_position(asset, created_at=now.isoformat(), main_thesis=memo)
            position_id = created.id
        else:
            logger.warning("No open %s position for %s; storing as orphan", asset, tx_type)

        tx = Transaction(
            id=uuid.uuid4().hex,
            type=tx_type,
            amount=amount,
            price=price,
            date=date,
            created_at=now.isoformat(),
            asset=asset,
            position_id=position_id,
            memo=memo,
        )
        self._store.insert_transaction(tx)
        if position_id is not None:
            self._store.link_transaction(position_id, tx.id)

        if self._journal:
            self._journal.transaction_recorded(tx.id, asset, tx_type, amount, price, position_id, date=date)
        if self._events:
            self._events.transaction_recorded(tx.id, asset, tx_type, position_id)

        result = self.recalculate(position_id) if position_id else None
        return RecordResult(transaction=tx, position_id=position_id, replay=result)

    def update(self, tx_id: str, **changes: Any) -> RecordResult:
        """Edit a transaction's type/amount/price/date/memo and replay its position."""
        tx = self._require(tx_id)
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")
        updated = replace(tx, **changes)
        self._store.replace_transaction(updated)
        if self._journal:
            self._journal.transaction_updated(tx_id, changes, tx.position_id)
        result = self.recalculate(tx.position_id) if tx.position_id else None
        return RecordResult(transaction=updated, position_id=tx.position_id, replay=result)

    def delete(self, tx_id: str) -> RecordResult:
        """Delete a transaction, drop it from its position, replay the position."""
        tx = self._require(tx_id)
        self._store.delete_transaction(tx_id)
        if self._journal:
            self._journal.transaction_deleted(tx_id, tx.position_id)
        result = None
        if tx.position_id:
            result = self.recalculate(tx.position_id)
            if result.outcome == ReplayOutcome.EMPTY_LEDGER:
                result = self._retire(result)
        return RecordResult(transaction=tx, position_id=tx.position_id, replay=result)

    def bulk_import(self, path: str | Path) -> list[RecordResult]:
        """Validate an import file and record its rows, earliest date first."""
        rows = load_import_file(path)
        # Undated rows are recorded as today, so they sort as today too.
        today = self._clock().date().isoformat()
        for row in rows:
            if row.get("date") is None:
                row["date"] = today
        rows = sorted(rows, key=lambda r: parse_instant(r.get("date")) or OLDEST_INSTANT)
        results = []
        for row in rows:
            results.append(
                self.record(
                    row["asset"],
                    row["type"],
                    row.get("amount"),
                    row.get("price"),
                    row.get("date"),
                    memo=row.get("memo"),
                )
            )
        logger.info("Imported %d transaction(s) from %s", len(results), path)
        return results

    def recalculate(self, position_id: str) -> ReplayResult:
        """Run the replay engine for one position and journal the outcome."""
        if self._events:
            self._events.replay_started(position_id)
        result = self._engine.recalculate(position_id)
        self._report(result)
        return result

    def recalculate_all(self) -> list[ReplayResult]:
        return [self.recalculate(p.id) for p in self._store.list_positions()]

    def _require(self, tx_id: str) -> Transaction:
        tx = self._store.get_transaction(tx_id)
        if tx is None:
            raise TransactionNotFoundError(f"Transaction not found: {tx_id}")
        return tx

    def _retire(self, empty: ReplayResult) -> ReplayResult:
        # No transactions left: zero totals, closed.
        position_id = empty.position_id
        derived = finalize(LedgerState(), None, self._clock())
        try:
            self._store.overwrite_position_derived_fields(position_id, derived)
        except SinkWriteError as exc:
            logger.error("Failed to retire position %s: %s", position_id, exc)
            failed = ReplayResult(
                position_id=position_id,
                outcome=ReplayOutcome.FAILED,
                transactions_missing=empty.transactions_missing,
                message=str(exc),
            )
            self._report(failed)
            return failed
        logger.info("Position %s has no transactions left; retired as %s", position_id, PositionStatus.CLOSED.value)
        return empty

    def _report(self, result: ReplayResult) -> None:
        if result.outcome == ReplayOutcome.RECALCULATED:
            if self._journal:
                self._journal.position_recalculated(
                    result.position_id,
                    result.derived,
                    result.transactions_loaded,
                    missing=result.transactions_missing,
                    skipped_types=result.skipped_types,
                    coerced_values=result.coerced_values,
                )
            if self._events:
                self._events.position_recalculated(result.position_id, result.derived.as_record())
            return
        if self._journal:
            self._journal.replay_skipped(result.position_id, result.outcome.value, result.message)
        if self._events:
            if result.outcome == ReplayOutcome.EMPTY_LEDGER:
                self._events.replay_noop(result.position_id, result.message)
            elif result.outcome == ReplayOutcome.NOT_FOUND:
                self._events.position_not_found(result.position_id)
            else:
                self._events.replay_failed(result.position_id, result.message)
