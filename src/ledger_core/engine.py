"""
Replay engine: Load -> Order -> Replay -> Finalize for one position.

Pure re-derivation. Status is recomputed every time and never read back,
so a closed position reopens when a later replay includes new buys.
Collaborators are injected; the engine holds no clients of its own.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from ledger_core.accounting import EPSILON, finalize, replay
from ledger_core.contracts import (
    PositionLookup,
    PositionSink,
    ReplayOutcome,
    ReplayResult,
    SinkWriteError,
    Transaction,
    TransactionSource,
)
from ledger_core.ordering import order_transactions

logger = logging.getLogger("ledger.replay")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PositionReplayEngine:
    """Recalculate a position's derived fields from its transaction history."""

    def __init__(
        self,
        source: TransactionSource,
        lookup: PositionLookup,
        sink: PositionSink,
        *,
        clock: Clock | None = None,
        epsilon: float = EPSILON,
    ) -> None:
        self._source = source
        self._lookup = lookup
        self._sink = sink
        self._clock = clock or utc_now
        self._epsilon = epsilon

    def load(self, transaction_ids: list[str]) -> list[Transaction]:
        """Fetch referenced transactions; ids the source doesn't know are dropped."""
        if not transaction_ids:
            return []
        return list(self._source.fetch_transactions(list(transaction_ids)))

    def recalculate(self, position_id: str) -> ReplayResult:
        """Repair one position. Either fully writes derived fields or writes nothing."""
        position = self._lookup.get_position(position_id)
        if position is None:
            logger.error("Position not found: %s", position_id)
            return ReplayResult(
                position_id=position_id,
                outcome=ReplayOutcome.NOT_FOUND,
                message=f"Position not found: {position_id}",
            )

        ids = list(position.transaction_ids)
        txs = self.load(ids)
        missing = max(len(set(ids)) - len({tx.id for tx in txs}), 0)
        if missing:
            logger.info("Position %s: %d transaction id(s) did not resolve", position_id, missing)
        if not txs:
            logger.info("Position %s has no transactions; nothing to recalculate", position_id)
            return ReplayResult(
                position_id=position_id,
                outcome=ReplayOutcome.EMPTY_LEDGER,
                transactions_missing=missing,
                message="No transactions found.",
            )

        ordered = order_transactions(txs)
        state = replay(ordered)
        derived = finalize(state, ordered[-1], self._clock(), epsilon=self._epsilon)

        try:
            self._sink.overwrite_position_derived_fields(position_id, derived)
        except SinkWriteError as exc:
            logger.error("Failed to write position %s: %s", position_id, exc)
            return ReplayResult(
                position_id=position_id,
                outcome=ReplayOutcome.FAILED,
                transactions_loaded=len(txs),
                transactions_missing=missing,
                skipped_types=state.skipped_types,
                coerced_values=state.coerced_values,
                message=str(exc),
            )

        logger.info(
            "Position %s recalculated: size=%s cost=%s avg=%s status=%s",
            position_id,
            derived.current_size,
            derived.total_cost,
            derived.avg_entry_price,
            derived.status.value,
        )
        return ReplayResult(
            position_id=position_id,
            outcome=ReplayOutcome.RECALCULATED,
            derived=derived,
            transactions_loaded=len(txs),
            transactions_missing=missing,
            skipped_types=state.skipped_types,
            coerced_values=state.coerced_values,
        )
