"""
Position ledger replay: pure re-derivation of position state from transactions.

No I/O. The store layer implements TransactionSource / PositionLookup /
PositionSink and injects them into PositionReplayEngine.
"""

from ledger_core.accounting import EPSILON, LedgerState, coerce_number, finalize, replay
from ledger_core.contracts import (
    DerivedFields,
    LedgerError,
    Position,
    PositionLookup,
    PositionNotFoundError,
    PositionSink,
    PositionStatus,
    ReplayOutcome,
    ReplayResult,
    SinkWriteError,
    Transaction,
    TransactionNotFoundError,
    TransactionSource,
    TransactionType,
)
from ledger_core.engine import PositionReplayEngine
from ledger_core.ordering import order_transactions, parse_instant

__all__ = [
    "DerivedFields",
    "EPSILON",
    "LedgerError",
    "LedgerState",
    "Position",
    "PositionLookup",
    "PositionNotFoundError",
    "PositionReplayEngine",
    "PositionSink",
    "PositionStatus",
    "ReplayOutcome",
    "ReplayResult",
    "SinkWriteError",
    "Transaction",
    "TransactionNotFoundError",
    "TransactionSource",
    "TransactionType",
    "coerce_number",
    "finalize",
    "order_transactions",
    "parse_instant",
    "replay",
]
