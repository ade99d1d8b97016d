"""
Data contracts for ledger-core: Transaction, Position, DerivedFields, ReplayResult.

ledger-core consumes Transactions from a TransactionSource and writes
DerivedFields to a PositionSink. No I/O here; these are plain dataclasses
and Protocols implemented by the store layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, Sequence


class TransactionType(str, Enum):
    """Transaction types the replay fold recognizes. Anything else is skipped."""

    BUY = "buy"
    SELL = "sell"


class PositionStatus(str, Enum):
    """Lifecycle status, always recomputed from scratch on replay."""

    OPEN = "open"
    CLOSED = "closed"


class ReplayOutcome(str, Enum):
    """How a recalculate call ended."""

    RECALCULATED = "RECALCULATED"
    EMPTY_LEDGER = "EMPTY_LEDGER"
    NOT_FOUND = "NOT_FOUND"
    FAILED = "FAILED"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class LedgerError(Exception):
    """Base class for ledger failures surfaced to callers."""


class PositionNotFoundError(LedgerError):
    """Requested position does not exist."""


class TransactionNotFoundError(LedgerError):
    """Requested transaction does not exist."""


class SinkWriteError(LedgerError):
    """Final overwrite of a position's derived fields failed. Nothing was written."""


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Transaction:
    """One trade, as stored. amount/price/date are raw; replay coerces them.

    asset, position_id and memo are bookkeeping fields the fold never reads.
    """

    id: str
    type: str
    amount: Any
    price: Any
    date: Any
    created_at: str | None = None
    asset: str | None = None
    position_id: str | None = None
    memo: str | None = None


@dataclass
class Position:
    """Derived holding for one asset. Derived fields are overwritten by replay."""

    id: str
    asset: str
    transaction_ids: list[str] = field(default_factory=list)
    current_size: float = 0.0
    total_buy_amount: float = 0.0
    total_cost: float = 0.0
    avg_entry_price: float = 0.0
    realized_pnl_abs: float = 0.0
    status: PositionStatus = PositionStatus.OPEN
    closed_at: str | None = None
    updated_at: str | None = None
    created_at: str | None = None
    main_thesis: str | None = None


@dataclass(frozen=True)
class DerivedFields:
    """The exact set of fields a replay overwrites on a position."""

    current_size: float
    total_buy_amount: float
    total_cost: float
    avg_entry_price: float
    realized_pnl_abs: float
    status: PositionStatus
    closed_at: str | None
    updated_at: str

    def as_record(self) -> dict[str, Any]:
        """Field names as stored (closedAt/updatedAt keep their ledger spelling)."""
        return {
            "current_size": self.current_size,
            "total_buy_amount": self.total_buy_amount,
            "total_cost": self.total_cost,
            "avg_entry_price": self.avg_entry_price,
            "realized_pnl_abs": self.realized_pnl_abs,
            "status": self.status.value,
            "closedAt": self.closed_at,
            "updatedAt": self.updated_at,
        }


@dataclass(frozen=True)
class ReplayResult:
    """Outcome of one recalculate call. derived is set only when a write happened."""

    position_id: str
    outcome: ReplayOutcome
    derived: DerivedFields | None = None
    transactions_loaded: int = 0
    transactions_missing: int = 0
    skipped_types: int = 0
    coerced_values: int = 0
    message: str = ""

    @property
    def ok(self) -> bool:
        """True unless the position was missing or the write failed."""
        return self.outcome in (ReplayOutcome.RECALCULATED, ReplayOutcome.EMPTY_LEDGER)


# ---------------------------------------------------------------------------
# Collaborator interfaces
# ---------------------------------------------------------------------------


class TransactionSource(Protocol):
    """Resolves transaction ids. Unknown ids are absent from the result."""

    def fetch_transactions(self, ids: Sequence[str]) -> list[Transaction]:
        ...


class PositionLookup(Protocol):
    """Returns the stored position or None."""

    def get_position(self, position_id: str) -> Position | None:
        ...


class PositionSink(Protocol):
    """Single all-or-nothing overwrite of derived fields. Raises SinkWriteError."""

    def overwrite_position_derived_fields(self, position_id: str, derived: DerivedFields) -> None:
        ...
