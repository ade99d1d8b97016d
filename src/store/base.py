"""
LedgerStore protocol: everything the recorder needs from a backing store.

A LedgerStore is also the engine's TransactionSource, PositionLookup and
PositionSink. Implementations: SQLiteLedgerStore, InMemoryLedger.
"""

from typing import Protocol, Sequence

from ledger_core.contracts import DerivedFields, Position, PositionStatus, Transaction


class LedgerStore(Protocol):
    # TransactionSource / PositionLookup / PositionSink
    def fetch_transactions(self, ids: Sequence[str]) -> list[Transaction]:
        ...

    def get_position(self, position_id: str) -> Position | None:
        ...

    def overwrite_position_derived_fields(self, position_id: str, derived: DerivedFields) -> None:
        ...

    # Bookkeeping
    def create_position(self, asset: str, *, created_at: str, main_thesis: str | None = None) -> Position:
        ...

    def get_open_position(self, asset: str) -> Position | None:
        ...

    def list_positions(self, status: PositionStatus | None = None) -> list[Position]:
        ...

    def insert_transaction(self, tx: Transaction) -> None:
        ...

    def replace_transaction(self, tx: Transaction) -> None:
        ...

    def delete_transaction(self, tx_id: str) -> None:
        ...

    def get_transaction(self, tx_id: str) -> Transaction | None:
        ...

    def list_transactions(self, position_id: str | None = None) -> list[Transaction]:
        ...

    def link_transaction(self, position_id: str, tx_id: str) -> None:
        ...
