"""
In-memory ledger: dict-backed LedgerStore for tests and dry runs.
"""

import uuid
from dataclasses import replace
from typing import Sequence

from ledger_core.contracts import (
    DerivedFields,
    Position,
    PositionStatus,
    SinkWriteError,
    Transaction,
)


class InMemoryLedger:
    """Holds positions and transactions in dicts. Records every sink write."""

    def __init__(self, *, fail_writes: bool = False) -> None:
        self.positions: dict[str, Position] = {}
        self.transactions: dict[str, Transaction] = {}
        self.writes: list[tuple[str, DerivedFields]] = []
        self.fail_writes = fail_writes

    def add_position(self, position: Position) -> Position:
        self.positions[position.id] = position
        return position

    def add_transactions(self, txs: Sequence[Transaction]) -> None:
        for tx in txs:
            self.transactions[tx.id] = tx

    # -- engine collaborators -------------------------------------------------

    def fetch_transactions(self, ids: Sequence[str]) -> list[Transaction]:
        seen: set[str] = set()
        out: list[Transaction] = []
        for tx_id in ids:
            if tx_id in seen:
                continue
            seen.add(tx_id)
            tx = self.transactions.get(tx_id)
            if tx is not None:
                out.append(tx)
        return out

    def get_position(self, position_id: str) -> Position | None:
        pos = self.positions.get(position_id)
        if pos is None:
            return None
        return replace(pos, transaction_ids=list(pos.transaction_ids))

    def overwrite_position_derived_fields(self, position_id: str, derived: DerivedFields) -> None:
        if self.fail_writes:
            raise SinkWriteError(f"write rejected for position {position_id}")
        pos = self.positions.get(position_id)
        if pos is None:
            raise SinkWriteError(f"Position vanished before write: {position_id}")
        self.positions[position_id] = replace(
            pos,
            current_size=derived.current_size,
            total_buy_amount=derived.total_buy_amount,
            total_cost=derived.total_cost,
            avg_entry_price=derived.avg_entry_price,
            realized_pnl_abs=derived.realized_pnl_abs,
            status=derived.status,
            closed_at=derived.closed_at,
            updated_at=derived.updated_at,
        )
        self.writes.append((position_id, derived))

    # -- bookkeeping ----------------------------------------------------------

    def create_position(self, asset: str, *, created_at: str, main_thesis: str | None = None) -> Position:
        pos = Position(
            id=uuid.uuid4().hex,
            asset=asset,
            created_at=created_at,
            updated_at=created_at,
            main_thesis=main_thesis,
        )
        return self.add_position(pos)

    def get_open_position(self, asset: str) -> Position | None:
        for pos in self.positions.values():
            if pos.asset == asset and pos.status == PositionStatus.OPEN:
                return self.get_position(pos.id)
        return None

    def list_positions(self, status: PositionStatus | None = None) -> list[Position]:
        return [
            self.get_position(pid)
            for pid, pos in self.positions.items()
            if status is None or pos.status == status
        ]

    def insert_transaction(self, tx: Transaction) -> None:
        self.transactions[tx.id] = tx

    def replace_transaction(self, tx: Transaction) -> None:
        self.transactions[tx.id] = tx

    def delete_transaction(self, tx_id: str) -> None:
        self.transactions.pop(tx_id, None)
        for pos in self.positions.values():
            if tx_id in pos.transaction_ids:
                pos.transaction_ids.remove(tx_id)

    def get_transaction(self, tx_id: str) -> Transaction | None:
        return self.transactions.get(tx_id)

    def list_transactions(self, position_id: str | None = None) -> list[Transaction]:
        if position_id is None:
            return list(self.transactions.values())
        pos = self.positions.get(position_id)
        if pos is None:
            return []
        return self.fetch_transactions(pos.transaction_ids)

    def link_transaction(self, position_id: str, tx_id: str) -> None:
        pos = self.positions[position_id]
        if tx_id not in pos.transaction_ids:
            pos.transaction_ids.append(tx_id)
