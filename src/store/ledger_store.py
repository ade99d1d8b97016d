"""
SQLite ledger store: positions, transactions, membership. Single writer (one process).

Transaction amount/price/date columns are declared without a type so SQLite
keeps whatever was recorded; coercion happens at replay, not on write.
"""

import logging
import sqlite3
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Sequence

from ledger_core.contracts import (
    DerivedFields,
    Position,
    PositionStatus,
    SinkWriteError,
    Transaction,
)

logger = logging.getLogger("ledger.store")

_POSITION_COLUMNS = (
    "id, asset, current_size, total_buy_amount, total_cost, avg_entry_price, "
    "realized_pnl_abs, status, closed_at, updated_at, created_at, main_thesis"
)
_TX_COLUMNS = "id, position_id, asset, type, amount, price, date, created_at, memo"


def _raw(value: Any) -> Any:
    # datetimes have no SQLite type; store ISO strings
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class SQLiteLedgerStore:
    """SQLite-backed LedgerStore. One file per path."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def path(self) -> Path:
        return self._path

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._path), timeout=10.0)

    def _init_schema(self) -> None:
        with self._conn() as c:
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS positions (
                    id TEXT PRIMARY KEY,
                    asset TEXT NOT NULL,
                    current_size REAL NOT NULL DEFAULT 0,
                    total_buy_amount REAL NOT NULL DEFAULT 0,
                    total_cost REAL NOT NULL DEFAULT 0,
                    avg_entry_price REAL NOT NULL DEFAULT 0,
                    realized_pnl_abs REAL NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'open',
                    closed_at TEXT,
                    updated_at TEXT,
                    created_at TEXT,
                    main_thesis TEXT
                )
                """
            )
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS transactions (
                    id TEXT PRIMARY KEY,
                    position_id TEXT,
                    asset TEXT,
                    type TEXT,
                    amount,
                    price,
                    date,
                    created_at TEXT,
                    memo TEXT
                )
                """
            )
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS position_transactions (
                    position_id TEXT NOT NULL,
                    tx_id TEXT NOT NULL,
                    seq INTEGER NOT NULL,
                    PRIMARY KEY (position_id, tx_id)
                )
                """
            )

    # -- engine collaborators -------------------------------------------------

    def fetch_transactions(self, ids: Sequence[str]) -> list[Transaction]:
        """Return transactions in the order of ids; unknown ids are absent."""
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return []
        placeholders = ", ".join("?" for _ in wanted)
        with self._conn() as c:
            rows = c.execute(
                f"SELECT {_TX_COLUMNS} FROM transactions WHERE id IN ({placeholders})",
                wanted,
            ).fetchall()
        by_id = {r[0]: self._row_to_tx(r) for r in rows}
        return [by_id[i] for i in wanted if i in by_id]

    def get_position(self, position_id: str) -> Position | None:
        with self._conn() as c:
            row = c.execute(
                f"SELECT {_POSITION_COLUMNS} FROM positions WHERE id = ?", (position_id,)
            ).fetchone()
            if row is None:
                return None
            ids = [
                r[0]
                for r in c.execute(
                    "SELECT tx_id FROM position_transactions WHERE position_id = ? ORDER BY seq ASC",
                    (position_id,),
                ).fetchall()
            ]
        return self._row_to_position(row, ids)

    def overwrite_position_derived_fields(self, position_id: str, derived: DerivedFields) -> None:
        """Single UPDATE of the derived fields. Other columns are untouched."""
        try:
            with self._conn() as c:
                cur = c.execute(
                    """
                    UPDATE positions SET
                        current_size = ?, total_buy_amount = ?, total_cost = ?,
                        avg_entry_price = ?, realized_pnl_abs = ?, status = ?,
                        closed_at = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        derived.current_size,
                        derived.total_buy_amount,
                        derived.total_cost,
                        derived.avg_entry_price,
                        derived.realized_pnl_abs,
                        derived.status.value,
                        derived.closed_at,
                        derived.updated_at,
                        position_id,
                    ),
                )
                if cur.rowcount != 1:
                    raise SinkWriteError(f"Position vanished before write: {position_id}")
        except sqlite3.Error as exc:
            raise SinkWriteError(f"SQLite write failed for {position_id}: {exc}") from exc

    # -- bookkeeping ----------------------------------------------------------

    def create_position(self, asset: str, *, created_at: str, main_thesis: str | None = None) -> Position:
        position_id = uuid.uuid4().hex
        with self._conn() as c:
            c.execute(
                "INSERT INTO positions (id, asset, status, updated_at, created_at, main_thesis) VALUES (?, ?, ?, ?, ?, ?)",
                (position_id, asset, PositionStatus.OPEN.value, created_at, created_at, main_thesis),
            )
        logger.info("Created position %s for %s", position_id, asset)
        return Position(
            id=position_id,
            asset=asset,
            updated_at=created_at,
            created_at=created_at,
            main_thesis=main_thesis,
        )

    def get_open_position(self, asset: str) -> Position | None:
        with self._conn() as c:
            row = c.execute(
                "SELECT id FROM positions WHERE asset = ? AND status = ? ORDER BY created_at ASC LIMIT 1",
                (asset, PositionStatus.OPEN.value),
            ).fetchone()
        return self.get_position(row[0]) if row else None

    def list_positions(self, status: PositionStatus | None = None) -> list[Position]:
        q = "SELECT id FROM positions"
        params: list = []
        if status is not None:
            q += " WHERE status = ?"
            params.append(status.value)
        q += " ORDER BY created_at ASC, id ASC"
        with self._conn() as c:
            ids = [r[0] for r in c.execute(q, params).fetchall()]
        return [p for p in (self.get_position(i) for i in ids) if p is not None]

    def insert_transaction(self, tx: Transaction) -> None:
        with self._conn() as c:
            c.execute(
                f"INSERT INTO transactions ({_TX_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                self._tx_params(tx),
            )

    def replace_transaction(self, tx: Transaction) -> None:
        with self._conn() as c:
            c.execute(
                f"INSERT OR REPLACE INTO transactions ({_TX_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                self._tx_params(tx),
            )

    def delete_transaction(self, tx_id: str) -> None:
        """Delete a transaction and drop it from every position's membership."""
        with self._conn() as c:
            c.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))
            c.execute("DELETE FROM position_transactions WHERE tx_id = ?", (tx_id,))

    def get_transaction(self, tx_id: str) -> Transaction | None:
        with self._conn() as c:
            row = c.execute(f"SELECT {_TX_COLUMNS} FROM transactions WHERE id = ?", (tx_id,)).fetchone()
        return self._row_to_tx(row) if row else None

    def list_transactions(self, position_id: str | None = None) -> list[Transaction]:
        if position_id is not None:
            pos = self.get_position(position_id)
            return self.fetch_transactions(pos.transaction_ids) if pos else []
        with self._conn() as c:
            rows = c.execute(f"SELECT {_TX_COLUMNS} FROM transactions ORDER BY created_at ASC").fetchall()
        return [self._row_to_tx(r) for r in rows]

    def link_transaction(self, position_id: str, tx_id: str) -> None:
        with self._conn() as c:
            row = c.execute(
                "SELECT COALESCE(MAX(seq), 0) FROM position_transactions WHERE position_id = ?",
                (position_id,),
            ).fetchone()
            c.execute(
                "INSERT OR IGNORE INTO position_transactions (position_id, tx_id, seq) VALUES (?, ?, ?)",
                (position_id, tx_id, row[0] + 1),
            )

    # -- row mapping ----------------------------------------------------------

    @staticmethod
    def _tx_params(tx: Transaction) -> tuple:
        return (
            tx.id,
            tx.position_id,
            tx.asset,
            tx.type,
            _raw(tx.amount),
            _raw(tx.price),
            _raw(tx.date),
            tx.created_at,
            tx.memo,
        )

    @staticmethod
    def _row_to_tx(row: tuple) -> Transaction:
        tx_id, position_id, asset, tx_type, amount, price, tx_date, created_at, memo = row
        return Transaction(
            id=tx_id,
            type=tx_type,
            amount=amount,
            price=price,
            date=tx_date,
            created_at=created_at,
            asset=asset,
            position_id=position_id,
            memo=memo,
        )

    @staticmethod
    def _row_to_position(row: tuple, transaction_ids: list[str]) -> Position:
        return Position(
            id=row[0],
            asset=row[1],
            transaction_ids=transaction_ids,
            current_size=row[2],
            total_buy_amount=row[3],
            total_cost=row[4],
            avg_entry_price=row[5],
            realized_pnl_abs=row[6],
            status=PositionStatus(row[7]),
            closed_at=row[8],
            updated_at=row[9],
            created_at=row[10],
            main_thesis=row[11],
        )
