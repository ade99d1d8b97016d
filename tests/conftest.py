"""Pytest fixtures: fixed clock, transaction builder, in-memory ledger."""

from datetime import datetime, timezone

import pytest

from ledger_core.contracts import Position, Transaction
from ledger_core.engine import PositionReplayEngine
from store.memory import InMemoryLedger

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_tx(
    tx_id: str,
    tx_type: str,
    amount,
    price,
    date="2024-01-02",
    created_at: str | None = None,
) -> Transaction:
    return Transaction(id=tx_id, type=tx_type, amount=amount, price=price, date=date, created_at=created_at, asset="BTC")


@pytest.fixture
def tx():
    return make_tx


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def engine(ledger: InMemoryLedger, clock) -> PositionReplayEngine:
    return PositionReplayEngine(ledger, ledger, ledger, clock=clock)


@pytest.fixture
def seed(ledger: InMemoryLedger):
    """Put transactions into the ledger and a position that references them."""

    def _seed(txs: list[Transaction], position_id: str = "pos1", extra_ids: list[str] | None = None) -> Position:
        ledger.add_transactions(txs)
        ids = [t.id for t in txs] + list(extra_ids or [])
        return ledger.add_position(Position(id=position_id, asset="BTC", transaction_ids=ids))

    return _seed
