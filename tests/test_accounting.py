"""Tests for the accounting fold: coercion, buy/sell rules, finalize."""

import math

import pytest

from ledger_core.accounting import EPSILON, LedgerState, coerce_number, finalize, replay
from ledger_core.contracts import PositionStatus


class TestCoerceNumber:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (10, 10.0),
            (2.5, 2.5),
            ("12.5", 12.5),
            (" 3 ", 3.0),
            ("1e3", 1000.0),
            (True, 1.0),
        ],
    )
    def test_numeric(self, value, expected) -> None:
        assert coerce_number(value) == (expected, False)

    @pytest.mark.parametrize("value", ["abc", "", None, float("nan"), float("inf"), "NaN", [1], {}])
    def test_malformed_becomes_zero(self, value) -> None:
        assert coerce_number(value) == (0.0, True)


class TestReplayRules:
    def test_buy_accumulates(self, tx) -> None:
        state = replay([tx("a", "buy", 10, 100), tx("b", "buy", 5, 200)])
        assert state.current_size == 15
        assert state.total_buy_amount == 15
        assert state.total_cost == 2000
        assert state.realized_pnl_abs == 0

    def test_sell_realizes_against_lifetime_average(self, tx) -> None:
        state = replay([tx("a", "buy", 10, 100), tx("b", "buy", 10, 200), tx("c", "sell", 5, 180)])
        # avg 150 -> (180 - 150) * 5
        assert state.realized_pnl_abs == pytest.approx(150.0)
        assert state.current_size == 15

    def test_sell_does_not_consume_cost_basis(self, tx) -> None:
        state = replay([tx("a", "buy", 10, 100), tx("b", "sell", 4, 120), tx("c", "buy", 2, 160)])
        assert state.total_buy_amount == 12
        assert state.total_cost == 1320
        # second sell still measured against lifetime average 110
        state.apply(tx("d", "sell", 8, 110))
        assert state.realized_pnl_abs == pytest.approx(80.0)

    def test_sell_before_buy_uses_zero_entry(self, tx) -> None:
        state = replay([tx("a", "sell", 5, 50)])
        assert state.realized_pnl_abs == 250
        assert state.current_size == -5

    def test_unknown_type_is_skipped(self, tx) -> None:
        state = replay([tx("a", "buy", 1, 10), tx("b", "transfer", 100, 100), tx("c", "BUY", 1, 10)])
        assert state.current_size == 1
        assert state.total_cost == 10
        assert state.skipped_types == 2

    def test_malformed_amount_contributes_zero(self, tx) -> None:
        state = replay([tx("a", "buy", "abc", 100), tx("b", "buy", 2, None)])
        assert state.current_size == 2
        assert state.total_buy_amount == 2
        assert state.total_cost == 0
        assert state.coerced_values == 2

    def test_string_numbers_are_used(self, tx) -> None:
        state = replay([tx("a", "buy", "10", "100")])
        assert state.total_cost == 1000
        assert state.coerced_values == 0


class TestFinalize:
    def test_open_position(self, tx, now) -> None:
        state = LedgerState(current_size=15, total_buy_amount=15, total_cost=2000)
        d = finalize(state, tx("a", "buy", 5, 200), now)
        assert d.status == PositionStatus.OPEN
        assert d.closed_at is None
        assert d.avg_entry_price == pytest.approx(133.3333333)
        assert d.updated_at == now.isoformat()

    def test_near_zero_closes_and_normalizes(self, tx, now) -> None:
        state = LedgerState(current_size=3e-9, total_buy_amount=1, total_cost=1)
        d = finalize(state, tx("a", "sell", 1, 1, created_at="2024-01-05T10:00:00+00:00"), now)
        assert d.current_size == 0.0
        assert math.copysign(1.0, d.current_size) == 1.0
        assert d.status == PositionStatus.CLOSED
        assert d.closed_at == "2024-01-05T10:00:00+00:00"

    def test_closed_at_falls_back_to_now(self, tx, now) -> None:
        d = finalize(LedgerState(), tx("a", "sell", 1, 1), now)
        assert d.status == PositionStatus.CLOSED
        assert d.closed_at == now.isoformat()

    def test_exact_epsilon_closes(self, tx, now) -> None:
        d = finalize(LedgerState(current_size=EPSILON), tx("a", "buy", 1, 1), now)
        assert d.status == PositionStatus.CLOSED

    def test_just_above_epsilon_stays_open(self, tx, now) -> None:
        d = finalize(LedgerState(current_size=2e-8), tx("a", "buy", 1, 1), now)
        assert d.status == PositionStatus.OPEN
        assert d.current_size == 2e-8

    def test_negative_size_is_not_coerced(self, tx, now) -> None:
        d = finalize(LedgerState(current_size=-5, realized_pnl_abs=250), tx("a", "sell", 5, 50), now)
        assert d.current_size == -5
        assert d.status == PositionStatus.OPEN
        assert d.closed_at is None

    def test_tiny_negative_drift_closes(self, tx, now) -> None:
        d = finalize(LedgerState(current_size=-4e-9), tx("a", "sell", 1, 1), now)
        assert d.current_size == 0.0
        assert d.status == PositionStatus.CLOSED

    def test_avg_entry_zero_without_buys(self, tx, now) -> None:
        d = finalize(LedgerState(current_size=-1), tx("a", "sell", 1, 1), now)
        assert d.avg_entry_price == 0.0
