"""Tests for date parsing and canonical transaction order."""

from datetime import date, datetime, timedelta, timezone

import pytest

from ledger_core.ordering import OLDEST_INSTANT, order_transactions, parse_instant


class TestParseInstant:
    def test_iso_date(self) -> None:
        assert parse_instant("2024-01-02") == datetime(2024, 1, 2, tzinfo=timezone.utc)

    def test_iso_with_z(self) -> None:
        assert parse_instant("2024-01-02T10:30:00Z") == datetime(2024, 1, 2, 10, 30, tzinfo=timezone.utc)

    def test_offset_normalized_to_utc(self) -> None:
        assert parse_instant("2024-01-02T10:00:00+02:00") == datetime(2024, 1, 2, 8, 0, tzinfo=timezone.utc)

    def test_naive_datetime_taken_as_utc(self) -> None:
        assert parse_instant(datetime(2024, 1, 2, 9)) == datetime(2024, 1, 2, 9, tzinfo=timezone.utc)

    def test_date_object(self) -> None:
        assert parse_instant(date(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_epoch_seconds_and_millis(self) -> None:
        expected = datetime(2024, 1, 2, tzinfo=timezone.utc)
        ts = expected.timestamp()
        assert parse_instant(ts) == expected
        assert parse_instant(int(ts * 1000)) == expected

    @pytest.mark.parametrize("value", [None, "", "not a date", "2024-13-45", float("nan"), True, object()])
    def test_unparseable(self, value) -> None:
        assert parse_instant(value) is None


class TestOrderTransactions:
    def test_ascending_by_date(self, tx) -> None:
        txs = [tx("c", "buy", 1, 1, "2024-01-03"), tx("a", "buy", 1, 1, "2024-01-01"), tx("b", "buy", 1, 1, "2024-01-02")]
        assert [t.id for t in order_transactions(txs)] == ["a", "b", "c"]

    def test_ties_keep_load_order(self, tx) -> None:
        txs = [tx("x", "sell", 1, 1, "2024-01-02"), tx("y", "buy", 1, 1, "2024-01-02"), tx("z", "buy", 1, 1, "2024-01-01")]
        assert [t.id for t in order_transactions(txs)] == ["z", "x", "y"]

    def test_unparseable_dates_sort_first(self, tx) -> None:
        txs = [tx("a", "buy", 1, 1, "2024-01-01"), tx("bad", "buy", 1, 1, "garbage"), tx("none", "buy", 1, 1, None)]
        assert [t.id for t in order_transactions(txs)] == ["bad", "none", "a"]

    def test_mixed_representations_compare(self, tx) -> None:
        base = datetime(2024, 1, 2, tzinfo=timezone.utc)
        txs = [
            tx("iso", "buy", 1, 1, "2024-01-02T12:00:00Z"),
            tx("epoch", "buy", 1, 1, (base + timedelta(hours=1)).timestamp()),
            tx("naive", "buy", 1, 1, datetime(2024, 1, 2, 0, 30)),
        ]
        assert [t.id for t in order_transactions(txs)] == ["naive", "epoch", "iso"]

    def test_oldest_instant_is_minimum(self) -> None:
        assert OLDEST_INSTANT < datetime(1, 1, 2, tzinfo=timezone.utc)
