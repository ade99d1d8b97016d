"""
Transaction ordering: parse `date` into a comparable UTC instant, stable sort ascending.

Unparseable dates become the oldest possible instant so they sort first.
Ties keep load order (sorted() is stable).
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Sequence

from ledger_core.contracts import Transaction

OLDEST_INSTANT = datetime.min.replace(tzinfo=timezone.utc)

# Epoch numbers above this are milliseconds, not seconds (year ~5138 in seconds).
_EPOCH_MS_THRESHOLD = 1e11


def _utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_instant(value: Any) -> datetime | None:
    """Interpret a stored date as a UTC instant. Returns None when it can't.

    Accepts datetime, date, ISO-8601 strings (with or without offset, 'Z'
    suffix allowed, bare YYYY-MM-DD), and epoch numbers in seconds or
    milliseconds. Naive values are taken as UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        seconds = value / 1000.0 if abs(value) >= _EPOCH_MS_THRESHOLD else float(value)
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return _utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def sort_key(tx: Transaction) -> datetime:
    instant = parse_instant(tx.date)
    return instant if instant is not None else OLDEST_INSTANT


def order_transactions(transactions: Sequence[Transaction]) -> list[Transaction]:
    """Return transactions earliest first. Deterministic for a given load order."""
    return sorted(transactions, key=sort_key)
