"""
Structured ledger journal: append-only JSON lines. One line per recorded, edited
or deleted transaction and per position replay.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


def _serialize(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if hasattr(obj, "__dict__") and not isinstance(obj, type):
        return {k: _serialize(v) for k, v in vars(obj).items() if not k.startswith("_")}
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize(x) for x in obj]
    return obj


class JournalWriter:
    """Append-only journal. Each line is a JSON object with event type and payload."""

    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout

    def _write(self, event_type: str, payload: dict) -> None:
        record = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload}
        line = json.dumps(_serialize(record)) + "\n"
        with open(self._path, "a") as f:
            f.write(line)
        if self._echo:
            print(line.rstrip())

    def transaction_recorded(self, tx_id: str, asset: str, tx_type: str, amount: Any, price: Any, position_id: str | None, **extra: Any) -> None:
        self._write(
            "transaction_recorded",
            {"tx_id": tx_id, "asset": asset, "type": tx_type, "amount": amount, "price": price, "position_id": position_id, **extra},
        )

    def transaction_updated(self, tx_id: str, changes: dict, position_id: str | None, **extra: Any) -> None:
        self._write("transaction_updated", {"tx_id": tx_id, "changes": changes, "position_id": position_id, **extra})

    def transaction_deleted(self, tx_id: str, position_id: str | None, **extra: Any) -> None:
        self._write("transaction_deleted", {"tx_id": tx_id, "position_id": position_id, **extra})

    def position_recalculated(self, position_id: str, derived: Any, transactions: int, **extra: Any) -> None:
        self._write(
            "position_recalculated",
            {"position_id": position_id, "derived": derived.as_record(), "transactions": transactions, **extra},
        )

    def replay_skipped(self, position_id: str, outcome: str, reason: str, **extra: Any) -> None:
        self._write("replay_skipped", {"position_id": position_id, "outcome": outcome, "reason": reason, **extra})
