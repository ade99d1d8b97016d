"""
Structured JSON event logger for ledger operations.

Emits one JSON object per line to stderr. Events are designed to be
parsed by log aggregators (Grafana Loki, CloudWatch, ELK).

Optional webhook: when configured, alert events (position_not_found,
replay_failed, error) are POSTed to the URL.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("ledger.events")


class StructuredEventLogger:
    """Emit structured JSON events to stderr and optional webhook."""

    def __init__(
        self,
        ledger: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: Any = None,
    ) -> None:
        self._ledger = ledger
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr
        self._ALERT_EVENTS = {
            "position_not_found",
            "replay_failed",
            "error",
        }

    def _emit(self, event_type: str, **fields: Any) -> dict:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "ledger": self._ledger,
            **fields,
        }
        if self._enabled:
            self._stream.write(json.dumps(record) + "\n")
            self._stream.flush()

        if self._webhook_url and event_type in self._ALERT_EVENTS:
            self._post_webhook(record)

        return record

    def _post_webhook(self, record: dict) -> None:
        try:
            data = json.dumps(record).encode("utf-8")
            req = urllib.request.Request(
                self._webhook_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            urllib.request.urlopen(req, timeout=5)
        except Exception as exc:
            logger.warning("Webhook POST failed: %s", exc)

    def transaction_recorded(
        self,
        tx_id: str,
        asset: str,
        tx_type: str,
        position_id: str | None,
    ) -> dict:
        return self._emit(
            "transaction_recorded",
            tx_id=tx_id,
            asset=asset,
            type=tx_type,
            position_id=position_id,
        )

    def replay_started(self, position_id: str) -> dict:
        return self._emit("replay_started", position_id=position_id)

    def position_recalculated(self, position_id: str, derived: dict) -> dict:
        return self._emit("position_recalculated", position_id=position_id, **derived)

    def replay_noop(self, position_id: str, reason: str) -> dict:
        return self._emit("replay_noop", position_id=position_id, reason=reason)

    def position_not_found(self, position_id: str) -> dict:
        return self._emit("position_not_found", position_id=position_id)

    def replay_failed(self, position_id: str, reason: str) -> dict:
        return self._emit("replay_failed", position_id=position_id, reason=reason)

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)
