"""
Config loader: YAML file -> frozen dataclass tree.

The store path can be overridden with LEDGER_DB_PATH (e.g. from a .env file).
Config file holds only non-secret values.
"""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_CLOSURE_EPSILON = 1e-8


@dataclass(frozen=True)
class StoreConfig:
    path: str = "data/ledger.db"


@dataclass(frozen=True)
class LedgerConfig:
    closure_epsilon: float = DEFAULT_CLOSURE_EPSILON


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/journal.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    store: StoreConfig
    ledger: LedgerConfig
    journal: JournalConfig
    alerting: AlertingConfig = AlertingConfig()


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Load configuration from a YAML file.

    Environment overrides:
      - LEDGER_DB_PATH: replaces store.path
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    s_raw = raw.get("store") or {}
    store_cfg = StoreConfig(
        path=os.environ.get("LEDGER_DB_PATH") or str(s_raw.get("path", "data/ledger.db")),
    )

    l_raw = raw.get("ledger") or {}
    epsilon = float(l_raw.get("closure_epsilon", DEFAULT_CLOSURE_EPSILON))
    if epsilon < 0:
        raise ValueError(f"ledger.closure_epsilon must be >= 0, got {epsilon}")
    ledger_cfg = LedgerConfig(closure_epsilon=epsilon)

    j_raw = raw.get("journal") or {}
    j_cfg = JournalConfig(
        path=str(j_raw.get("path", "data/journal.jsonl")),
        echo_stdout=bool(j_raw.get("echo_stdout", False)),
    )

    a_raw = raw.get("alerting") or {}
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=str(a_raw.get("webhook_url", "")),
    )

    return AppConfig(
        store=store_cfg,
        ledger=ledger_cfg,
        journal=j_cfg,
        alerting=a_cfg,
    )
