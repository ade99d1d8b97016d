"""
Configuration loader: reads config.yaml, applies env var overrides.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    JournalConfig,
    LedgerConfig,
    StoreConfig,
    load_config,
)

__all__ = [
    "AlertingConfig",
    "AppConfig",
    "JournalConfig",
    "LedgerConfig",
    "StoreConfig",
    "load_config",
]
