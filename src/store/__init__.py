"""
Ledger storage: SQLite store, in-memory ledger, transaction recorder, JSON import.

Depends on ledger_core.contracts; no dependency from ledger_core back to store.
"""

from store.importer import ImportValidationError, load_import_file
from store.ledger_store import SQLiteLedgerStore
from store.memory import InMemoryLedger
from store.recorder import RecordResult, TransactionRecorder

__all__ = [
    "ImportValidationError",
    "InMemoryLedger",
    "RecordResult",
    "SQLiteLedgerStore",
    "TransactionRecorder",
    "load_import_file",
]
