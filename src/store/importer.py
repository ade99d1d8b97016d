"""
Bulk transaction import: JSON file -> validated list of records.

Accepts a top-level array, or an object with a "transactions" array.
Validated against import.schema.json. Amount/price may be strings; they are
stored as given and coerced at replay.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

from ledger_core.contracts import LedgerError

DEFAULT_SCHEMA_PATH = Path(__file__).with_name("import.schema.json")


class ImportValidationError(LedgerError):
    """Raised when an import file can't be read or fails schema validation."""


def load_import_file(path: str | Path, schema_path: str | Path | None = None) -> list[dict[str, Any]]:
    """Read and validate an import file. Returns the raw transaction dicts."""
    import_path = Path(path)
    if not import_path.exists():
        raise ImportValidationError(f"Import file not found: {import_path}")
    try:
        with open(import_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ImportValidationError(f"Import file is not valid JSON: {exc}") from exc

    if isinstance(data, dict) and "transactions" in data:
        data = data["transactions"]

    schema_file = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH
    with open(schema_file) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        where = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ImportValidationError(f"Import validation failed at {where}: {exc.message}") from exc
    return data
