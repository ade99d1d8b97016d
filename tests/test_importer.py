"""Tests for the JSON import loader: schema validation and accepted shapes."""

import json
from pathlib import Path

import pytest

from store.importer import ImportValidationError, load_import_file


def _write(path: Path, data) -> Path:
    path.write_text(json.dumps(data))
    return path


def test_accepts_top_level_array(tmp_path: Path) -> None:
    rows = [{"asset": "BTC", "type": "buy", "amount": 1, "price": 100, "date": "2024-01-01"}]
    assert load_import_file(_write(tmp_path / "a.json", rows)) == rows


def test_accepts_transactions_wrapper(tmp_path: Path) -> None:
    rows = [{"asset": "BTC", "type": "sell", "amount": "0.5", "price": None}]
    assert load_import_file(_write(tmp_path / "a.json", {"transactions": rows})) == rows


def test_malformed_amount_string_is_allowed(tmp_path: Path) -> None:
    rows = [{"asset": "BTC", "type": "buy", "amount": "abc"}]
    assert load_import_file(_write(tmp_path / "a.json", rows))[0]["amount"] == "abc"


@pytest.mark.parametrize(
    "rows",
    [
        [{"type": "buy", "amount": 1}],
        [{"asset": "", "type": "buy", "amount": 1}],
        [{"asset": "BTC", "type": "buy", "amount": [1]}],
        {"asset": "BTC"},
    ],
)
def test_rejects_invalid_rows(tmp_path: Path, rows) -> None:
    with pytest.raises(ImportValidationError, match="validation failed"):
        load_import_file(_write(tmp_path / "a.json", rows))


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ImportValidationError, match="not found"):
        load_import_file(tmp_path / "nope.json")


def test_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "a.json"
    path.write_text("[{")
    with pytest.raises(ImportValidationError, match="not valid JSON"):
        load_import_file(path)
