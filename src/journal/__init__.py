"""Append-only ledger journal (JSON lines)."""

from journal.writer import JournalWriter

__all__ = ["JournalWriter"]
