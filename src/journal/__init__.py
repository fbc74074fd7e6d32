"""Append-only audit journal (JSON lines)."""

from journal.writer import JournalWriter

__all__ = ["JournalWriter"]
