"""
Paper execution: session wiring and single-writer SQLite state.
Restart-safe. No live capital.
"""

from execution.session import TreasurySession
from execution.store import TreasuryStore

__all__ = ["TreasurySession", "TreasuryStore"]
