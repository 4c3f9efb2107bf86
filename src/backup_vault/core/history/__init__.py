"""Operation history ledger."""

from backup_vault.core.history.ledger import HistoryEntry, HistoryLedger, HistoryOperation

__all__ = ["HistoryEntry", "HistoryLedger", "HistoryOperation"]
