"""In-process ledger of upload and delete operations."""

import itertools
import threading
from collections.abc import Iterable
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from backup_vault.exceptions import ValidationError


class HistoryOperation(str, Enum):
    """Kind of operation recorded in the ledger."""

    UPLOAD = "upload"
    DELETE = "delete"


class HistoryEntry(BaseModel):
    """A single immutable ledger entry."""

    model_config = ConfigDict(frozen=True)

    id: int
    operation: HistoryOperation
    filename: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    size: int | None = None


class HistoryLedger:
    """Append-only, filterable log of operation events.

    Entries are kept in insertion order. Ids come from a counter shared by
    every ``record`` call, so they are unique and strictly increasing for the
    lifetime of the ledger. Append and removal run under a single lock.
    The ledger is volatile: nothing is persisted across restarts.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def record(
        self,
        operation: HistoryOperation | str,
        filename: str,
        size: int | None = None,
    ) -> HistoryEntry:
        """Append a new entry and return it.

        Callers record only after the corresponding storage operation
        succeeded, so the ledger reflects what actually happened.
        """
        operation = HistoryOperation(operation)
        with self._lock:
            entry = HistoryEntry(
                id=next(self._ids),
                operation=operation,
                filename=filename,
                size=size if operation is HistoryOperation.UPLOAD else None,
            )
            self._entries.append(entry)
        return entry

    def list(self) -> list[HistoryEntry]:
        """Return a snapshot of every entry in insertion order."""
        with self._lock:
            return list(self._entries)

    def remove_by_ids(self, ids: Iterable[int]) -> int:
        """Remove every entry whose id is in ``ids``.

        Args:
            ids: Collection of integer entry ids

        Returns:
            Number of entries remaining after removal

        Raises:
            ValidationError: If ``ids`` is not a collection of integers; the
                ledger is left unmodified
        """
        wanted = _coerce_ids(ids)
        with self._lock:
            if wanted:
                self._entries = [e for e in self._entries if e.id not in wanted]
            return len(self._entries)

    def clear(self) -> None:
        """Drop every entry. Id generation continues from where it was."""
        with self._lock:
            self._entries = []


def _coerce_ids(ids: object) -> frozenset[int]:
    if not isinstance(ids, (list, tuple, set, frozenset)):
        raise ValidationError(
            "ids must be an array of entry ids",
            {"received": type(ids).__name__},
        )
    for value in ids:
        # bool is an int subclass but never a valid id
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(
                "ids must contain only integer entry ids",
                {"invalid": repr(value)},
            )
    return frozenset(ids)
