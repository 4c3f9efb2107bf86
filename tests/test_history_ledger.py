"""Tests for the history ledger."""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from backup_vault.core.history.ledger import (
    HistoryEntry,
    HistoryLedger,
    HistoryOperation,
)
from backup_vault.exceptions import ValidationError


@pytest.fixture
def ledger():
    """Create an empty ledger."""
    return HistoryLedger()


@pytest.fixture
def populated_ledger(ledger):
    """Ledger holding three entries."""
    ledger.record(HistoryOperation.UPLOAD, "a.txt", 10)
    ledger.record(HistoryOperation.UPLOAD, "b.txt", 20)
    ledger.record(HistoryOperation.DELETE, "a.txt")
    return ledger


def test_new_ledger_is_empty(ledger):
    """A fresh ledger holds nothing."""
    assert ledger.list() == []
    assert len(ledger) == 0


def test_record_upload_then_delete(ledger):
    """Upload followed by delete yields two ordered entries with distinct ids."""
    upload = ledger.record(HistoryOperation.UPLOAD, "a.txt", 100)
    delete = ledger.record(HistoryOperation.DELETE, "a.txt")

    entries = ledger.list()
    assert len(entries) == 2
    assert entries == [upload, delete]
    assert upload.id != delete.id
    assert entries[0].operation is HistoryOperation.UPLOAD
    assert entries[1].operation is HistoryOperation.DELETE


def test_record_sets_size_only_for_uploads(ledger):
    """Delete entries never carry a size."""
    upload = ledger.record("upload", "a.txt", 100)
    delete = ledger.record("delete", "a.txt", 100)

    assert upload.size == 100
    assert delete.size is None


def test_record_accepts_string_operation(ledger):
    entry = ledger.record("upload", "a.txt", 1)
    assert entry.operation is HistoryOperation.UPLOAD


def test_record_rejects_unknown_operation(ledger):
    with pytest.raises(ValueError):
        ledger.record("rename", "a.txt")
    assert len(ledger) == 0


def test_record_timestamp_is_utc(ledger):
    entry = ledger.record(HistoryOperation.UPLOAD, "a.txt", 1)
    assert isinstance(entry.timestamp, datetime)
    assert entry.timestamp.utcoffset().total_seconds() == 0


def test_ids_strictly_increase(ledger):
    ids = [ledger.record(HistoryOperation.UPLOAD, f"f{i}", i).id for i in range(50)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 50


def test_entries_are_immutable(ledger):
    entry = ledger.record(HistoryOperation.UPLOAD, "a.txt", 1)
    with pytest.raises(PydanticValidationError):
        entry.filename = "b.txt"


def test_list_returns_snapshot(populated_ledger):
    """Mutating the returned list does not touch the ledger."""
    snapshot = populated_ledger.list()
    snapshot.clear()
    assert len(populated_ledger) == 3


def test_remove_by_ids(populated_ledger):
    """Removing the first and third entries keeps only the second."""
    id1, id2, id3 = [e.id for e in populated_ledger.list()]

    remaining = populated_ledger.remove_by_ids({id1, id3})

    assert remaining == 1
    assert [e.id for e in populated_ledger.list()] == [id2]


def test_remove_by_ids_keeps_relative_order(ledger):
    entries = [ledger.record(HistoryOperation.UPLOAD, f"f{i}", i) for i in range(6)]
    ledger.remove_by_ids([entries[1].id, entries[4].id])

    assert [e.filename for e in ledger.list()] == ["f0", "f2", "f3", "f5"]


def test_remove_empty_set_is_noop(populated_ledger):
    before = populated_ledger.list()

    remaining = populated_ledger.remove_by_ids(set())

    assert remaining == 3
    assert populated_ledger.list() == before


def test_remove_unknown_ids_is_noop(populated_ledger):
    before = populated_ledger.list()

    remaining = populated_ledger.remove_by_ids([9999, 12345])

    assert remaining == 3
    assert populated_ledger.list() == before


@pytest.mark.parametrize(
    "bad_ids",
    [None, "1,2,3", 5, {"id": 1}, [1, "2"], [1.5], [True]],
)
def test_remove_rejects_malformed_ids(populated_ledger, bad_ids):
    """Malformed input raises and leaves the ledger unmodified."""
    before = populated_ledger.list()

    with pytest.raises(ValidationError):
        populated_ledger.remove_by_ids(bad_ids)

    assert populated_ledger.list() == before


def test_clear_keeps_id_sequence(populated_ledger):
    last_id = populated_ledger.list()[-1].id
    populated_ledger.clear()

    entry = populated_ledger.record(HistoryOperation.UPLOAD, "z.txt", 1)

    assert len(populated_ledger) == 1
    assert entry.id > last_id


def test_concurrent_record_from_threads(ledger):
    """Records from many threads never share an id."""

    def record_many(worker: int) -> list[int]:
        return [
            ledger.record(HistoryOperation.UPLOAD, f"w{worker}-{i}", i).id
            for i in range(200)
        ]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(record_many, range(8)))

    all_ids = [i for ids in results for i in ids]
    assert len(all_ids) == 1600
    assert len(set(all_ids)) == 1600
    assert len(ledger) == 1600


def test_concurrent_record_and_remove_from_threads(ledger):
    """Interleaved appends and removals never lose or duplicate entries."""
    seed = [ledger.record(HistoryOperation.UPLOAD, f"seed{i}", i) for i in range(100)]
    to_remove = [e.id for e in seed[::2]]

    def append():
        for i in range(100):
            ledger.record(HistoryOperation.DELETE, f"new{i}")

    def remove():
        for entry_id in to_remove:
            ledger.remove_by_ids([entry_id])

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [pool.submit(append), pool.submit(remove)]
        for future in futures:
            future.result()

    ids = [e.id for e in ledger.list()]
    assert len(ids) == 150
    assert len(set(ids)) == 150
    assert not set(to_remove) & set(ids)


@pytest.mark.asyncio
async def test_concurrent_record_from_tasks(ledger):
    """Records from interleaved asyncio tasks never share an id."""

    async def record_one(i: int) -> HistoryEntry:
        await asyncio.sleep(0)
        return ledger.record(HistoryOperation.UPLOAD, f"f{i}", i)

    entries = await asyncio.gather(*(record_one(i) for i in range(500)))

    assert len({e.id for e in entries}) == 500


def test_entry_serialization_omits_missing_size(ledger):
    entry = ledger.record(HistoryOperation.DELETE, "a.txt")
    data = entry.model_dump(mode="json", exclude_none=True)

    assert data["operation"] == "delete"
    assert data["filename"] == "a.txt"
    assert "size" not in data
    assert datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
