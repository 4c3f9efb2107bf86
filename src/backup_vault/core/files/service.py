"""Files service coordinating object storage and the history ledger."""

from backup_vault.core.files.storage import ObjectStorage
from backup_vault.core.history.ledger import (
    HistoryEntry,
    HistoryLedger,
    HistoryOperation,
)
from backup_vault.observability.logging import get_logger
from backup_vault.observability.metrics import metrics_registry

logger = get_logger(__name__)


class FilesService:
    """Service for backing up, restoring and removing files.

    Handles:
    - Upload/download/list/delete against object storage
    - Recording successful uploads and deletes in the history ledger

    A storage failure propagates to the caller and leaves the ledger
    untouched.
    """

    def __init__(self, object_storage: ObjectStorage, ledger: HistoryLedger):
        self._storage = object_storage
        self._ledger = ledger

    @property
    def storage(self) -> ObjectStorage:
        return self._storage

    @property
    def ledger(self) -> HistoryLedger:
        return self._ledger

    async def upload_file(self, filename: str, content: bytes) -> HistoryEntry:
        """Upload a file under its original name.

        Args:
            filename: Original filename, used verbatim as the object key
            content: File content as bytes

        Returns:
            The ledger entry recorded for the upload
        """
        with metrics_registry.track_storage_operation("upload"):
            await self._storage.put(filename, content)

        entry = self._ledger.record(HistoryOperation.UPLOAD, filename, len(content))
        metrics_registry.set_history_size(len(self._ledger))
        logger.info("File uploaded", filename=filename, size=len(content), entry_id=entry.id)
        return entry

    async def download_file(self, filename: str) -> bytes:
        """Return the full content of a stored file."""
        with metrics_registry.track_storage_operation("download"):
            content = await self._storage.get(filename)
        logger.debug("File downloaded", filename=filename, size=len(content))
        return content

    async def list_files(self) -> list[str]:
        """List every stored file key."""
        with metrics_registry.track_storage_operation("list"):
            return await self._storage.list_keys()

    async def delete_file(self, filename: str) -> HistoryEntry:
        """Delete a stored file and record the deletion."""
        with metrics_registry.track_storage_operation("delete"):
            await self._storage.delete(filename)

        entry = self._ledger.record(HistoryOperation.DELETE, filename)
        metrics_registry.set_history_size(len(self._ledger))
        logger.info("File deleted", filename=filename, entry_id=entry.id)
        return entry
