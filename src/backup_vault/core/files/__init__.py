"""Files core logic."""

from backup_vault.core.files.service import FilesService
from backup_vault.core.files.storage import (
    LocalObjectStorage,
    ObjectStorage,
    S3ObjectStorage,
    create_object_storage,
)

__all__ = [
    "FilesService",
    "LocalObjectStorage",
    "ObjectStorage",
    "S3ObjectStorage",
    "create_object_storage",
]
