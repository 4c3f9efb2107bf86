"""API routers for Backup Vault."""

from backup_vault.api.files import router as files_router
from backup_vault.api.history import router as history_router

__all__ = [
    "files_router",
    "history_router",
]
