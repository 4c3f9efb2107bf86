"""Dependency injection for API routers."""

from typing import Annotated

from fastapi import Depends, Request

from backup_vault.core.files.service import FilesService
from backup_vault.core.history.ledger import HistoryLedger


def get_files_service(request: Request) -> FilesService:
    """Get FilesService from app state."""
    return request.app.state.files_service


def get_history_ledger(request: Request) -> HistoryLedger:
    """Get the history ledger from app state."""
    return request.app.state.ledger


FilesServiceDep = Annotated[FilesService, Depends(get_files_service)]
HistoryLedgerDep = Annotated[HistoryLedger, Depends(get_history_ledger)]
