"""History API router - read and prune the operation ledger."""

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from backup_vault.api.dependencies import HistoryLedgerDep
from backup_vault.core.history.ledger import HistoryEntry
from backup_vault.exceptions import ValidationError
from backup_vault.observability.logging import get_logger
from backup_vault.observability.metrics import metrics_registry

router = APIRouter(tags=["history"])

logger = get_logger(__name__)


class DeleteHistoryResponse(BaseModel):
    """Response for POST /delete-history."""

    message: str
    remaining_count: int = Field(serialization_alias="remainingCount")


@router.get("/history", response_model_exclude_none=True)
async def get_history(ledger: HistoryLedgerDep) -> list[HistoryEntry]:
    """Return every recorded operation in insertion order."""
    return ledger.list()


@router.post("/delete-history")
async def delete_history(
    request: Request,
    ledger: HistoryLedgerDep,
) -> DeleteHistoryResponse:
    """Remove the history entries whose ids are listed in ``{"ids": [...]}``."""
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON")

    if not isinstance(payload, dict) or "ids" not in payload:
        raise ValidationError("Request body must contain an 'ids' array")

    remaining = ledger.remove_by_ids(payload["ids"])
    metrics_registry.set_history_size(remaining)
    logger.info("History entries deleted", requested=len(payload["ids"]), remaining=remaining)

    return DeleteHistoryResponse(
        message="History entries deleted successfully",
        remaining_count=remaining,
    )
