"""Maintenance endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request

from stash_tracker.api.dependencies import current_user_id

if TYPE_CHECKING:
    from stash_tracker.containers import AppContainer

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("/backfill")
async def backfill(
    request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Rewrite the caller's legacy rows with canonical fields."""
    container: AppContainer = request.app.state.container
    return {"report": container.migration_service.backfill(user_id)}
