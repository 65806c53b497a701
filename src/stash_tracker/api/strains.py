"""Cultivar library endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Request, status

from stash_tracker.api.dependencies import current_user_id
from stash_tracker.api.schemas import CultivarBody
from stash_tracker.api.views import archive_view, purchase_view
from stash_tracker.domain.cultivars import CultivarInput

if TYPE_CHECKING:
    from stash_tracker.containers import AppContainer

router = APIRouter(prefix="/strains", tags=["strains"])


@router.get("")
async def list_strains(
    request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    return {"strains": container.cultivar_service.list_cultivars(user_id)}


@router.post("")
async def upsert_strain(
    body: CultivarBody, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Create a cultivar or merge into the one with the same name."""
    container: AppContainer = request.app.state.container
    cultivar_id = container.cultivar_service.upsert_by_name(
        user_id, CultivarInput(**body.model_dump())
    )
    return {"id": cultivar_id}


@router.get("/{strain_id}")
async def get_strain(
    strain_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    cultivar = container.cultivar_service.get_cultivar(user_id, strain_id)
    if cultivar is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"strain": cultivar}


@router.delete("/{strain_id}")
async def delete_strain(
    strain_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, str]:
    container: AppContainer = request.app.state.container
    container.cultivar_service.delete_cultivar(user_id, strain_id)
    return {"status": "deleted"}


@router.get("/{strain_id}/consumption")
async def strain_consumption(
    strain_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Return lifetime use, stash and finished purchases of one cultivar."""
    container: AppContainer = request.app.state.container
    cultivar = container.cultivar_service.get_cultivar(user_id, strain_id)
    if cultivar is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    summary, entries = container.insights_service.get_cultivar_consumption(
        user_id, cultivar.name
    )
    purchases = container.purchase_service
    return {
        "strain": cultivar,
        "summary": summary,
        "entries": entries,
        "active_purchases": [
            purchase_view(purchase)
            for purchase in purchases.list_active_for_strain(user_id, cultivar.name)
        ],
        "archived_purchases": [
            archive_view(entry)
            for entry in purchases.list_archived_for_strain(
                user_id, cultivar.name_lower
            )
        ],
    }
