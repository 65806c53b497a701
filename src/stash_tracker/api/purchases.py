"""Stash purchase endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Request, status

from stash_tracker.api.dependencies import current_user_id
from stash_tracker.api.schemas import (
    AddGramsBody,
    EntryBody,
    PurchaseBody,
    PurchaseUpdateBody,
)
from stash_tracker.api.views import archive_view, purchase_view
from stash_tracker.domain.entries import EntryInput
from stash_tracker.domain.purchases import PurchaseInput, PurchaseUpdate

if TYPE_CHECKING:
    from stash_tracker.containers import AppContainer

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.get("")
async def list_purchases(
    request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    purchases = container.purchase_service.list_purchases(user_id)
    return {"purchases": [purchase_view(purchase) for purchase in purchases]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_purchase(
    body: PurchaseBody, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    purchase = container.purchase_service.create_purchase(
        user_id, PurchaseInput(**body.model_dump())
    )
    return {"purchase": purchase_view(purchase)}


@router.get("/history")
async def purchase_history(
    request: Request,
    days: int | None = None,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Return purchases finished within the last ``days`` days."""
    container: AppContainer = request.app.state.container
    window = days if days is not None else container.settings.purchase_history_days
    archives = container.purchase_service.list_purchase_history(user_id, window)
    return {"days": window, "archives": [archive_view(entry) for entry in archives]}


@router.delete("/history/{entry_id}")
async def delete_archive(
    entry_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, str]:
    container: AppContainer = request.app.state.container
    if not container.purchase_service.remove_archive_entry(user_id, entry_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"status": "deleted"}


@router.get("/{purchase_id}")
async def get_purchase(
    purchase_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    purchase = container.purchase_service.get_purchase(user_id, purchase_id)
    if purchase is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"purchase": purchase_view(purchase)}


@router.patch("/{purchase_id}")
async def update_purchase(
    purchase_id: UUID,
    body: PurchaseUpdateBody,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    purchase = container.purchase_service.update_purchase(
        user_id, purchase_id, PurchaseUpdate(**body.model_dump())
    )
    return {"purchase": purchase_view(purchase)}


@router.delete("/{purchase_id}")
async def delete_purchase(
    purchase_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, str]:
    container: AppContainer = request.app.state.container
    container.purchase_service.delete_purchase(user_id, purchase_id)
    return {"status": "deleted"}


@router.post("/{purchase_id}/add-grams")
async def add_grams(
    purchase_id: UUID,
    body: AddGramsBody,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    purchase = container.purchase_service.add_grams(user_id, purchase_id, body.grams)
    return {"purchase": purchase_view(purchase)}


@router.post("/{purchase_id}/finish")
async def finish_purchase(
    purchase_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    """Archive a purchase and remove it from the stash."""
    container: AppContainer = request.app.state.container
    result = container.purchase_service.finish_and_archive(user_id, purchase_id)
    return {"result": result}


@router.post("/{purchase_id}/sessions", status_code=status.HTTP_201_CREATED)
async def log_session_from_purchase(
    purchase_id: UUID,
    body: EntryBody,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Log a session that draws its weight from this purchase."""
    container: AppContainer = request.app.state.container
    entry = container.purchase_service.create_entry_with_deduction(
        user_id, purchase_id, EntryInput(**body.model_dump())
    )
    return {"entry": entry}
