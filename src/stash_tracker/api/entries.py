"""Session entry endpoints."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003
from zoneinfo import ZoneInfo  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Request, status

from stash_tracker.api.dependencies import current_user_id, viewer_timezone
from stash_tracker.api.schemas import EntryBody
from stash_tracker.domain.entries import EntryInput

if TYPE_CHECKING:
    from stash_tracker.containers import AppContainer

router = APIRouter(prefix="/entries", tags=["entries"])


@router.get("")
async def list_entries(
    request: Request,
    day: date | None = None,
    start: int | None = None,
    end: int | None = None,
    user_id: UUID = Depends(current_user_id),
    tz: ZoneInfo = Depends(viewer_timezone),
) -> dict[str, object]:
    """Return daily-view sessions for a local day, a time range or all time."""
    container: AppContainer = request.app.state.container
    service = container.entry_service
    if day is not None:
        entries = service.list_for_day(user_id, day, tz)
    elif start is not None and end is not None:
        entries = service.list_between(user_id, start, end)
    else:
        entries = service.list_all(user_id)
    return {"entries": entries}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_entry(
    body: EntryBody,
    request: Request,
    deduct: bool = True,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Log a session, drawing its weight from a matching purchase by default."""
    container: AppContainer = request.app.state.container
    data = EntryInput(**body.model_dump())
    if deduct:
        entry = container.purchase_service.create_entry_auto_deduct(user_id, data)
    else:
        entry = container.entry_service.create_entry(user_id, data)
    return {"entry": entry}


@router.get("/{entry_id}")
async def get_entry(
    entry_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    entry = container.entry_service.get_entry(user_id, entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"entry": entry}


@router.patch("/{entry_id}")
async def update_entry(
    entry_id: UUID,
    body: EntryBody,
    request: Request,
    user_id: UUID = Depends(current_user_id),
) -> dict[str, object]:
    """Apply a partial edit to a session."""
    container: AppContainer = request.app.state.container
    service = container.entry_service
    if service.get_entry(user_id, entry_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    service.update_entry(user_id, entry_id, EntryInput(**body.model_dump()))
    return {"entry": service.get_entry(user_id, entry_id)}


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: UUID, request: Request, user_id: UUID = Depends(current_user_id)
) -> dict[str, str]:
    container: AppContainer = request.app.state.container
    container.entry_service.delete_entry(user_id, entry_id)
    return {"status": "deleted"}
