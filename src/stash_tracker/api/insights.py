"""History and insight endpoints."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003
from zoneinfo import ZoneInfo  # noqa: TC003

from fastapi import APIRouter, Depends, Path, Request

from stash_tracker.api.dependencies import current_user_id, viewer_timezone
from stash_tracker.timeutils import today

if TYPE_CHECKING:
    from stash_tracker.containers import AppContainer

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get("")
async def dashboard(
    request: Request,
    user_id: UUID = Depends(current_user_id),
    tz: ZoneInfo = Depends(viewer_timezone),
) -> dict[str, object]:
    """Return the last-7-days and last-30-days panels."""
    container: AppContainer = request.app.state.container
    return {"dashboard": container.insights_service.get_dashboard(user_id, tz)}


@router.get("/day")
async def day_summary(
    request: Request,
    day: date | None = None,
    user_id: UUID = Depends(current_user_id),
    tz: ZoneInfo = Depends(viewer_timezone),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    resolved = day or today(tz)
    totals, entries = container.insights_service.get_day(user_id, resolved, tz)
    return {"day": resolved, "totals": totals, "entries": entries}


@router.get("/purchases/{year}/{month}")
async def purchase_month(
    request: Request,
    year: int = Path(ge=1970),
    month: int = Path(ge=1, le=12),
    user_id: UUID = Depends(current_user_id),
    tz: ZoneInfo = Depends(viewer_timezone),
) -> dict[str, object]:
    """Return archived purchases finished in a local calendar month."""
    container: AppContainer = request.app.state.container
    summary = container.insights_service.get_purchase_month(user_id, year, month, tz)
    return {"summary": summary}
