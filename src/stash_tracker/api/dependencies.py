"""Request dependencies shared by the routers."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import Header, HTTPException, Request, status

if TYPE_CHECKING:
    from stash_tracker.containers import AppContainer

BEARER = "bearer"


def bearer_token(authorization: str | None) -> str | None:
    """Return the token of an ``Authorization: Bearer`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != BEARER or not token.strip():
        return None
    return token.strip()


async def current_user_id(
    request: Request, authorization: str | None = Header(default=None)
) -> UUID:
    """Resolve the signed-in user or send the client to the login page."""
    container: AppContainer = request.app.state.container
    return container.auth_service.require_user(
        bearer_token(authorization), request.url.path
    )


async def viewer_timezone(
    request: Request, x_timezone: str | None = Header(default=None)
) -> ZoneInfo:
    """Return the viewer's timezone from ``X-Timezone`` or the configured default."""
    container: AppContainer = request.app.state.container
    name = x_timezone or container.settings.default_timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown timezone: {name}",
        ) from exc
