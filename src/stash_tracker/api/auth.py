"""Sign-in, sign-up and sign-out endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Header, Request, status

from stash_tracker.api.dependencies import bearer_token
from stash_tracker.api.schemas import Credentials
from stash_tracker.services.auth import AuthenticationRequired

if TYPE_CHECKING:
    from stash_tracker.containers import AppContainer

DEFAULT_LANDING = "/entries"

router = APIRouter(tags=["auth"])


@router.get("/login")
async def login_info(next: str = DEFAULT_LANDING) -> dict[str, str]:  # noqa: A002
    """Tell a redirected client where to sign in and where to go afterwards."""
    return {"status": "sign-in required", "sign_in": "/auth/login", "next": next}


@router.post("/auth/login")
async def login(body: Credentials, request: Request) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    session = container.auth_service.sign_in(body.email, body.password)
    return {"session": session}


@router.post("/auth/signup", status_code=status.HTTP_201_CREATED)
async def signup(body: Credentials, request: Request) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    session = container.auth_service.sign_up(body.email, body.password)
    return {"session": session}


@router.post("/auth/logout")
async def logout(
    request: Request, authorization: str | None = Header(default=None)
) -> dict[str, str]:
    container: AppContainer = request.app.state.container
    token = bearer_token(authorization)
    if token is None:
        raise AuthenticationRequired(request.url.path)
    container.auth_service.sign_out(token)
    return {"status": "signed out"}
