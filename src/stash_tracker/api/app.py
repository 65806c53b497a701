"""FastAPI application factory."""

import logging
from urllib.parse import urlencode

from fastapi import FastAPI, Header, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from supabase import PostgrestAPIError

from stash_tracker.api.auth import DEFAULT_LANDING
from stash_tracker.api.auth import router as auth_router
from stash_tracker.api.dependencies import bearer_token
from stash_tracker.api.entries import router as entries_router
from stash_tracker.api.insights import router as insights_router
from stash_tracker.api.maintenance import router as maintenance_router
from stash_tracker.api.purchases import router as purchases_router
from stash_tracker.api.strains import router as strains_router
from stash_tracker.app_logging import configure_logging
from stash_tracker.containers import AppContainer
from stash_tracker.services.auth import AuthenticationRequired, InvalidCredentialsError
from stash_tracker.services.purchases import (
    PurchaseConflictError,
    PurchaseNotFoundError,
)

LOGIN_PATH = "/login"


def login_redirect(next_path: str) -> RedirectResponse:
    """Send the client to sign in, returning to ``next_path`` afterwards."""
    return RedirectResponse(
        f"{LOGIN_PATH}?{urlencode({'next': next_path})}",
        status_code=status.HTTP_303_SEE_OTHER,
    )


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    app = FastAPI(title="Stash Tracker")
    app.state.container = container

    app.include_router(auth_router)
    app.include_router(entries_router)
    app.include_router(strains_router)
    app.include_router(purchases_router)
    app.include_router(insights_router)
    app.include_router(maintenance_router)

    @app.exception_handler(AuthenticationRequired)
    async def authentication_required(
        request: Request, exc: AuthenticationRequired
    ) -> RedirectResponse:
        return login_redirect(exc.next_path)

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)}
        )

    @app.exception_handler(PurchaseNotFoundError)
    async def purchase_not_found(
        request: Request, exc: PurchaseNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "Purchase not found"},
        )

    @app.exception_handler(PurchaseConflictError)
    async def purchase_conflict(
        request: Request, exc: PurchaseConflictError
    ) -> JSONResponse:
        logger.warning("Gave up updating purchase %s after conflicts", exc)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "Purchase was changed concurrently, try again"},
        )

    @app.exception_handler(ValueError)
    async def invalid_value(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)}
        )

    @app.exception_handler(PostgrestAPIError)
    @app.exception_handler(RuntimeError)
    async def write_failed(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Store request failed: %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "The data store rejected the request"},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/", response_model=None)
    async def root(
        request: Request, authorization: str | None = Header(default=None)
    ) -> RedirectResponse:
        """Send signed-in users to their log and everyone else to sign in."""
        state_container: AppContainer = request.app.state.container
        token = bearer_token(authorization)
        if token and state_container.auth_service.provider.resolve_user(token):
            return RedirectResponse(
                DEFAULT_LANDING, status_code=status.HTTP_303_SEE_OTHER
            )
        return login_redirect(DEFAULT_LANDING)

    return app
