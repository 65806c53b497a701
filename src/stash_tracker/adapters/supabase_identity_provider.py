"""Supabase Auth implementation of the identity provider."""

import logging
from dataclasses import dataclass
from uuid import UUID

from supabase import AuthError, Client

from stash_tracker.services.auth import (
    AuthSession,
    IdentityProvider,
    InvalidCredentialsError,
)

logger = logging.getLogger(__name__)


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Identity provider backed by Supabase Auth.

    Uses its own anon-key client so sign-ins never change the session of the
    service client that talks to the tables.
    """

    client: Client

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise InvalidCredentialsError(str(exc)) from exc
        return _to_session(response)

    def sign_up(self, email: str, password: str) -> AuthSession:
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except AuthError as exc:
            raise InvalidCredentialsError(str(exc)) from exc
        return _to_session(response)

    def sign_out(self, access_token: str) -> None:
        self.client.auth.admin.sign_out(access_token)

    def resolve_user(self, access_token: str) -> UUID | None:
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError:
            logger.info("Rejected access token", exc_info=True)
            return None
        if response is None or response.user is None:
            return None
        return UUID(str(response.user.id))


def _to_session(response: object) -> AuthSession:
    user = getattr(response, "user", None)
    if user is None:
        raise InvalidCredentialsError("Identity provider returned no user")
    session = getattr(response, "session", None)
    return AuthSession(
        user_id=UUID(str(user.id)),
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
    )
