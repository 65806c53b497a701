"""Identity: sign-in state and resolving the current user."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

logger = logging.getLogger(__name__)


class AuthenticationRequired(Exception):  # noqa: N818
    """Raised when a request needs a signed-in user and has none."""

    def __init__(self, next_path: str = "/") -> None:
        super().__init__(next_path)
        self.next_path = next_path


class InvalidCredentialsError(ValueError):
    """Raised when the identity provider rejects a sign-in or sign-up."""


@dataclass(frozen=True)
class AuthSession:
    """Tokens issued to a signed-in user."""

    user_id: UUID
    access_token: str | None
    refresh_token: str | None


class IdentityProvider(Protocol):
    """Interface for the hosted identity service."""

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Exchange credentials for a session."""

    def sign_up(self, email: str, password: str) -> AuthSession:
        """Register a user. Tokens are None until the address is confirmed."""

    def sign_out(self, access_token: str) -> None:
        """Revoke a session."""

    def resolve_user(self, access_token: str) -> UUID | None:
        """Return the user a token belongs to, or None when it is not valid."""


@dataclass
class AuthService:
    """Thin policy layer over the identity provider."""

    provider: IdentityProvider

    def sign_in(self, email: str, password: str) -> AuthSession:
        session = self.provider.sign_in(_clean_email(email), password)
        logger.info("User %s signed in", session.user_id)
        return session

    def sign_up(self, email: str, password: str) -> AuthSession:
        session = self.provider.sign_up(_clean_email(email), password)
        logger.info("User %s signed up", session.user_id)
        return session

    def sign_out(self, access_token: str) -> None:
        self.provider.sign_out(access_token)

    def require_user(self, access_token: str | None, next_path: str) -> UUID:
        """Return the token's user or raise ``AuthenticationRequired``."""
        if not access_token:
            raise AuthenticationRequired(next_path)
        user_id = self.provider.resolve_user(access_token)
        if user_id is None:
            raise AuthenticationRequired(next_path)
        return user_id


def _clean_email(email: str) -> str:
    cleaned = email.strip().lower()
    if not cleaned or "@" not in cleaned:
        raise InvalidCredentialsError("A valid email address is required")
    return cleaned
