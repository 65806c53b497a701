"""Tests for the identity service."""

import pytest

from stash_tracker.services.auth import (
    AuthenticationRequired,
    AuthService,
    InvalidCredentialsError,
)


def test_sign_up_then_sign_in(identity_provider) -> None:
    service = AuthService(identity_provider)

    created = service.sign_up(" Me@Example.com ", "hunter22")
    session = service.sign_in("me@example.com", "hunter22")

    assert session.user_id == created.user_id
    assert service.require_user(session.access_token, "/entries") == created.user_id


def test_sign_in_rejects_bad_credentials(identity_provider) -> None:
    service = AuthService(identity_provider)

    with pytest.raises(InvalidCredentialsError):
        service.sign_in("nobody@example.com", "wrong-password")
    with pytest.raises(InvalidCredentialsError):
        service.sign_in("not-an-email", "wrong-password")


@pytest.mark.parametrize("token", [None, "", "unknown"])
def test_require_user_carries_next_path(identity_provider, token) -> None:
    service = AuthService(identity_provider)

    with pytest.raises(AuthenticationRequired) as excinfo:
        service.require_user(token, "/purchases")

    assert excinfo.value.next_path == "/purchases"


def test_sign_out_revokes_token(identity_provider, auth_headers) -> None:
    service = AuthService(identity_provider)

    service.sign_out("valid-token")

    assert identity_provider.revoked == ["valid-token"]
    with pytest.raises(AuthenticationRequired):
        service.require_user("valid-token", "/")
