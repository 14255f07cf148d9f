"""Tests for the admin UI login backend."""

from unittest.mock import AsyncMock, MagicMock, patch

from cinebook.admin import auth
from cinebook.admin.auth import AdminAuth


def make_request(form: dict | None = None, session: dict | None = None) -> MagicMock:
    request = MagicMock()
    request.form = AsyncMock(return_value=form or {})
    request.session = session if session is not None else {}
    return request


async def test_login_with_configured_credentials() -> None:
    backend = AdminAuth(secret_key="test")
    request = make_request({"username": "root", "password": "s3cret"})

    with patch.object(auth.settings, "admin_username", "root"), patch.object(
        auth.settings, "admin_password", "s3cret"
    ):
        assert await backend.login(request) is True

    assert await backend.authenticate(request) is True


async def test_login_rejects_wrong_password() -> None:
    backend = AdminAuth(secret_key="test")
    request = make_request({"username": "admin", "password": "nope"})

    with patch.object(auth.settings, "admin_password", "right"):
        assert await backend.login(request) is False

    assert await backend.authenticate(request) is False


async def test_logout_clears_session() -> None:
    backend = AdminAuth(secret_key="test")
    request = make_request(session={"authenticated": True})

    await backend.logout(request)

    assert await backend.authenticate(request) is False
