"""SQLAdmin authentication backend."""

import logging

from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from cinebook.config import settings

logger = logging.getLogger(__name__)


class AdminAuth(AuthenticationBackend):
    """Single shared admin login configured through settings."""

    async def login(self, request: Request) -> bool:
        form = await request.form()
        ok = (
            form.get("username") == settings.admin_username
            and form.get("password") == settings.admin_password
        )
        if ok:
            request.session.update({"authenticated": True})
        else:
            logger.warning(f"Failed admin login for {form.get('username')!r}")
        return ok

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        return request.session.get("authenticated", False)
