"""Request dependencies: caller identity and role checks.

Authentication happens upstream; the gateway forwards the caller as
``X-User-Id`` / ``X-User-Role`` headers.
"""

import uuid
from dataclasses import dataclass

from fastapi import Depends, Header

from cinebook.exceptions import ForbiddenError, UnauthorizedError
from cinebook.models.enums import UserRole

ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPERADMIN})


@dataclass(frozen=True)
class Requester:
    user_id: uuid.UUID | None
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


async def get_requester(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Requester:
    user_id = None
    if x_user_id:
        try:
            user_id = uuid.UUID(x_user_id)
        except ValueError as exc:
            raise UnauthorizedError("Invalid X-User-Id header") from exc

    try:
        role = UserRole(x_user_role.lower()) if x_user_role else UserRole.USER
    except ValueError as exc:
        raise UnauthorizedError("Invalid X-User-Role header") from exc
    return Requester(user_id=user_id, role=role)


async def require_user(requester: Requester = Depends(get_requester)) -> Requester:
    if requester.user_id is None:
        raise UnauthorizedError("Authentication required")
    return requester


async def require_admin(requester: Requester = Depends(get_requester)) -> Requester:
    if not requester.is_admin:
        raise ForbiddenError("Admin access required")
    return requester


async def require_identity(requester: Requester = Depends(get_requester)) -> Requester:
    """Admins, or users who say who they are."""
    if not requester.is_admin and requester.user_id is None:
        raise UnauthorizedError("Authentication required")
    return requester


def ensure_owner_or_admin(requester: Requester, owner_id: uuid.UUID, message: str) -> None:
    if not requester.is_admin and requester.user_id != owner_id:
        raise ForbiddenError(message)
