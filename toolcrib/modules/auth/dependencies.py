"""FastAPI dependency functions for role-based access."""

from fastapi import Depends

from toolcrib.exceptions import ForbiddenException
from toolcrib.models.enums import UserRole
from toolcrib.modules.auth.auth import AuthenticatedUser, get_current_user


def require_roles(*roles: UserRole):
    """Factory that returns a FastAPI dependency admitting only the given roles."""
    allowed = frozenset(roles)

    async def _check(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in allowed:
            raise ForbiddenException(
                f"Role {user.role.value} is not permitted to perform this action"
            )
        return user

    return _check


# Category, attribute group and attribute definition mutations
require_catalog_editor = require_roles(UserRole.ADMIN, UserRole.MANAGER)
