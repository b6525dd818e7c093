"""Auth module — bearer JWT decoding and role gates."""

from toolcrib.modules.auth.auth import AuthenticatedUser, create_access_token, get_current_user
from toolcrib.modules.auth.dependencies import require_catalog_editor, require_roles

__all__ = [
    "AuthenticatedUser",
    "create_access_token",
    "get_current_user",
    "require_catalog_editor",
    "require_roles",
]
