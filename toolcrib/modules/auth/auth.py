"""JWT authentication dependency for FastAPI.

Validates Bearer tokens from the Authorization header and extracts the
user claims (``sub``, ``email``, ``role``) into an :class:`AuthenticatedUser`.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from toolcrib.config import settings
from toolcrib.exceptions import UnauthorizedException
from toolcrib.models.enums import UserRole

logger = logging.getLogger(__name__)

# FastAPI security scheme: extracts Bearer token from Authorization header
_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """Represents the authenticated user extracted from a JWT token."""

    id: uuid.UUID
    email: str
    role: UserRole


def _decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises UnauthorizedException on failure."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        return payload
    except JWTError as exc:
        logger.warning("JWT validation failed: %s", exc)
        raise UnauthorizedException("Invalid or expired token") from exc


def create_access_token(user_id: uuid.UUID, email: str, role: UserRole) -> str:
    """Issue a signed access token carrying the claims read by get_current_user."""
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expiry_minutes)
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": UserRole(role).value,
        "exp": expires_at,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthenticatedUser:
    """FastAPI dependency that extracts and validates the current user from JWT."""
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    payload = _decode_token(credentials.credentials)

    # Extract required claims
    try:
        user = AuthenticatedUser(
            id=uuid.UUID(payload["sub"]),
            email=payload["email"],
            role=UserRole(payload.get("role", UserRole.USER.value)),
        )
    except (KeyError, ValueError) as exc:
        logger.warning("JWT is missing required claims: %s", exc)
        raise UnauthorizedException("Token is missing required claims") from exc

    request.state.user = user
    return user
