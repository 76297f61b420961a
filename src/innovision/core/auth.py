"""
Authentication Module

FastAPI dependencies resolving the administrator behind a bearer session.

A session is a signed access token (see security.py). Logging out records
the token's ``jti`` in the counter store until the token would have expired
anyway, so a revoked token is rejected even though its signature is valid.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from innovision.core.exceptions import AuthError
from innovision.core.rate_limit import get_counter_store
from innovision.core.security import decode_token

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

# auto_error=False so a missing header yields our own 401 body
security = HTTPBearer(
    auto_error=False,
    description="Session token returned by POST /admin/auth/login",
)


@dataclass
class AdminUser:
    """
    An authenticated administrator, populated from session token claims.

    Attributes:
        id: Administrator id
        email: Login email
        role: Role tag (always 'admin')
        session_id: The token's ``jti``, used to revoke it on logout
        expires_at: When the session token expires
    """

    id: UUID
    email: str
    role: str
    session_id: str
    expires_at: datetime

    def __str__(self) -> str:
        return f"AdminUser(id={self.id}, email={self.email}, role={self.role})"


def _revocation_key(session_id: str) -> str:
    return f"revoked_session:{session_id}"


async def revoke_session(session_id: str, expires_at: datetime) -> None:
    """Reject ``session_id`` from now until it expires."""
    remaining = int((expires_at - datetime.now(UTC)).total_seconds())
    if remaining <= 0:
        return
    await get_counter_store().set(_revocation_key(session_id), 1, remaining)
    logger.info(f"Session revoked: {session_id[:8]}...")


async def is_session_revoked(session_id: str) -> bool:
    return await get_counter_store().get(_revocation_key(session_id)) is not None


async def authenticate_token(token: str) -> AdminUser:
    """
    Validate a session token and return the administrator it belongs to.

    Raises:
        AuthError: If the token is invalid, expired, revoked or lacks claims
    """
    payload = decode_token(token)
    if payload is None:
        raise AuthError("Invalid or expired session.", "INVALID_SESSION")

    if payload.get("type") != "access":
        logger.warning(f"Rejected token of type {payload.get('type')!r}")
        raise AuthError("Invalid or expired session.", "INVALID_SESSION")

    try:
        admin = AdminUser(
            id=UUID(payload["sub"]),
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            session_id=payload["jti"],
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
    except (KeyError, ValueError, TypeError) as e:
        logger.warning(f"Invalid session claims: {e}")
        raise AuthError("Invalid or expired session.", "INVALID_SESSION") from e

    if admin.role != ADMIN_ROLE:
        logger.warning(f"Rejected session for {admin.email} with role {admin.role!r}")
        raise AuthError("Invalid or expired session.", "INVALID_SESSION")

    if await is_session_revoked(admin.session_id):
        raise AuthError("Session has been logged out.", "SESSION_REVOKED")

    return admin


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> AdminUser:
    """
    FastAPI dependency that requires an authenticated administrator.

    Usage:
        @router.get("/admin/endpoint")
        async def admin_endpoint(admin: AdminUser = Depends(get_current_admin)):
            ...

    Raises:
        HTTPException 401: If the session is missing, invalid, expired or revoked
    """
    if credentials is None or not credentials.credentials:
        raise AuthError().to_http_exception()

    try:
        admin = await authenticate_token(credentials.credentials)
    except AuthError as e:
        raise e.to_http_exception() from e

    logger.debug(f"Authenticated admin: {admin.id} ({admin.email})")
    return admin


__all__ = [
    "ADMIN_ROLE",
    "AdminUser",
    "authenticate_token",
    "get_current_admin",
    "is_session_revoked",
    "revoke_session",
]
