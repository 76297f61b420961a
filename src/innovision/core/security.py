"""
Security Utilities

Password hashing (bcrypt) and signed session tokens (PyJWT).
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from innovision.core.config import settings

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password with a per-password salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        logger.warning("Stored password hash could not be parsed")
        return False


def create_access_token(
    subject: str,
    additional_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed session token.

    Each token carries a unique ``jti`` so it can be revoked on logout.

    Args:
        subject: Administrator id stored in the ``sub`` claim
        additional_claims: Extra claims (email, role)
        expires_delta: Lifetime, defaults to SESSION_MAX_AGE_SECONDS

    Returns:
        Encoded JWT string
    """
    now = datetime.now(UTC)
    expires_at = now + (expires_delta or timedelta(seconds=settings.session_max_age_seconds))

    payload: dict[str, Any] = {
        "sub": subject,
        "type": "access",
        "jti": secrets.token_urlsafe(16),
        "iat": now,
        "exp": expires_at,
    }
    if additional_claims:
        payload.update(additional_claims)

    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and verify a session token.

    Returns:
        The claims, or None if the signature is invalid or the token expired
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.debug("Session token expired")
        return None
    except jwt.InvalidTokenError:
        logger.debug("Session token invalid")
        return None
