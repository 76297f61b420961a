"""
Administrator Authentication Router

Endpoints:
- POST /admin/auth/login - Exchange credentials for a session token
- POST /admin/auth/logout - Revoke the current session
- GET /admin/auth/me - The authenticated administrator
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from innovision.core.auth import AdminUser, get_current_admin, revoke_session
from innovision.core.config import settings
from innovision.core.database import get_db
from innovision.core.exceptions import AuthError, ThrottledError
from innovision.core.rate_limit import (
    ADMIN_RATE_LIMIT,
    LoginThrottle,
    client_address,
    get_counter_store,
    rate_limit,
)
from innovision.core.security import create_access_token, verify_password
from innovision.modules.admins.repository import AdminRepository
from innovision.modules.admins.schemas import (
    AdminResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(rate_limit("admin", *ADMIN_RATE_LIMIT))])


def _invalid_credentials() -> HTTPException:
    return AuthError("Invalid email or password.", "INVALID_CREDENTIALS").to_http_exception()


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"description": "Invalid email or password"},
        429: {"description": "Too many failed attempts"},
    },
)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate an administrator and return a session token.

    Unknown email, wrong password and inactive account produce the same
    401 response. Repeated failures from one client are throttled.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 429: Client temporarily blocked
    """
    client = client_address(request)
    throttle = LoginThrottle(get_counter_store())

    try:
        await throttle.ensure_allowed(client)
    except ThrottledError as e:
        logger.warning(f"Login blocked for client {client}")
        raise e.to_http_exception() from e

    admin = await AdminRepository.get_by_email(db, credentials.email)

    valid = admin is not None and verify_password(credentials.password, admin.password_hash)
    if not valid or not admin.is_active:
        failures = await throttle.record_failure(client)
        logger.warning(
            f"Failed login for {credentials.email} from {client} ({failures} consecutive)"
        )
        raise _invalid_credentials()

    await throttle.reset(client)

    access_token = create_access_token(
        subject=str(admin.id),
        additional_claims={"email": admin.email, "role": admin.role.value},
    )

    logger.info(f"Admin logged in: {admin.email}")

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.session_max_age_seconds,
        admin=AdminResponse.model_validate(admin),
    )


@router.post(
    "/logout",
    response_model=LogoutResponse,
    responses={401: {"description": "Missing, invalid or revoked session"}},
)
async def logout(
    admin: AdminUser = Depends(get_current_admin),
) -> LogoutResponse:
    """Revoke the current session token."""
    await revoke_session(admin.session_id, admin.expires_at)

    logger.info(f"Admin logged out: {admin.email}")
    return LogoutResponse()


@router.get(
    "/me",
    response_model=AdminResponse,
    responses={401: {"description": "Missing, invalid or revoked session"}},
)
async def me(
    admin: AdminUser = Depends(get_current_admin),
) -> AdminResponse:
    """The administrator behind the current session."""
    return AdminResponse(id=admin.id, email=admin.email, role=admin.role)
