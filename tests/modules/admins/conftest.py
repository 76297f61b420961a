"""Fixtures for administrator tests."""

import pytest
import pytest_asyncio

from innovision.core.security import hash_password
from innovision.modules.admins.repository import AdminRepository

ADMIN_EMAIL = "admin@innovision.dz"
ADMIN_PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture
async def admin_account(session_maker):
    """An active administrator stored in the test database."""
    async with session_maker() as session:
        admin = await AdminRepository.create(
            session,
            email=ADMIN_EMAIL,
            password_hash=hash_password(ADMIN_PASSWORD),
        )
        await session.commit()
    return admin


@pytest_asyncio.fixture
async def inactive_account(session_maker):
    async with session_maker() as session:
        admin = await AdminRepository.create(
            session,
            email="former@innovision.dz",
            password_hash=hash_password(ADMIN_PASSWORD),
            is_active=False,
        )
        await session.commit()
    return admin


@pytest.fixture
def credentials() -> dict[str, str]:
    return {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
