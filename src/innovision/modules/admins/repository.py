"""
Administrator Repository

Database operations for administrator accounts.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from innovision.modules.admins.models import AdminRole, Administrator

logger = logging.getLogger(__name__)


class AdminRepository:
    """Repository for administrator database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        role: AdminRole = AdminRole.ADMIN,
        is_active: bool = True,
    ) -> Administrator:
        """
        Create a new administrator record.

        The caller owns the transaction and must commit.

        Args:
            db: Database session
            email: Login email (stored lower-cased)
            password_hash: bcrypt hash of the password
            role: Role tag
            is_active: Whether the account may log in

        Returns:
            Created Administrator instance
        """
        admin = Administrator(
            email=email.strip().lower(),
            password_hash=password_hash,
            role=role,
            is_active=is_active,
        )

        db.add(admin)
        await db.flush()
        await db.refresh(admin)

        logger.info(f"Created administrator: {admin.id} - {admin.email}")
        return admin

    @staticmethod
    async def get_by_id(db: AsyncSession, admin_id: UUID) -> Administrator | None:
        """Get an administrator by ID."""
        return await db.get(Administrator, admin_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Administrator | None:
        """
        Get an administrator by email (case-insensitive).

        Args:
            db: Database session
            email: Login email

        Returns:
            Administrator or None if not found
        """
        result = await db.execute(
            select(Administrator).where(Administrator.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        """Check whether an account already uses this email."""
        return await AdminRepository.get_by_email(db, email) is not None
