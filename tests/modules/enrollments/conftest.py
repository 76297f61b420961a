"""Fixtures for enrollment tests."""

import uuid
from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from innovision.core.auth import AdminUser
from innovision.modules.enrollments.models import Applicant, EnrollmentStatus, Locale


@pytest.fixture
def mock_db():
    """Create a mock async database session."""
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def valid_form() -> dict:
    """A complete submission as sent by the web client."""
    return {
        "fullName": "Amina K.",
        "email": "amina@example.com",
        "birthDate": "2010-05-01",
        "wilaya": "Alger",
        "phone": "0555123456",
        "course": "تطوير تطبيقات الهاتف",
        "locale": "fr",
        "consent": True,
    }


@pytest.fixture
def submitted_at() -> datetime:
    return datetime(2024, 6, 1, 9, 30, tzinfo=UTC)


def make_applicant(**overrides) -> Applicant:
    values = {
        "id": uuid.uuid4(),
        "application_id": "INV-1717234200000-K3Q9ZP0LA",
        "full_name": "Amina K.",
        "email": "amina@example.com",
        "birth_date": date(2010, 5, 1),
        "age": 14,
        "region": "Alger",
        "phone": "0555123456",
        "course": "تطوير تطبيقات الهاتف",
        "locale": Locale.FR,
        "status": EnrollmentStatus.CREATED,
        "document_url": None,
        "email_sent": False,
        "created_at": datetime(2024, 6, 1, 9, 30, tzinfo=UTC),
        "updated_at": datetime(2024, 6, 1, 9, 30, tzinfo=UTC),
    }
    values.update(overrides)
    return Applicant(**values)


@pytest.fixture
def applicant() -> Applicant:
    """An in-memory applicant record."""
    return make_applicant()


@pytest.fixture
def admin() -> AdminUser:
    return AdminUser(
        id=uuid.uuid4(),
        email="admin@innovision.dz",
        role="admin",
        session_id="session-1",
        expires_at=datetime(2099, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def applicant_factory():
    """Build in-memory applicants with selected fields overridden."""
    return make_applicant
