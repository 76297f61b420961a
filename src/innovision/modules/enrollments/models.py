"""
Enrollment Models

The applicant record created by the public enrollment form.
"""

import enum
import uuid
from datetime import UTC, date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from innovision.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Locale(str, enum.Enum):
    """UI locale the applicant used when submitting."""

    FR = "fr"
    EN = "en"
    AR = "ar"


class EnrollmentStatus(str, enum.Enum):
    """
    Lifecycle of an applicant record.

    created -> documented -> notified
    """

    CREATED = "created"
    DOCUMENTED = "documented"
    NOTIFIED = "notified"


class Applicant(Base):
    """
    A person who submitted the enrollment form.

    ``age`` is derived once at submission and never recomputed.
    ``application_id`` is the shareable, immutable reference printed on the
    confirmation document.
    """

    __tablename__ = "applicants"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)

    # Applicant information
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    region: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    course: Mapped[str] = mapped_column(String(200), nullable=False)
    locale: Mapped[Locale] = mapped_column(
        Enum(Locale, name="applicant_locale", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Locale.FR,
    )

    # Status tracking
    status: Mapped[EnrollmentStatus] = mapped_column(
        Enum(
            EnrollmentStatus,
            name="enrollment_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=EnrollmentStatus.CREATED,
    )
    document_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
        nullable=False,
    )

    # Indexes for common admin queries
    __table_args__ = (
        Index("ix_applicants_created_at", "created_at"),
        Index("ix_applicants_region", "region"),
        Index("ix_applicants_course", "course"),
    )

    def __repr__(self) -> str:
        return f"<Applicant {self.application_id} ({self.status.value})>"
