"""
Enrollment Service Layer

Business logic for the public enrollment pipeline and the admin query layer.
Orchestrates the repository, the document generator and the email sender.

This module implements:
1. Enrollment Pipeline:
   - Validate the submission and report every offending field at once
   - Derive the applicant's age and enforce the minimum age
   - Assign an application id and persist the record (durability boundary)
   - Render the confirmation document and email it to the applicant

   Once the record is persisted the submission is a success: document,
   email and follow-up store failures are logged and swallowed, and the
   record keeps the last state it reached (created / documented / notified).

2. Document retrieval:
   - Regenerate the confirmation document on demand from the stored record

3. Admin queries (authenticated):
   - Filtered, sorted, paginated applicant list
   - Dashboard statistics
   - Applicant detail
   - Resend the confirmation email

Security considerations:
- Every admin operation requires an authenticated administrator
- User-supplied values are escaped in emails (see core.email)
- No document bytes or personal data beyond ids are logged
"""

import asyncio
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from innovision.core.auth import AdminUser
from innovision.core.config import settings
from innovision.core.email import send_enrollment_confirmation
from innovision.core.exceptions import (
    AgeError,
    AuthError,
    DocumentError,
    NotFoundError,
    NotificationError,
    ValidationError,
)
from innovision.modules.enrollments import repository
from innovision.modules.enrollments.documents import generate_document
from innovision.modules.enrollments.helpers import (
    MINIMUM_AGE,
    age_band_for,
    available_courses,
    calculate_age,
    document_url_for,
    generate_application_id,
    is_valid_application_id,
)
from innovision.modules.enrollments.models import Applicant, EnrollmentStatus
from innovision.modules.enrollments.schemas import (
    ApplicantFilters,
    ApplicantListItem,
    ApplicantListResponse,
    ApplicantStatsResponse,
    Course,
    CourseListResponse,
    EnrollmentCreate,
    EnrollmentResponse,
    ResendNotificationResponse,
)

logger = logging.getLogger(__name__)

MAX_COURSE_QUERY_AGE = 120

# Client-facing names for aliased input keys
_FIELD_NAMES = {
    "fullName": "full_name",
    "birthDate": "birth_date",
    "wilaya": "region",
}


def _store_deadline():
    return asyncio.timeout(settings.store_timeout_seconds)


def _field_errors(error: PydanticValidationError) -> list[dict[str, str]]:
    """One {field, message} entry per offending field, in input order."""
    fields: dict[str, str] = {}
    for item in error.errors():
        loc = item.get("loc") or ()
        field = _FIELD_NAMES.get(str(loc[0]), str(loc[0])) if loc else "body"
        fields.setdefault(field, item.get("msg", "Invalid value"))
    return [{"field": field, "message": message} for field, message in fields.items()]


def parse_submission(raw: Mapping[str, Any]) -> EnrollmentCreate:
    """
    Validate a raw enrollment form.

    Raises:
        ValidationError: Listing every missing or malformed field
    """
    try:
        return EnrollmentCreate.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(_field_errors(e)) from e


# ============================================
# Enrollment Pipeline
# ============================================


async def submit_enrollment(
    db: AsyncSession,
    raw: Mapping[str, Any],
    *,
    now: datetime | None = None,
) -> EnrollmentResponse:
    """
    Run the enrollment pipeline for one form submission.

    Steps run strictly in order:
    1. Validate the form
    2. Derive the age (rejects applicants younger than 8)
    3. Assign the application id
    4. Persist the record with status ``created``
    5. Render the confirmation document
    6. Record the document reference (status ``documented``)
    7. Email the document (status ``notified``, ``email_sent`` = true)

    Args:
        db: Database session
        raw: The submitted form (camelCase or snake_case keys)
        now: Submission instant, defaults to the current time

    Returns:
        EnrollmentResponse with the application id and document path

    Raises:
        ValidationError: If the form is malformed (nothing is persisted)
        AgeError: If the applicant is younger than the minimum age (nothing is persisted)
        ConflictError: If the generated application id collides
    """
    data = parse_submission(raw)
    submitted_at = now or datetime.now(UTC)

    age = calculate_age(data.birth_date, submitted_at)
    if age < MINIMUM_AGE:
        logger.info(f"Enrollment rejected: age {age} below minimum {MINIMUM_AGE}")
        raise AgeError(age, MINIMUM_AGE)

    application_id = generate_application_id(submitted_at)

    async with _store_deadline():
        applicant = await repository.create(
            db,
            data,
            age=age,
            application_id=application_id,
            created_at=submitted_at,
        )
    logger.info(f"Created applicant {applicant.id} ({application_id})")

    status, email_sent = await _deliver_confirmation(db, applicant)

    message = (
        "Enrollment received. Your confirmation document has been emailed to you."
        if email_sent
        else "Enrollment received. Your confirmation document is ready."
    )
    return EnrollmentResponse(
        application_id=application_id,
        document_url=document_url_for(application_id),
        status=status,
        email_sent=email_sent,
        message=message,
    )


async def _deliver_confirmation(
    db: AsyncSession,
    applicant: Applicant,
) -> tuple[EnrollmentStatus, bool]:
    """
    Post-persistence steps of the pipeline. Never raises.

    Returns:
        The (status, email_sent) the record ended up with
    """
    applicant_id = applicant.id
    application_id = applicant.application_id
    status = EnrollmentStatus.CREATED

    def log_failure(step: str, cause: object) -> None:
        logger.error(
            f"Enrollment {application_id} (applicant {applicant_id}): step '{step}' failed: {cause}"
        )

    try:
        document = await generate_document(applicant)
    except DocumentError as e:
        log_failure("document", e.message)
        return status, False

    try:
        async with _store_deadline():
            applicant = await repository.update(
                db,
                applicant_id,
                status=EnrollmentStatus.DOCUMENTED,
                document_url=document_url_for(application_id),
            )
    except (SQLAlchemyError, TimeoutError) as e:
        await db.rollback()
        log_failure("record_document", e)
        return status, False
    status = EnrollmentStatus.DOCUMENTED

    try:
        await send_enrollment_confirmation(applicant, document)
    except NotificationError as e:
        log_failure("notify", e.message)
        return status, False

    try:
        async with _store_deadline():
            await repository.update(
                db,
                applicant_id,
                status=EnrollmentStatus.NOTIFIED,
                email_sent=True,
            )
    except (SQLAlchemyError, TimeoutError) as e:
        await db.rollback()
        log_failure("record_notification", e)
        return status, False

    logger.info(f"Enrollment {application_id} completed")
    return EnrollmentStatus.NOTIFIED, True


async def get_document(db: AsyncSession, application_id: str) -> bytes:
    """
    Regenerate the confirmation document for an application id.

    Raises:
        NotFoundError: If no applicant has this application id
        DocumentError: If rendering fails
    """
    if not is_valid_application_id(application_id):
        raise NotFoundError("Application", application_id)

    async with _store_deadline():
        applicant = await repository.get_by_application_id(db, application_id)

    if not applicant:
        logger.info(f"Document requested for unknown application {application_id}")
        raise NotFoundError("Application", application_id)

    return await generate_document(applicant)


def list_courses(age: int) -> CourseListResponse:
    """
    Courses open to an applicant of the given age.

    Raises:
        ValidationError: If the age is outside 0..120
    """
    if age < 0 or age > MAX_COURSE_QUERY_AGE:
        raise ValidationError(
            [{"field": "age", "message": f"Age must be between 0 and {MAX_COURSE_QUERY_AGE}"}]
        )

    return CourseListResponse(
        age=age,
        age_band=age_band_for(age),
        courses=[Course(name=name) for name in available_courses(age)],
    )


# ============================================
# Admin Query Layer
# ============================================


def _require_admin(admin: AdminUser | None) -> AdminUser:
    if admin is None:
        raise AuthError()
    return admin


async def admin_list_applicants(
    db: AsyncSession,
    admin: AdminUser | None,
    filters: ApplicantFilters,
) -> ApplicantListResponse:
    """
    Get a filtered, sorted, paginated page of applicants.

    Raises:
        AuthError: If no administrator is authenticated
    """
    admin = _require_admin(admin)
    logger.info(
        f"Admin {admin.email} listing applicants: search={filters.search}, "
        f"region={filters.region}, course={filters.course}, age_band={filters.age_band}, "
        f"dates={filters.date_from}..{filters.date_to}, "
        f"sort={filters.sort_by.value}:{filters.sort_order.value}, "
        f"offset={filters.offset}, limit={filters.limit}"
    )

    async with _store_deadline():
        applicants, total = await repository.list_applicants(db, filters)

    logger.info(f"Found {total} applicants, returning {len(applicants)}")

    return ApplicantListResponse(
        applicants=[ApplicantListItem.model_validate(applicant) for applicant in applicants],
        total=total,
        limit=filters.limit,
        offset=filters.offset,
    )


async def admin_get_stats(
    db: AsyncSession,
    admin: AdminUser | None,
    *,
    now: datetime | None = None,
) -> ApplicantStatsResponse:
    """
    Aggregate statistics for the admin dashboard.

    Raises:
        AuthError: If no administrator is authenticated
    """
    admin = _require_admin(admin)
    logger.info(f"Admin {admin.email} getting applicant stats")

    async with _store_deadline():
        stats = await repository.get_stats(db, now=now)

    return ApplicantStatsResponse.model_validate(stats)


async def admin_get_applicant(
    db: AsyncSession,
    admin: AdminUser | None,
    applicant_id: UUID,
) -> Applicant:
    """
    Get a complete applicant record.

    Raises:
        AuthError: If no administrator is authenticated
        NotFoundError: If the applicant doesn't exist
    """
    _require_admin(admin)

    async with _store_deadline():
        applicant = await repository.get_by_id(db, applicant_id)

    if not applicant:
        logger.warning(f"Applicant not found: {applicant_id}")
        raise NotFoundError("Applicant", applicant_id)

    return applicant


async def resend_notification(
    db: AsyncSession,
    admin: AdminUser | None,
    applicant_id: UUID,
) -> ResendNotificationResponse:
    """
    Regenerate the confirmation document and email it again.

    A record still in ``created`` is first moved to ``documented``. On
    success the record ends ``notified`` with ``email_sent`` = true.

    Raises:
        AuthError: If no administrator is authenticated
        NotFoundError: If the applicant doesn't exist
        DocumentError: If the document cannot be rendered
        NotificationError: If the email cannot be delivered
    """
    admin = _require_admin(admin)

    async with _store_deadline():
        applicant = await repository.get_by_id(db, applicant_id)
    if not applicant:
        raise NotFoundError("Applicant", applicant_id)

    document = await generate_document(applicant)

    if applicant.status == EnrollmentStatus.CREATED:
        async with _store_deadline():
            applicant = await repository.update(
                db,
                applicant_id,
                status=EnrollmentStatus.DOCUMENTED,
                document_url=document_url_for(applicant.application_id),
            )

    await send_enrollment_confirmation(applicant, document)

    async with _store_deadline():
        applicant = await repository.update(
            db,
            applicant_id,
            status=EnrollmentStatus.NOTIFIED,
            email_sent=True,
        )

    logger.info(f"Admin {admin.email} resent confirmation for {applicant.application_id}")

    return ResendNotificationResponse(
        application_id=applicant.application_id,
        email_sent=applicant.email_sent,
    )
