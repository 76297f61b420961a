"""
Enrollment Repository

Database operations for applicant records. All operations are async and
commit once per call, so every write is atomic at the row level.

Design Principles:
- All queries are parameterized (no SQL injection)
- Single responsibility - only database operations, no business logic
- Timestamps are stored in UTC; calendar filters use the school's local timezone
"""

import logging
from datetime import UTC, date, datetime, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import and_, asc, case, desc, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from innovision.core.exceptions import ConflictError, NotFoundError

from .helpers import (
    ADULT_AGE,
    MINIMUM_AGE,
    AgeBand,
    local_day_end_utc,
    local_day_start_utc,
    local_midnight,
    school_timezone,
)
from .models import Applicant, EnrollmentStatus
from .schemas import ApplicantFilters, EnrollmentCreate, SortField, SortOrder

logger = logging.getLogger(__name__)

DAILY_SIGNUP_DAYS = 30


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


async def create(
    db: AsyncSession,
    data: EnrollmentCreate,
    *,
    age: int,
    application_id: str,
    created_at: datetime,
) -> Applicant:
    """
    Persist a new applicant in the ``created`` state.

    Raises:
        ConflictError: If ``application_id`` is already taken
    """
    applicant = Applicant(
        application_id=application_id,
        full_name=data.full_name,
        email=data.email,
        birth_date=data.birth_date,
        age=age,
        region=data.region,
        phone=data.phone,
        course=data.course,
        locale=data.locale,
        status=EnrollmentStatus.CREATED,
        email_sent=False,
        created_at=_as_utc(created_at),
        updated_at=_as_utc(created_at),
    )

    db.add(applicant)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.critical(f"Application id collision on insert: {application_id}")
        raise ConflictError(application_id) from e

    await db.refresh(applicant)
    return applicant


async def get_by_id(db: AsyncSession, id: UUID) -> Applicant | None:
    """Get applicant by internal ID."""
    return await db.get(Applicant, id)


async def get_by_application_id(db: AsyncSession, application_id: str) -> Applicant | None:
    """Get applicant by the shareable application id."""
    result = await db.execute(select(Applicant).where(Applicant.application_id == application_id))
    return result.scalar_one_or_none()


# Valid status transitions
VALID_STATUS_TRANSITIONS: dict[EnrollmentStatus, set[EnrollmentStatus]] = {
    EnrollmentStatus.CREATED: {EnrollmentStatus.DOCUMENTED},
    EnrollmentStatus.DOCUMENTED: {EnrollmentStatus.NOTIFIED},
    EnrollmentStatus.NOTIFIED: set(),
}

# Fields no update may touch
IMMUTABLE_FIELDS = frozenset({"id", "application_id", "age", "birth_date", "created_at"})


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, current_status: EnrollmentStatus, new_status: EnrollmentStatus):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {[s.value for s in valid_transitions]}"
        )


async def update(
    db: AsyncSession,
    id: UUID,
    *,
    status: EnrollmentStatus | None = None,
    **fields,
) -> Applicant:
    """
    Update an applicant's status and mutable fields.

    A same-status update is allowed (e.g. resending to a notified applicant).

    Raises:
        NotFoundError: If the applicant does not exist
        InvalidStatusTransitionError: If the status transition is not allowed
        ValueError: If an immutable or unknown field is passed
    """
    applicant = await get_by_id(db, id)
    if not applicant:
        raise NotFoundError("Applicant", id)

    if status is not None:
        current_status = applicant.status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        if status != current_status and status not in valid_transitions:
            raise InvalidStatusTransitionError(current_status, status)
        applicant.status = status

    for key, value in fields.items():
        if key in IMMUTABLE_FIELDS or not hasattr(applicant, key):
            raise ValueError(f"Field cannot be updated: {key}")
        setattr(applicant, key, value)

    await db.commit()
    await db.refresh(applicant)

    return applicant


def _sort_column(sort_by: SortField):
    return {
        SortField.CREATED_AT: Applicant.created_at,
        SortField.FULL_NAME: Applicant.full_name,
        SortField.AGE: Applicant.age,
    }[sort_by]


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_applicants(
    db: AsyncSession,
    filters: ApplicantFilters,
    tz: ZoneInfo | None = None,
) -> tuple[list[Applicant], int]:
    """
    Get applicants matching ``filters``, sorted and paginated.

    Returns:
        Tuple of (page of applicants, total count matching filters)

    Example:
        applicants, total = await list_applicants(
            db,
            ApplicantFilters(age_band=AgeBand.KIDS, sort_by=SortField.AGE, limit=50),
        )
    """
    tz = tz or school_timezone()
    query = select(Applicant)

    if filters.search:
        pattern = f"%{_escape_like(filters.search)}%"
        query = query.where(Applicant.full_name.ilike(pattern, escape="\\"))

    if filters.region:
        query = query.where(Applicant.region == filters.region)

    if filters.course:
        query = query.where(Applicant.course == filters.course)

    if filters.age_band:
        minimum, maximum = filters.age_band.bounds
        query = query.where(Applicant.age >= minimum)
        if maximum is not None:
            query = query.where(Applicant.age <= maximum)

    # Inclusive local calendar dates
    if filters.date_from:
        query = query.where(Applicant.created_at >= local_day_start_utc(filters.date_from, tz))
    if filters.date_to:
        query = query.where(Applicant.created_at < local_day_end_utc(filters.date_to, tz))

    # Get total count before pagination
    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    direction = desc if filters.sort_order == SortOrder.DESC else asc
    query = query.order_by(direction(_sort_column(filters.sort_by)), direction(Applicant.id))
    query = query.offset(filters.offset).limit(filters.limit)

    result = await db.execute(query)
    return list(result.scalars().all()), total


async def _distribution(db: AsyncSession, column) -> list[dict]:
    count = func.count().label("count")
    result = await db.execute(
        select(column.label("name"), count).group_by(column).order_by(desc(count), asc(column))
    )
    return [{"name": row.name, "count": row.count} for row in result.all()]


async def get_stats(
    db: AsyncSession,
    *,
    now: datetime | None = None,
    tz: ZoneInfo | None = None,
) -> dict:
    """
    Aggregate statistics for the admin dashboard.

    Returns:
        Dict with:
        - total: int - All applicants
        - today: int - Created since local midnight
        - this_week: int - Created since local midnight minus 7 days
        - course_distribution / region_distribution: [{name, count}], count desc
        - age_band_distribution: [{band, count}] for both bands
        - daily_signups: [{day, count}] for the last 30 local days, oldest first,
          zero-count days included
    """
    tz = tz or school_timezone()
    now = now or datetime.now(UTC)

    midnight = local_midnight(now, tz)
    today_start = midnight.astimezone(UTC)
    week_start = (midnight - timedelta(days=7)).astimezone(UTC)

    counts_query = select(
        func.count().label("total"),
        func.count(case((Applicant.created_at >= today_start, 1))).label("today"),
        func.count(case((Applicant.created_at >= week_start, 1))).label("this_week"),
        func.count(
            case((and_(Applicant.age >= MINIMUM_AGE, Applicant.age < ADULT_AGE), 1))
        ).label("kids"),
        func.count(case((Applicant.age >= ADULT_AGE, 1))).label("adults"),
    )
    counts = (await db.execute(counts_query)).one()

    # Dense series of local days ending today
    today = midnight.date()
    first_day = today - timedelta(days=DAILY_SIGNUP_DAYS - 1)
    series: dict[date, int] = {
        first_day + timedelta(days=offset): 0 for offset in range(DAILY_SIGNUP_DAYS)
    }

    recent = await db.execute(
        select(Applicant.created_at).where(
            Applicant.created_at >= local_day_start_utc(first_day, tz),
            Applicant.created_at < local_day_end_utc(today, tz),
        )
    )
    for (created_at,) in recent.all():
        day = _as_utc(created_at).astimezone(tz).date()
        if day in series:
            series[day] += 1

    return {
        "total": counts.total,
        "today": counts.today,
        "this_week": counts.this_week,
        "course_distribution": await _distribution(db, Applicant.course),
        "region_distribution": await _distribution(db, Applicant.region),
        "age_band_distribution": [
            {"band": AgeBand.KIDS, "count": counts.kids},
            {"band": AgeBand.ADULTS, "count": counts.adults},
        ],
        "daily_signups": [{"day": day, "count": count} for day, count in series.items()],
    }
