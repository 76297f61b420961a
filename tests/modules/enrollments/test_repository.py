"""
Repository tests against an in-memory SQLite database.

These tests cover:
- Insert and lookup, including application id collisions
- Status transitions and immutable fields
- List filters (search, exact matches, age band, local dates), sorting and pagination
- Dashboard statistics in the school's timezone
"""

import uuid
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio

from innovision.core.exceptions import ConflictError, NotFoundError
from innovision.modules.enrollments import repository
from innovision.modules.enrollments.helpers import AgeBand
from innovision.modules.enrollments.models import EnrollmentStatus
from innovision.modules.enrollments.repository import InvalidStatusTransitionError
from innovision.modules.enrollments.schemas import (
    ApplicantFilters,
    EnrollmentCreate,
    SortField,
    SortOrder,
)

ALGIERS = ZoneInfo("Africa/Algiers")
NOW = datetime(2024, 6, 10, 12, 0, tzinfo=UTC)


def _form(**overrides) -> EnrollmentCreate:
    values = {
        "full_name": "Amina K.",
        "email": "amina@example.com",
        "birth_date": "2010-05-01",
        "region": "Alger",
        "phone": "0555123456",
        "course": "Robotique",
        "consent": True,
    }
    values.update(overrides)
    return EnrollmentCreate.model_validate(values)


async def _create(db, suffix: str, created_at: datetime, age: int = 14, **overrides):
    return await repository.create(
        db,
        _form(**overrides),
        age=age,
        application_id=f"INV-1717234200000-{suffix:0>9}",
        created_at=created_at,
    )


@pytest_asyncio.fixture
async def seeded(db_session):
    """
    Four applicants around 2024-06-10 (Algiers is UTC+1):
    two on local June 10, one late on local June 9, one in May.
    """
    today = await _create(
        db_session, "A", datetime(2024, 6, 10, 8, 0, tzinfo=UTC), age=12,
        full_name="Amina K.", course="Robotique", region="Alger",
    )
    after_midnight = await _create(
        db_session, "B", datetime(2024, 6, 9, 23, 30, tzinfo=UTC), age=25,
        full_name="Yacine B.", course="Python", region="Oran",
    )
    before_midnight = await _create(
        db_session, "C", datetime(2024, 6, 9, 22, 30, tzinfo=UTC), age=30,
        full_name="Karim Benamira", course="Robotique", region="Alger",
    )
    old = await _create(
        db_session, "D", datetime(2024, 5, 1, 10, 0, tzinfo=UTC), age=10,
        full_name="Lina 100% Z.", course="Robotique", region="Alger",
    )
    return {"A": today, "B": after_midnight, "C": before_midnight, "D": old}


def _names(applicants) -> list[str]:
    return [a.full_name for a in applicants]


class TestCreate:
    """Tests for inserting applicants."""

    @pytest.mark.asyncio
    async def test_create_sets_initial_state(self, db_session):
        applicant = await _create(db_session, "X1", NOW)

        assert applicant.id is not None
        assert applicant.status == EnrollmentStatus.CREATED
        assert applicant.email_sent is False
        assert applicant.document_url is None

        found = await repository.get_by_application_id(db_session, applicant.application_id)
        assert found.id == applicant.id

    @pytest.mark.asyncio
    async def test_duplicate_application_id(self, db_session):
        await _create(db_session, "X1", NOW)

        with pytest.raises(ConflictError):
            await _create(db_session, "X1", NOW)

    @pytest.mark.asyncio
    async def test_lookup_misses(self, db_session):
        assert await repository.get_by_id(db_session, uuid.uuid4()) is None
        assert await repository.get_by_application_id(db_session, "INV-0-000000000") is None


class TestUpdate:
    """Tests for status transitions."""

    @pytest.mark.asyncio
    async def test_forward_transitions(self, db_session):
        applicant = await _create(db_session, "X1", NOW)

        documented = await repository.update(
            db_session,
            applicant.id,
            status=EnrollmentStatus.DOCUMENTED,
            document_url="/api/v1/enrollments/x/document",
        )
        assert documented.status == EnrollmentStatus.DOCUMENTED
        assert documented.document_url == "/api/v1/enrollments/x/document"

        notified = await repository.update(
            db_session, applicant.id, status=EnrollmentStatus.NOTIFIED, email_sent=True
        )
        assert notified.status == EnrollmentStatus.NOTIFIED
        assert notified.email_sent is True

    @pytest.mark.asyncio
    async def test_cannot_skip_documented(self, db_session):
        applicant = await _create(db_session, "X1", NOW)

        with pytest.raises(InvalidStatusTransitionError):
            await repository.update(db_session, applicant.id, status=EnrollmentStatus.NOTIFIED)

    @pytest.mark.asyncio
    async def test_cannot_go_backwards(self, db_session):
        applicant = await _create(db_session, "X1", NOW)
        await repository.update(db_session, applicant.id, status=EnrollmentStatus.DOCUMENTED)

        with pytest.raises(InvalidStatusTransitionError):
            await repository.update(db_session, applicant.id, status=EnrollmentStatus.CREATED)

    @pytest.mark.asyncio
    async def test_same_status_is_allowed(self, db_session):
        applicant = await _create(db_session, "X1", NOW)

        updated = await repository.update(
            db_session, applicant.id, status=EnrollmentStatus.CREATED
        )

        assert updated.status == EnrollmentStatus.CREATED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["age", "application_id", "birth_date", "nickname"])
    async def test_rejects_immutable_or_unknown_fields(self, db_session, field):
        applicant = await _create(db_session, "X1", NOW)

        with pytest.raises(ValueError):
            await repository.update(db_session, applicant.id, **{field: "x"})

    @pytest.mark.asyncio
    async def test_missing_applicant(self, db_session):
        with pytest.raises(NotFoundError):
            await repository.update(db_session, uuid.uuid4(), email_sent=True)


class TestListApplicants:
    """Tests for filtering, sorting and pagination."""

    @pytest.mark.asyncio
    async def test_default_is_newest_first(self, db_session, seeded):
        applicants, total = await repository.list_applicants(db_session, ApplicantFilters())

        assert total == 4
        assert _names(applicants) == ["Amina K.", "Yacine B.", "Karim Benamira", "Lina 100% Z."]

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_substring(self, db_session, seeded):
        applicants, total = await repository.list_applicants(
            db_session, ApplicantFilters(search="AMI", sort_order=SortOrder.ASC)
        )

        assert total == 2
        assert set(_names(applicants)) == {"Amina K.", "Karim Benamira"}

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, db_session, seeded):
        applicants, total = await repository.list_applicants(
            db_session, ApplicantFilters(search="0%")
        )

        assert total == 1
        assert _names(applicants) == ["Lina 100% Z."]

    @pytest.mark.asyncio
    async def test_exact_region_and_course(self, db_session, seeded):
        _, by_region = await repository.list_applicants(
            db_session, ApplicantFilters(region="Oran")
        )
        _, by_course = await repository.list_applicants(
            db_session, ApplicantFilters(course="Robot")
        )

        assert by_region == 1
        assert by_course == 0

    @pytest.mark.asyncio
    async def test_age_bands(self, db_session, seeded):
        kids, kids_total = await repository.list_applicants(
            db_session, ApplicantFilters(age_band=AgeBand.KIDS)
        )
        _, adults_total = await repository.list_applicants(
            db_session, ApplicantFilters(age_band=AgeBand.ADULTS)
        )

        assert kids_total == 2
        assert all(8 <= a.age <= 17 for a in kids)
        assert adults_total == 2

    @pytest.mark.asyncio
    async def test_dates_are_local_calendar_days(self, db_session, seeded):
        june_10, _ = await repository.list_applicants(
            db_session,
            ApplicantFilters(date_from=date(2024, 6, 10), date_to=date(2024, 6, 10)),
            tz=ALGIERS,
        )
        june_9, _ = await repository.list_applicants(
            db_session,
            ApplicantFilters(date_from=date(2024, 6, 9), date_to=date(2024, 6, 9)),
            tz=ALGIERS,
        )

        assert set(_names(june_10)) == {"Amina K.", "Yacine B."}
        assert _names(june_9) == ["Karim Benamira"]

    @pytest.mark.asyncio
    async def test_sort_and_paginate(self, db_session, seeded):
        applicants, total = await repository.list_applicants(
            db_session,
            ApplicantFilters(
                sort_by=SortField.AGE, sort_order=SortOrder.ASC, limit=2, offset=1
            ),
        )

        assert total == 4
        assert [a.age for a in applicants] == [12, 25]

    @pytest.mark.asyncio
    async def test_sort_by_name(self, db_session, seeded):
        applicants, _ = await repository.list_applicants(
            db_session, ApplicantFilters(sort_by=SortField.FULL_NAME, sort_order=SortOrder.ASC)
        )

        assert _names(applicants) == sorted(_names(applicants))

    @pytest.mark.asyncio
    async def test_empty_page(self, db_session, seeded):
        applicants, total = await repository.list_applicants(
            db_session, ApplicantFilters(offset=10)
        )

        assert applicants == []
        assert total == 4


class TestGetStats:
    """Tests for dashboard statistics."""

    @pytest.mark.asyncio
    async def test_counts(self, db_session, seeded):
        stats = await repository.get_stats(db_session, now=NOW, tz=ALGIERS)

        assert stats["total"] == 4
        assert stats["today"] == 2
        assert stats["this_week"] == 3

    @pytest.mark.asyncio
    async def test_distributions(self, db_session, seeded):
        stats = await repository.get_stats(db_session, now=NOW, tz=ALGIERS)

        assert stats["course_distribution"] == [
            {"name": "Robotique", "count": 3},
            {"name": "Python", "count": 1},
        ]
        assert stats["region_distribution"][0] == {"name": "Alger", "count": 3}
        assert stats["age_band_distribution"] == [
            {"band": AgeBand.KIDS, "count": 2},
            {"band": AgeBand.ADULTS, "count": 2},
        ]

    @pytest.mark.asyncio
    async def test_daily_signups_are_dense(self, db_session, seeded):
        stats = await repository.get_stats(db_session, now=NOW, tz=ALGIERS)
        series = stats["daily_signups"]

        assert len(series) == 30
        assert series[0]["day"] == date(2024, 5, 12)
        assert series[-1] == {"day": date(2024, 6, 10), "count": 2}
        assert series[-2] == {"day": date(2024, 6, 9), "count": 1}
        assert sum(entry["count"] for entry in series) == 3

    @pytest.mark.asyncio
    async def test_empty_database(self, db_session):
        stats = await repository.get_stats(db_session, now=NOW, tz=ALGIERS)

        assert stats["total"] == 0
        assert stats["course_distribution"] == []
        assert [entry["count"] for entry in stats["age_band_distribution"]] == [0, 0]
        assert len(stats["daily_signups"]) == 30
