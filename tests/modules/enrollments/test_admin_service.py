"""
Unit tests for the authenticated admin query layer.
"""

import uuid
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest

from innovision.core.exceptions import AuthError, NotFoundError, NotificationError
from innovision.modules.enrollments import service
from innovision.modules.enrollments.models import EnrollmentStatus
from innovision.modules.enrollments.schemas import ApplicantFilters

SERVICE = "innovision.modules.enrollments.service"


class TestAuthorization:
    """Every admin operation refuses an unauthenticated caller."""

    @pytest.mark.asyncio
    async def test_list(self, mock_db):
        with pytest.raises(AuthError):
            await service.admin_list_applicants(mock_db, None, ApplicantFilters())

    @pytest.mark.asyncio
    async def test_stats(self, mock_db):
        with pytest.raises(AuthError):
            await service.admin_get_stats(mock_db, None)

    @pytest.mark.asyncio
    async def test_detail(self, mock_db):
        with pytest.raises(AuthError):
            await service.admin_get_applicant(mock_db, None, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_resend(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            with pytest.raises(AuthError):
                await service.resend_notification(mock_db, None, uuid.uuid4())

        mock_repo.get_by_id.assert_not_called()


class TestAdminQueries:
    """Tests for list, stats and detail."""

    @pytest.mark.asyncio
    async def test_list_applicants(self, mock_db, admin, applicant):
        filters = ApplicantFilters(limit=10, offset=0)
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_applicants = AsyncMock(return_value=([applicant], 1))

            response = await service.admin_list_applicants(mock_db, admin, filters)

        assert response.total == 1
        assert response.limit == 10
        assert response.applicants[0].application_id == applicant.application_id
        mock_repo.list_applicants.assert_awaited_once_with(mock_db, filters)

    @pytest.mark.asyncio
    async def test_stats(self, mock_db, admin):
        stats = {
            "total": 3,
            "today": 1,
            "this_week": 2,
            "course_distribution": [{"name": "Python", "count": 3}],
            "region_distribution": [{"name": "Alger", "count": 3}],
            "age_band_distribution": [
                {"band": "kids", "count": 1},
                {"band": "adults", "count": 2},
            ],
            "daily_signups": [{"day": date(2024, 6, 10), "count": 1}],
        }
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_stats = AsyncMock(return_value=stats)

            response = await service.admin_get_stats(mock_db, admin)

        assert response.total == 3
        assert response.course_distribution[0].name == "Python"
        assert response.daily_signups[0].day == date(2024, 6, 10)

    @pytest.mark.asyncio
    async def test_detail_not_found(self, mock_db, admin):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError):
                await service.admin_get_applicant(mock_db, admin, uuid.uuid4())


class TestResendNotification:
    """Tests for resending the confirmation email."""

    @pytest.mark.asyncio
    async def test_created_record_is_documented_then_notified(
        self, mock_db, admin, applicant, applicant_factory
    ):
        notified = applicant_factory(
            id=applicant.id, status=EnrollmentStatus.NOTIFIED, email_sent=True
        )
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.generate_document", new_callable=AsyncMock) as mock_document,
            patch(f"{SERVICE}.send_enrollment_confirmation", new_callable=AsyncMock) as mock_email,
        ):
            mock_repo.get_by_id = AsyncMock(return_value=applicant)
            mock_repo.update = AsyncMock(side_effect=[applicant, notified])
            mock_document.return_value = b"%PDF"

            response = await service.resend_notification(mock_db, admin, applicant.id)

        assert response.success is True
        assert response.email_sent is True
        statuses = [c.kwargs["status"] for c in mock_repo.update.call_args_list]
        assert statuses == [EnrollmentStatus.DOCUMENTED, EnrollmentStatus.NOTIFIED]
        mock_email.assert_awaited_once_with(applicant, b"%PDF")

    @pytest.mark.asyncio
    async def test_notified_record_is_resent(self, mock_db, admin, applicant_factory):
        applicant = applicant_factory(status=EnrollmentStatus.NOTIFIED, email_sent=True)
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.generate_document", new_callable=AsyncMock),
            patch(f"{SERVICE}.send_enrollment_confirmation", new_callable=AsyncMock),
        ):
            mock_repo.get_by_id = AsyncMock(return_value=applicant)
            mock_repo.update = AsyncMock(return_value=applicant)

            await service.resend_notification(mock_db, admin, applicant.id)

        assert mock_repo.update.await_count == 1

    @pytest.mark.asyncio
    async def test_delivery_failure_propagates(self, mock_db, admin, applicant):
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.generate_document", new_callable=AsyncMock),
            patch(
                f"{SERVICE}.send_enrollment_confirmation",
                new_callable=AsyncMock,
                side_effect=NotificationError(),
            ),
        ):
            mock_repo.get_by_id = AsyncMock(return_value=applicant)
            mock_repo.update = AsyncMock(return_value=applicant)

            with pytest.raises(NotificationError):
                await service.resend_notification(mock_db, admin, applicant.id)

        assert mock_repo.update.await_count == 1

    @pytest.mark.asyncio
    async def test_unknown_applicant(self, mock_db, admin):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(NotFoundError):
                await service.resend_notification(mock_db, admin, uuid.uuid4())
