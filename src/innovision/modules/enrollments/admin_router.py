"""
Enrollment Admin Router

API endpoints for school administrators to review applicants.
All endpoints require an authenticated admin session.

Endpoints:
- GET /admin/applicants - List applicants with filters and pagination
- GET /admin/applicants/stats - Get dashboard statistics
- GET /admin/applicants/{id} - Get applicant details
- POST /admin/applicants/{id}/resend-email - Resend the confirmation email

Security:
- All endpoints require a valid, non-revoked session token
- Per-client rate limiting (50 requests per 15 minutes)
- Audit logging for admin actions
"""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from innovision.core.auth import AdminUser, get_current_admin
from innovision.core.database import get_db
from innovision.core.exceptions import ServiceError
from innovision.core.rate_limit import ADMIN_RATE_LIMIT, rate_limit
from innovision.modules.enrollments import service
from innovision.modules.enrollments.helpers import AgeBand
from innovision.modules.enrollments.schemas import (
    ApplicantDetailResponse,
    ApplicantFilters,
    ApplicantListResponse,
    ApplicantStatsResponse,
    ResendNotificationResponse,
    SortField,
    SortOrder,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(rate_limit("admin", *ADMIN_RATE_LIMIT))])


# ============================================
# Helper Functions
# ============================================


def _handle_unexpected_error(action: str, e: Exception) -> HTTPException:
    logger.exception(f"Error {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


def applicant_filters(
    search: str | None = Query(None, max_length=200, description="Search in full name"),
    region: str | None = Query(None, max_length=100, description="Exact wilaya"),
    course: str | None = Query(None, max_length=200, description="Exact course name"),
    age_band: AgeBand | None = Query(None, description="kids (8-17) or adults (18+)"),
    date_from: date | None = Query(None, description="First local calendar day (inclusive)"),
    date_to: date | None = Query(None, description="Last local calendar day (inclusive)"),
    sort_by: SortField = Query(SortField.CREATED_AT, description="Column to sort by"),
    sort_order: SortOrder = Query(SortOrder.DESC, description="Sort direction"),
    limit: int = Query(20, ge=1, le=100, description="Maximum records to return"),
    offset: int = Query(0, ge=0, description="Records to skip"),
) -> ApplicantFilters:
    """Collect the list query parameters into a typed filter set."""
    return ApplicantFilters(
        search=search,
        region=region,
        course=course,
        age_band=age_band,
        date_from=date_from,
        date_to=date_to,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=offset,
    )


# ============================================
# List & Stats Endpoints
# ============================================


@router.get(
    "",
    response_model=ApplicantListResponse,
    summary="List Applicants",
    description="""
Get a paginated list of applicants with optional filters.

**Filters:**
- `search`: Case-insensitive substring of the full name
- `region`, `course`: Exact match
- `age_band`: `kids` (8-17) or `adults` (18+)
- `date_from`, `date_to`: Inclusive calendar dates in the school's timezone

**Sorting:** `sort_by` (created_at, full_name, age), `sort_order` (asc, desc). Default: newest first.

**Pagination:** `limit` (1-100, default 20), `offset` (default 0)
""",
    responses={401: {"description": "Missing, invalid or revoked session"}},
)
async def list_applicants(
    filters: ApplicantFilters = Depends(applicant_filters),
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
) -> ApplicantListResponse:
    try:
        return await service.admin_list_applicants(db, admin, filters)
    except ServiceError as e:
        raise e.to_http_exception() from e
    except Exception as e:
        raise _handle_unexpected_error("listing applicants", e) from e


@router.get(
    "/stats",
    response_model=ApplicantStatsResponse,
    summary="Get Dashboard Statistics",
    description="""
Aggregate statistics over all applicants.

- `total`, `today` (since local midnight), `this_week` (since local midnight minus 7 days)
- `course_distribution`, `region_distribution`: most popular first
- `age_band_distribution`: kids and adults
- `daily_signups`: one entry per local day for the last 30 days, oldest first
""",
    responses={401: {"description": "Missing, invalid or revoked session"}},
)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
) -> ApplicantStatsResponse:
    try:
        return await service.admin_get_stats(db, admin)
    except ServiceError as e:
        raise e.to_http_exception() from e
    except Exception as e:
        raise _handle_unexpected_error("getting applicant stats", e) from e


# ============================================
# Detail & Actions
# ============================================


@router.get(
    "/{applicant_id}",
    response_model=ApplicantDetailResponse,
    summary="Get Applicant Details",
    responses={
        401: {"description": "Missing, invalid or revoked session"},
        404: {"description": "Applicant not found"},
    },
)
async def get_applicant(
    applicant_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
) -> ApplicantDetailResponse:
    try:
        applicant = await service.admin_get_applicant(db, admin, applicant_id)
        return ApplicantDetailResponse.model_validate(applicant)
    except ServiceError as e:
        raise e.to_http_exception() from e
    except Exception as e:
        raise _handle_unexpected_error(f"getting applicant {applicant_id}", e) from e


@router.post(
    "/{applicant_id}/resend-email",
    response_model=ResendNotificationResponse,
    summary="Resend Confirmation Email",
    description="""
Regenerate the applicant's confirmation document and email it again.

On success the applicant's `email_sent` flag is set.
""",
    responses={
        401: {"description": "Missing, invalid or revoked session"},
        404: {"description": "Applicant not found"},
        502: {"description": "Email delivery failed"},
    },
)
async def resend_email(
    applicant_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AdminUser = Depends(get_current_admin),
) -> ResendNotificationResponse:
    try:
        return await service.resend_notification(db, admin, applicant_id)
    except ServiceError as e:
        logger.warning(
            f"Admin {admin.id} resend for applicant {applicant_id} failed: {e.error_code}"
        )
        raise e.to_http_exception() from e
    except Exception as e:
        raise _handle_unexpected_error(f"resending email for applicant {applicant_id}", e) from e
