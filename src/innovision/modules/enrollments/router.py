"""
Enrollment Router

Public API endpoints of the enrollment form. No authentication required.

Endpoints:
- POST /enrollments - Submit the enrollment form
- GET /enrollments/courses - Courses open to a given age
- GET /enrollments/{application_id}/document - Download the confirmation document

Security:
- Per-client rate limiting on submissions and downloads
- Input validation via Pydantic schemas (all offending fields reported)
- XSS prevention in email templates
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from innovision.core.database import get_db
from innovision.core.exceptions import ServiceError
from innovision.core.rate_limit import DOCUMENT_RATE_LIMIT, ENROLLMENT_RATE_LIMIT, rate_limit
from innovision.modules.enrollments import service
from innovision.modules.enrollments.schemas import CourseListResponse, EnrollmentResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Enrollment",
    description="""
Submit the public enrollment form.

Once the applicant record is stored the submission succeeds, even if the
confirmation document or email could not be produced. The document is
always retrievable from `document_url`.

**Accepted keys:** `fullName`/`full_name`, `email`, `birthDate`/`birth_date`,
`region`/`wilaya`, `phone`, `course`, `locale` (fr, en, ar), `consent` (must be true).

**Rate limit:** 5 submissions per hour per client.
""",
    responses={
        201: {"description": "Enrollment received", "model": EnrollmentResponse},
        400: {
            "description": "Invalid form or applicant below minimum age",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "VALIDATION_ERROR",
                            "message": "Invalid data for: email",
                            "fields": [{"field": "email", "message": "value is not a valid email address"}],
                        }
                    }
                }
            },
        },
        429: {"description": "Too many submissions"},
    },
    dependencies=[Depends(rate_limit("enrollment", *ENROLLMENT_RATE_LIMIT))],
)
async def submit_enrollment(
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentResponse:
    """Run the enrollment pipeline for one submission."""
    try:
        response = await service.submit_enrollment(db, payload)

        logger.info(
            f"Enrollment submitted: application_id={response.application_id}, "
            f"status={response.status.value}"
        )
        return response

    except ServiceError as e:
        logger.info(f"Enrollment rejected: {e.error_code}")
        raise e.to_http_exception() from e
    except Exception as e:
        logger.exception(f"Unexpected error submitting enrollment: {e}")
        raise _internal_error() from e


@router.get(
    "/courses",
    response_model=CourseListResponse,
    summary="List Available Courses",
    description="Courses open to an applicant of the given age (kids 8-17, adults 18+).",
)
async def list_courses(
    age: int = Query(..., description="Applicant age in years"),
) -> CourseListResponse:
    try:
        return service.list_courses(age)
    except ServiceError as e:
        raise e.to_http_exception() from e


@router.get(
    "/{application_id}/document",
    response_class=Response,
    summary="Download Confirmation Document",
    description="""
Download the confirmation PDF for an application id.

The document is regenerated from the stored record on every request.

**Rate limit:** 20 downloads per 10 minutes per client.
""",
    responses={
        200: {"content": {"application/pdf": {}}, "description": "The confirmation PDF"},
        404: {"description": "Unknown application id"},
        429: {"description": "Too many downloads"},
    },
    dependencies=[Depends(rate_limit("document", *DOCUMENT_RATE_LIMIT))],
)
async def download_document(
    application_id: str,
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        document = await service.get_document(db, application_id)
    except ServiceError as e:
        if e.status_code >= 500:
            logger.error(f"Document retrieval failed for {application_id}: {e.message}")
        raise e.to_http_exception() from e
    except Exception as e:
        logger.exception(f"Unexpected error retrieving document {application_id}: {e}")
        raise _internal_error() from e

    return Response(
        content=document,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="inscription-{application_id}.pdf"'},
    )
