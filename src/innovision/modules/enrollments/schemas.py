"""
Enrollment Schemas

Pydantic schemas for request validation and response serialization.
"""

import enum
from datetime import date, datetime
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StrictBool,
    field_validator,
)

# Re-use enums from models (they work with Pydantic too!)
from innovision.modules.enrollments.helpers import AgeBand
from innovision.modules.enrollments.models import EnrollmentStatus, Locale


class EnrollmentCreate(BaseModel):
    """
    Public enrollment form submission.

    Accepts both snake_case and the web client's camelCase keys; ``wilaya``
    is accepted as an alias of ``region``.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        validation_alias=AliasChoices("full_name", "fullName"),
    )
    email: EmailStr
    birth_date: date = Field(..., validation_alias=AliasChoices("birth_date", "birthDate"))
    region: str = Field(
        ..., min_length=1, max_length=100, validation_alias=AliasChoices("region", "wilaya")
    )
    phone: str = Field(..., min_length=1, max_length=20)
    course: str = Field(..., min_length=1, max_length=200)
    locale: Locale = Locale.FR
    consent: StrictBool

    @field_validator("consent")
    @classmethod
    def consent_given(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("Consent is required to submit the enrollment form")
        return v


class EnrollmentResponse(BaseModel):
    """Response after submitting the enrollment form."""

    application_id: str
    document_url: str
    status: EnrollmentStatus
    email_sent: bool
    message: str = "Enrollment received. Your confirmation document is ready."


class Course(BaseModel):
    name: str


class CourseListResponse(BaseModel):
    """Courses open to a given age."""

    age: int
    age_band: AgeBand | None
    courses: list[Course]


# ============================================
# Admin Query Schemas
# ============================================


class SortField(str, enum.Enum):
    CREATED_AT = "created_at"
    FULL_NAME = "full_name"
    AGE = "age"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class ApplicantFilters(BaseModel):
    """
    Typed filter set for the admin applicant list.

    ``date_from`` and ``date_to`` are inclusive calendar dates in the
    school's local timezone.
    """

    search: str | None = Field(None, max_length=200)
    region: str | None = Field(None, max_length=100)
    course: str | None = Field(None, max_length=200)
    age_band: AgeBand | None = None
    date_from: date | None = None
    date_to: date | None = None
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)

    @field_validator("search", "region", "course")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ApplicantListItem(BaseModel):
    """Summary of an applicant for list views."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: str
    full_name: str
    email: str
    age: int
    region: str
    course: str
    locale: Locale
    status: EnrollmentStatus
    email_sent: bool
    created_at: datetime


class ApplicantDetailResponse(ApplicantListItem):
    """Full applicant record for the admin detail view."""

    birth_date: date
    phone: str
    document_url: str | None
    updated_at: datetime


class ApplicantListResponse(BaseModel):
    """Paginated list of applicants."""

    applicants: list[ApplicantListItem]
    total: int
    limit: int
    offset: int


class CountItem(BaseModel):
    name: str
    count: int


class AgeBandCount(BaseModel):
    band: AgeBand
    count: int


class DailySignup(BaseModel):
    day: date
    count: int


class ApplicantStatsResponse(BaseModel):
    """Dashboard statistics over all applicants."""

    total: int
    today: int
    this_week: int
    course_distribution: list[CountItem]
    region_distribution: list[CountItem]
    age_band_distribution: list[AgeBandCount]
    daily_signups: list[DailySignup]


class ResendNotificationResponse(BaseModel):
    """Response after resending the confirmation email."""

    success: bool = True
    application_id: str
    email_sent: bool
    message: str = "Confirmation email sent."
