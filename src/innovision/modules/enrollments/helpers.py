"""
Enrollment Helpers

Age derivation, application id generation, age bands, local calendar
boundaries and the course catalog. Pure functions shared by the service,
the repository and the routers.
"""

import enum
import math
import re
import secrets
import string
from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from innovision.core.config import settings

MINIMUM_AGE = 8
ADULT_AGE = 18

# Average Gregorian year, leap years included
AVERAGE_YEAR_SECONDS = 365.25 * 24 * 60 * 60

APPLICATION_ID_PREFIX = "INV"
APPLICATION_ID_SUFFIX_LENGTH = 9
APPLICATION_ID_ALPHABET = string.digits + string.ascii_uppercase
APPLICATION_ID_PATTERN = re.compile(r"^INV-\d{13}-[0-9A-Z]{9}$")


class AgeBand(str, enum.Enum):
    """Age groups used for filtering and statistics."""

    KIDS = "kids"
    ADULTS = "adults"

    @property
    def bounds(self) -> tuple[int, int | None]:
        """Inclusive (min, max) age; max is None for open-ended bands."""
        if self is AgeBand.KIDS:
            return MINIMUM_AGE, ADULT_AGE - 1
        return ADULT_AGE, None


def calculate_age(birth_date: date, submitted_at: datetime) -> int:
    """
    Whole years elapsed between the birth date and the submission instant.

    The birth date is taken at 00:00 UTC and a year is 365.25 days, so the
    result can differ by one from a calendar-birthday computation right
    around a birthday.
    """
    born_at = datetime.combine(birth_date, time.min, tzinfo=UTC)
    if submitted_at.tzinfo is None:
        submitted_at = submitted_at.replace(tzinfo=UTC)
    elapsed = (submitted_at - born_at).total_seconds()
    return math.floor(elapsed / AVERAGE_YEAR_SECONDS)


def generate_application_id(now: datetime | None = None) -> str:
    """
    Build a new application id: ``INV-<epoch ms>-<9 random [0-9A-Z]>``.

    Uniqueness relies on the random suffix; the store's unique index is the
    final guard.
    """
    now = now or datetime.now(UTC)
    epoch_ms = int(now.timestamp() * 1000)
    suffix = "".join(
        secrets.choice(APPLICATION_ID_ALPHABET) for _ in range(APPLICATION_ID_SUFFIX_LENGTH)
    )
    return f"{APPLICATION_ID_PREFIX}-{epoch_ms}-{suffix}"


def is_valid_application_id(value: str) -> bool:
    return bool(APPLICATION_ID_PATTERN.match(value))


def document_url_for(application_id: str) -> str:
    """The on-demand retrieval path of an applicant's confirmation document."""
    return f"{settings.api_prefix}/enrollments/{application_id}/document"


def school_timezone() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def local_midnight(now: datetime, tz: ZoneInfo) -> datetime:
    """Start of the local calendar day containing ``now``, as an aware datetime."""
    local_now = now.astimezone(tz)
    return datetime.combine(local_now.date(), time.min, tzinfo=tz)


def local_day_start_utc(day: date, tz: ZoneInfo) -> datetime:
    """UTC instant at which the local calendar ``day`` begins."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(UTC)


def local_day_end_utc(day: date, tz: ZoneInfo) -> datetime:
    """UTC instant at which the local calendar ``day`` ends (exclusive)."""
    return local_day_start_utc(day + timedelta(days=1), tz)


# Course catalog, as published on the enrollment form
KIDS_COURSES = (
    "ربوتيك و برمجة للصغار",
    "تصميم الرسومات المتحركة الثلاثية الابعاد للصغار (3D Animations)",
    "تطوير الالعاب الالكترونية للصغار (Video Games)",
    "تطوير مواقع و تطبيقات الواب",
    "تطوير تطبيقات الهاتف",
    "نادي الشطرنج",
)

ADULT_COURSES = (
    "شبكات الإعلام الآلي و الأمن السيبراني + التحضير لشهادة CISCO",
    "الإعلام الآلي المكتبي (Bureautique)",
    "بايثون و ذكاء اصطناعي",
    "أردوينو و برمجة المشاريع الالكترونية",
    "الطباعة الثلاثية الأبعاد",
)

SHARED_COURSES = (
    "تطوير مواقع و تطبيقات الواب",
    "تطوير تطبيقات الهاتف",
    "مونتاج الفيديوهات (Video Editing)",
    "التصميم الجرافيكي (Graphic Design)",
    "نادي الشطرنج",
)


def age_band_for(age: int) -> AgeBand | None:
    if age < MINIMUM_AGE:
        return None
    return AgeBand.KIDS if age < ADULT_AGE else AgeBand.ADULTS


def available_courses(age: int) -> list[str]:
    """Courses open to an applicant of the given age, de-duplicated and sorted."""
    band = age_band_for(age)
    if band is None:
        return []
    specific = KIDS_COURSES if band is AgeBand.KIDS else ADULT_COURSES
    return sorted(set(specific) | set(SHARED_COURSES))
