"""All models imported here for Alembic autogenerate discovery."""

from clubslots.models.base import Base
from clubslots.models.blocked_period import BlockedPeriod
from clubslots.models.booking import HOLDING_STATUSES, Booking, BookingStatus
from clubslots.models.club import Club, Court
from clubslots.models.course import Course, CourseEnrollment, CourseSession, EnrollmentStatus, PricingMode

__all__ = [
    "Base",
    "Club",
    "Court",
    "BlockedPeriod",
    "Booking",
    "BookingStatus",
    "HOLDING_STATUSES",
    "Course",
    "CourseSession",
    "CourseEnrollment",
    "PricingMode",
    "EnrollmentStatus",
]
