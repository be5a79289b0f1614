"""Snapshot loaders: fetch what the availability engine needs for a day.

All queries are range queries in UTC over the club-local day, so a booking
that straddles midnight still shows up on both days.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clubslots.models.blocked_period import BlockedPeriod
from clubslots.models.booking import HOLDING_STATUSES, Booking
from clubslots.models.club import Court
from clubslots.models.course import Course, CourseEnrollment, CourseSession, EnrollmentStatus


@dataclass
class DaySnapshot:
    periods: list[BlockedPeriod] = field(default_factory=list)
    bookings: list[Booking] = field(default_factory=list)
    sessions: list[CourseSession] = field(default_factory=list)


def day_range_utc(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time(0), tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time(0), tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


async def load_day_snapshot(db: AsyncSession, club_id: int, court_ids: list[int], day: date, tz: tzinfo) -> DaySnapshot:
    """Blocked periods, holding bookings and course sessions touching day."""
    if not court_ids:
        return DaySnapshot()

    day_start, day_end = day_range_utc(day, tz)

    periods_result = await db.execute(
        select(BlockedPeriod)
        .where(
            BlockedPeriod.club_id == club_id,
            or_(BlockedPeriod.court_id.is_(None), BlockedPeriod.court_id.in_(court_ids)),
            BlockedPeriod.start_date <= day,
            BlockedPeriod.end_date >= day,
        )
        .order_by(BlockedPeriod.start_date, BlockedPeriod.id)
    )

    bookings_result = await db.execute(
        select(Booking).where(
            Booking.court_id.in_(court_ids),
            Booking.status.in_(HOLDING_STATUSES),
            Booking.start_time < day_end,
            Booking.end_time > day_start,
        )
    )

    sessions_result = await db.execute(
        select(CourseSession).where(
            CourseSession.court_id.in_(court_ids),
            CourseSession.start_time < day_end,
            CourseSession.end_time > day_start,
        )
    )

    return DaySnapshot(
        periods=list(periods_result.scalars().all()),
        bookings=list(bookings_result.scalars().all()),
        sessions=list(sessions_result.scalars().all()),
    )


async def load_court_snapshot(db: AsyncSession, court: Court, day: date, tz: tzinfo) -> DaySnapshot:
    return await load_day_snapshot(db, court.club_id, [court.id], day, tz)


async def load_course_fill(db: AsyncSession, course_ids: list[int]) -> tuple[dict[int, int], dict[int, int]]:
    """Return (confirmed full-course seats per course, booked seats per session)."""
    confirmed: dict[int, int] = defaultdict(int)
    per_session: dict[int, int] = defaultdict(int)
    if not course_ids:
        return confirmed, per_session

    result = await db.execute(
        select(CourseEnrollment.course_id, CourseEnrollment.session_id, func.count(CourseEnrollment.id))
        .where(
            CourseEnrollment.course_id.in_(course_ids),
            CourseEnrollment.status == EnrollmentStatus.CONFIRMED,
        )
        .group_by(CourseEnrollment.course_id, CourseEnrollment.session_id)
    )
    for course_id, session_id, count in result.all():
        if session_id is None:
            confirmed[course_id] += count
        else:
            per_session[session_id] += count
    return confirmed, per_session


async def load_published_courses(db: AsyncSession, club_id: int) -> list[Course]:
    result = await db.execute(
        select(Course).where(Course.club_id == club_id, Course.is_published.is_(True)).order_by(Course.title)
    )
    return list(result.scalars().all())
