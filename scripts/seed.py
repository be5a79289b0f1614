"""Seed the database with a demo club.

Run with: python -m scripts.seed
Creates one club with courts, a winter-break blackout, and two courses
(one per pricing mode) with upcoming sessions.
"""

import asyncio
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import select, text

from clubslots.core.config import settings
from clubslots.core.database import async_session_factory, engine
from clubslots.models import BlockedPeriod, Base, Club, Course, CourseSession, Court, PricingMode

CLUB = {"name": "TC Vinschgau", "slug": "tc-vinschgau"}

# Clay courts close earlier and play longer slots
COURTS = [
    {"name": "Court 1", "surface": "clay", "start_hour": 8, "end_hour": 20, "slot_duration_minutes": 60},
    {"name": "Court 2", "surface": "clay", "start_hour": 8, "end_hour": 20, "slot_duration_minutes": 60},
    {"name": "Court 3", "surface": "hard", "start_hour": 7, "end_hour": 22, "slot_duration_minutes": 90},
    {"name": "Padel", "surface": "artificial", "start_hour": 8, "end_hour": 23, "slot_duration_minutes": 90},
]

COURSES = [
    {"title": "Beginners Course (6 weeks)", "pricing_mode": PricingMode.FULL_COURSE, "max_participants": 8},
    {"title": "Drop-in Cardio Tennis", "pricing_mode": PricingMode.PER_SESSION, "max_participants": 6},
]


def _local(day: date, hour: int) -> datetime:
    return datetime.combine(day, time(hour), tzinfo=settings.tz).astimezone(UTC)


async def seed():
    # Create tables (in dev; production uses Alembic migrations)
    async with engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            # ex_bookings_court_overlap compares court_id with = inside a gist index
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS btree_gist"))
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as db:
        # Check if already seeded
        result = await db.execute(select(Club).where(Club.slug == CLUB["slug"]))
        if result.scalar_one_or_none():
            print("Database already seeded - skipping.")
            return

        club = Club(**CLUB)
        db.add(club)
        await db.flush()

        courts = []
        for i, court_data in enumerate(COURTS):
            court = Court(club_id=club.id, sort_order=i, **court_data)
            db.add(court)
            courts.append(court)
        await db.flush()

        # Club-wide winter break, plus a resurfacing closure on one court
        today = datetime.now(settings.tz).date()
        db.add(BlockedPeriod(
            club_id=club.id,
            start_date=date(today.year, 12, 22),
            end_date=date(today.year + 1, 1, 6),
            reason="Winter break",
        ))
        db.add(BlockedPeriod(
            club_id=club.id,
            court_id=courts[0].id,
            start_date=today + timedelta(days=14),
            end_date=today + timedelta(days=16),
            reason="Resurfacing",
        ))

        # Weekly sessions on Court 2, starting next week
        first = today + timedelta(days=7 - today.weekday())
        for course_data in COURSES:
            course = Course(club_id=club.id, **course_data)
            db.add(course)
            await db.flush()
            hour = 17 if course.pricing_mode == PricingMode.FULL_COURSE else 19
            for week in range(6):
                day = first + timedelta(weeks=week)
                db.add(CourseSession(
                    course_id=course.id,
                    court_id=courts[1].id,
                    start_time=_local(day, hour),
                    end_time=_local(day, hour + 1),
                ))

        await db.commit()

        print(f"Seeded: {club.name}")
        print(f"  {len(COURTS)} courts")
        print("  2 blocked periods")
        print(f"  {len(COURSES)} courses with 6 sessions each")


if __name__ == "__main__":
    asyncio.run(seed())
