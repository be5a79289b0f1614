"""Club, court, and availability routes."""

from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clubslots.core.config import settings
from clubslots.core.database import get_db
from clubslots.models.club import Club, Court
from clubslots.schemas import (
    AvailabilityOut,
    ClubAvailabilityOut,
    ClubOut,
    CourseAvailabilityOut,
    CourtOut,
    SessionAvailabilityOut,
    SlotOut,
)
from clubslots.services.availability import AvailabilityVerdict, course_availability, court_availability
from clubslots.services.blackouts import resolve_blackout
from clubslots.services.slots import OperatingWindow
from clubslots.services.snapshots import (
    DaySnapshot,
    load_course_fill,
    load_day_snapshot,
    load_published_courses,
)

router = APIRouter(prefix="/clubs", tags=["clubs"])


async def get_club_or_404(db: AsyncSession, slug: str) -> Club:
    result = await db.execute(select(Club).where(Club.slug == slug, Club.is_active.is_(True)))
    club = result.scalar_one_or_none()
    if club is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Club not found")
    return club


async def _active_courts(db: AsyncSession, club_id: int) -> list[Court]:
    result = await db.execute(
        select(Court).where(Court.club_id == club_id, Court.is_active.is_(True)).order_by(Court.sort_order, Court.name)
    )
    return list(result.scalars().all())


def _slot_out(verdict: AvailabilityVerdict) -> SlotOut:
    return SlotOut(
        start_time=verdict.slot.label,
        end_time=verdict.slot.end_label,
        is_available=verdict.bookable,
        reason=verdict.blocked_reason,
    )


def _court_availability(court: Court, query_date: date, snapshot: DaySnapshot, now: datetime) -> AvailabilityOut:
    tz = settings.tz
    blackout = resolve_blackout(query_date, snapshot.periods, court_id=court.id, tz=tz)
    verdicts = court_availability(
        OperatingWindow.for_court(court),
        query_date,
        court.id,
        periods=snapshot.periods,
        bookings=snapshot.bookings,
        sessions=snapshot.sessions,
        tz=tz,
        now=now,
    )
    return AvailabilityOut(
        court_id=court.id,
        court_name=court.name,
        date=query_date,
        blocked_reason=blackout.reason if blackout else None,
        slots=[_slot_out(v) for v in verdicts],
    )


# ---------------------------------------------------------------------------
# Public endpoints (court availability for everyone)
# ---------------------------------------------------------------------------


@router.get("/{slug}", response_model=ClubOut)
async def get_club(slug: str, db: AsyncSession = Depends(get_db)):
    return await get_club_or_404(db, slug)


@router.get("/{slug}/courts", response_model=list[CourtOut])
async def list_courts(slug: str, db: AsyncSession = Depends(get_db)):
    club = await get_club_or_404(db, slug)
    return await _active_courts(db, club.id)


@router.get("/{slug}/courts/{court_id}/availability", response_model=AvailabilityOut)
async def get_court_availability(
    slug: str,
    court_id: int,
    query_date: date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    db: AsyncSession = Depends(get_db),
):
    club = await get_club_or_404(db, slug)
    result = await db.execute(
        select(Court).where(Court.id == court_id, Court.club_id == club.id, Court.is_active.is_(True))
    )
    court = result.scalar_one_or_none()
    if court is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Court not found")

    snapshot = await load_day_snapshot(db, club.id, [court.id], query_date, settings.tz)
    return _court_availability(court, query_date, snapshot, datetime.now(UTC))


@router.get("/{slug}/availability", response_model=ClubAvailabilityOut)
async def get_club_availability(
    slug: str,
    query_date: date = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    db: AsyncSession = Depends(get_db),
):
    """Return availability for ALL courts of a club on a given date.

    Used by the grid view where courts are columns and times are rows.
    """
    club = await get_club_or_404(db, slug)
    courts = await _active_courts(db, club.id)

    # One snapshot for all courts; the engine filters by court itself
    snapshot = await load_day_snapshot(db, club.id, [c.id for c in courts], query_date, settings.tz)
    now = datetime.now(UTC)

    return ClubAvailabilityOut(
        club_id=club.id,
        club_name=club.name,
        date=query_date,
        courts=[_court_availability(court, query_date, snapshot, now) for court in courts],
    )


@router.get("/{slug}/courses/availability", response_model=list[CourseAvailabilityOut])
async def get_course_availability(
    slug: str,
    only_available: bool = Query(False, description="Hide courses without free seats"),
    db: AsyncSession = Depends(get_db),
):
    club = await get_club_or_404(db, slug)
    courses = await load_published_courses(db, club.id)
    confirmed, per_session = await load_course_fill(db, [c.id for c in courses])

    out = []
    for course in courses:
        verdict = course_availability(course, confirmed.get(course.id, 0), per_session)
        if only_available and not verdict.bookable:
            continue
        sessions_by_id = {s.id: s for s in course.sessions}
        out.append(
            CourseAvailabilityOut(
                course_id=course.id,
                title=course.title,
                pricing_mode=str(course.pricing_mode),
                max_participants=course.max_participants,
                confirmed_count=confirmed.get(course.id, 0),
                is_available=verdict.bookable,
                reason=verdict.blocked_reason,
                sessions=[
                    SessionAvailabilityOut(
                        session_id=sv.session_id,
                        start_time=sessions_by_id[sv.session_id].start_time,
                        end_time=sessions_by_id[sv.session_id].end_time,
                        booked_count=sv.booked_count,
                        is_available=sv.bookable,
                    )
                    for sv in verdict.sessions
                ],
            )
        )
    return out
