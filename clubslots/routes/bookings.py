"""Booking routes: create, confirm, cancel, with write-time availability checks.

The availability grid is advisory. Every write re-validates against a fresh
snapshot taken under a row lock on the court. On PostgreSQL the exclusion
constraint on bookings rejects overlapping holds that get past it anyway.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clubslots.core.config import settings
from clubslots.core.database import get_db
from clubslots.models.booking import Booking, BookingStatus
from clubslots.models.club import Club, Court
from clubslots.schemas import BookingCreate, BookingOut
from clubslots.services.booking_rules import booking_bounds, check_cancellable, validate_booking
from clubslots.services.cleanup import is_expired

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["bookings"])


async def _get_booking_or_404(db: AsyncSession, booking_id: int) -> Booking:
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


@router.post("", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
async def create_booking(body: BookingCreate, db: AsyncSession = Depends(get_db)):
    # Row lock on the court: one booking write per court at a time until commit
    result = await db.execute(
        select(Court)
        .join(Club)
        .where(Court.id == body.court_id, Court.is_active.is_(True), Club.is_active.is_(True))
        .with_for_update(of=Court)
    )
    court = result.scalar_one_or_none()
    if court is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Court not found or not bookable")

    tz = settings.tz
    violations = await validate_booking(db, court, body.booking_date, body.start_time, tz)
    if violations:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[{"rule": v.rule, "message": v.message} for v in violations],
        )

    start, end = booking_bounds(court, body.booking_date, body.start_time, tz)
    booking = Booking(
        club_id=court.club_id,
        court_id=court.id,
        start_time=start.astimezone(UTC),
        end_time=end.astimezone(UTC),
        status=BookingStatus.AWAITING_PAYMENT if body.requires_payment else BookingStatus.ACTIVE,
        user_ref=body.user_ref,
        guest_name=body.guest_name,
        guest_email=body.guest_email,
    )

    db.add(booking)
    # A concurrent request may have taken the slot since validation ran
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=[{"rule": "court_conflict", "message": "This slot has just been booked."}],
        ) from None

    logger.info("Booking %s created on court %s at %s (%s)", booking.id, court.id, start.isoformat(), booking.status)
    return booking


@router.post("/{booking_id}/confirm", response_model=BookingOut)
async def confirm_booking(booking_id: int, db: AsyncSession = Depends(get_db)):
    """Promote a hold to active. Called once the payment provider reports success."""
    booking = await _get_booking_or_404(db, booking_id)

    if booking.status == BookingStatus.ACTIVE:
        return booking
    if booking.status != BookingStatus.AWAITING_PAYMENT or is_expired(booking):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Booking hold is no longer valid")

    booking.status = BookingStatus.ACTIVE
    await db.flush()
    return booking


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_booking(booking_id: int, db: AsyncSession = Depends(get_db)):
    booking = await _get_booking_or_404(db, booking_id)

    violation = check_cancellable(booking)
    if violation:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=[{"rule": violation.rule, "message": violation.message}],
        )

    booking.status = BookingStatus.CANCELLED
    booking.cancelled_at = datetime.now(UTC)
