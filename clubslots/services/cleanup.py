"""Release reservation holds that were never paid for.

A booking created at checkout sits in awaiting_payment until the payment
provider confirms it. Holds older than the TTL are deleted so the slot
becomes bookable again. This is eventual cleanup, not a lock: double
booking is prevented by the unique index on bookings, not by this job.
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from clubslots.core.config import settings
from clubslots.models.booking import Booking, BookingStatus

logger = logging.getLogger(__name__)


def expiry_threshold(now: datetime | None = None, ttl_minutes: int | None = None) -> datetime:
    now = now or datetime.now(UTC)
    ttl = settings.pending_booking_ttl_minutes if ttl_minutes is None else ttl_minutes
    return now - timedelta(minutes=ttl)


def is_expired(booking: Booking, now: datetime | None = None, ttl_minutes: int | None = None) -> bool:
    """True for an awaiting_payment hold older than the TTL."""
    if booking.status != BookingStatus.AWAITING_PAYMENT:
        return False
    created = booking.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=UTC)
    return created < expiry_threshold(now, ttl_minutes)


async def release_expired_bookings(
    db: AsyncSession, now: datetime | None = None, ttl_minutes: int | None = None
) -> int:
    """Delete expired awaiting_payment holds. Returns the number deleted."""
    threshold = expiry_threshold(now, ttl_minutes)

    result = await db.execute(
        select(Booking.id).where(
            Booking.status == BookingStatus.AWAITING_PAYMENT,
            Booking.created_at < threshold,
        )
    )
    ids = list(result.scalars().all())
    if not ids:
        return 0

    await db.execute(delete(Booking).where(Booking.id.in_(ids)))
    await db.flush()
    logger.info("Released %d expired booking holds created before %s", len(ids), threshold.isoformat())
    return len(ids)
