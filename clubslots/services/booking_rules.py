"""Write-time checks run before a booking row is inserted.

validate_booking() checks the requested start against the court's slot grid
and the clock, then re-runs the availability engine in strict mode on a
snapshot loaded inside the same transaction. The grid shown to players may
be stale; this snapshot is not.

The checks fail closed: a record the engine cannot interpret rejects the
booking as ambiguous_state instead of letting it through.
"""

import logging
from datetime import UTC, date, datetime, time, timedelta, tzinfo

from sqlalchemy.ext.asyncio import AsyncSession

from clubslots.models.booking import HOLDING_STATUSES, Booking
from clubslots.models.club import Court
from clubslots.services.availability import REASON_COURSE, REASON_TAKEN, court_availability, find_verdict
from clubslots.services.blackouts import AvailabilityDataError
from clubslots.services.slots import OperatingWindow, slots_for_window
from clubslots.services.snapshots import load_court_snapshot

logger = logging.getLogger(__name__)


class BookingViolation(Exception):
    """A failed write-time check.

    rule is the stable code the API returns (off_grid, blocked, court_conflict,
    ...); message is the human-readable explanation next to it.
    """

    def __init__(self, rule: str, message: str):
        super().__init__(message)
        self.rule = rule
        self.message = message

    def __repr__(self) -> str:
        return f"<BookingViolation {self.rule}: {self.message}>"


def booking_bounds(court: Court, booking_date: date, start_time: time, tz: tzinfo) -> tuple[datetime, datetime]:
    """Local start/end of a booking on court, one slot long."""
    start = datetime.combine(booking_date, start_time, tzinfo=tz)
    return start, start + timedelta(minutes=court.slot_duration_minutes)


async def validate_booking(
    db: AsyncSession,
    court: Court,
    booking_date: date,
    start_time: time,
    tz: tzinfo,
    now: datetime | None = None,
) -> list[BookingViolation]:
    """Every reason the slot can't be booked right now; an empty list lets the insert go ahead."""
    violations: list[BookingViolation] = []

    # 1. Start time must be one of the court's slots
    v = check_on_grid(court, start_time)
    if v:
        violations.append(v)
        # Nothing else is meaningful for a slot that doesn't exist
        return violations

    # 2. Not in the past
    v = check_not_in_past(booking_date, start_time, tz, now)
    if v:
        violations.append(v)

    # 3. Blackouts, conflicting bookings and course sessions, on a fresh snapshot
    snapshot = await load_court_snapshot(db, court, booking_date, tz)
    v = check_slot_free(court, booking_date, start_time, tz, snapshot)
    if v:
        violations.append(v)

    return violations


def check_on_grid(court: Court, start_time: time) -> BookingViolation | None:
    """Booking must start on a generated slot of the court's operating window."""
    label = start_time.strftime("%H:%M")
    slots = slots_for_window(OperatingWindow.for_court(court))
    if start_time.second or start_time.microsecond or all(s.label != label for s in slots):
        if not slots:
            return BookingViolation("off_grid", f"{court.name} has no bookable slots configured.")
        return BookingViolation(
            "off_grid",
            f"{label} is not a bookable start time on {court.name}. "
            f"Slots run from {slots[0].label} to {slots[-1].end_label} every {court.slot_duration_minutes} minutes.",
        )
    return None


def check_not_in_past(
    booking_date: date, start_time: time, tz: tzinfo, now: datetime | None = None
) -> BookingViolation | None:
    """The slot must start after now, compared in the club's time zone."""
    now = now or datetime.now(UTC)
    slot_start = datetime.combine(booking_date, start_time, tzinfo=tz)

    if slot_start <= now:
        return BookingViolation("past_booking", "This slot has already started.")

    return None


def check_slot_free(court: Court, booking_date: date, start_time: time, tz: tzinfo, snapshot) -> BookingViolation | None:
    """The slot must be free of blackouts, holds, active bookings and course sessions."""
    try:
        verdicts = court_availability(
            OperatingWindow.for_court(court),
            booking_date,
            court.id,
            periods=snapshot.periods,
            bookings=snapshot.bookings,
            sessions=snapshot.sessions,
            tz=tz,
            strict=True,
        )
    except AvailabilityDataError as exc:
        logger.warning("Rejecting booking on court %s: %s", court.id, exc)
        return BookingViolation("ambiguous_state", "Availability could not be verified. Please try again later.")

    verdict = find_verdict(verdicts, start_time.strftime("%H:%M"))
    if verdict is None:
        return BookingViolation("ambiguous_state", "Availability could not be verified. Please try again later.")
    if verdict.bookable:
        return None
    if verdict.blocked_reason == REASON_TAKEN:
        return BookingViolation("court_conflict", "This slot has already been booked.")
    if verdict.blocked_reason == REASON_COURSE:
        return BookingViolation("course_session", "A course is using the court at this time.")
    return BookingViolation("blocked", f"{court.name} is blocked on {booking_date}: {verdict.blocked_reason}.")


def check_cancellable(booking: Booking) -> BookingViolation | None:
    """Only bookings that still hold the court can be cancelled."""
    if booking.status not in HOLDING_STATUSES:
        return BookingViolation("not_cancellable", f"Booking is {booking.status} and cannot be cancelled.")
    return None
