"""Per-slot availability verdicts for courts and courses.

Combines the slot generator, the blackout resolver, a snapshot of existing
bookings and course sessions, and course fill levels. Everything here is a
pure function of its inputs; callers fetch the snapshots.

Two error policies:
- display (strict=False): malformed records are logged and ignored, so a bad
  row can never take the booking grid down;
- write (strict=True): malformed records raise AvailabilityDataError, so the
  booking validator rejects rather than guesses.

Verdicts are advisory. Exclusivity is enforced by the database at write time.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, tzinfo

from clubslots.services.blackouts import AvailabilityDataError, resolve_blackout
from clubslots.services.slots import OperatingWindow, TimeSlot, slots_for_window

logger = logging.getLogger(__name__)

REASON_TAKEN = "taken"
REASON_COURSE = "course"
REASON_PAST = "past"
REASON_FULL = "full"

PRICING_FULL_COURSE = "full_course"
PRICING_PER_SESSION = "per_session"

_HOLDING = frozenset({"awaiting_payment", "active"})
_KNOWN_STATUSES = _HOLDING | {"cancelled"}


@dataclass(frozen=True)
class AvailabilityVerdict:
    slot: TimeSlot
    bookable: bool
    blocked_reason: str | None = None


@dataclass(frozen=True)
class SessionVerdict:
    session_id: int
    booked_count: int
    bookable: bool


@dataclass(frozen=True)
class CourseVerdict:
    course_id: int
    bookable: bool
    blocked_reason: str | None
    sessions: tuple[SessionVerdict, ...] = ()


def _aware(value) -> datetime | None:
    """Timestamps from the database are UTC; SQLite hands them back naive."""
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _interval(record, strict: bool) -> tuple[datetime, datetime] | None:
    start = _aware(getattr(record, "start_time", None))
    end = _aware(getattr(record, "end_time", None))
    if start is None or end is None or end <= start:
        if strict:
            raise AvailabilityDataError(f"Malformed time range on {record!r}")
        logger.warning("Ignoring record with malformed time range: %r", record)
        return None
    return start, end


def _holds_court(booking, strict: bool) -> bool:
    status = getattr(booking, "status", None)
    status = str(status) if status is not None else None
    if status not in _KNOWN_STATUSES:
        if strict:
            raise AvailabilityDataError(f"Unknown booking status {status!r} on {booking!r}")
        logger.warning("Ignoring booking with unknown status %r: %r", status, booking)
        return False
    return status in _HOLDING


def busy_intervals(
    court_id,
    bookings: Iterable = (),
    sessions: Iterable = (),
    strict: bool = False,
) -> list[tuple[datetime, datetime, str]]:
    """Collect (start, end, reason) for everything occupying court_id."""
    busy = []
    for booking in bookings:
        if getattr(booking, "court_id", None) != court_id:
            continue
        if not _holds_court(booking, strict):
            continue
        interval = _interval(booking, strict)
        if interval:
            busy.append((*interval, REASON_TAKEN))
    for session in sessions:
        if getattr(session, "court_id", None) != court_id:
            continue
        interval = _interval(session, strict)
        if interval:
            busy.append((*interval, REASON_COURSE))
    return busy


def slot_bounds(day: date, slot: TimeSlot, tz: tzinfo) -> tuple[datetime, datetime]:
    start = datetime.combine(day, slot.start, tzinfo=tz)
    return start, start + timedelta(minutes=slot.duration_minutes)


def court_availability(
    window: OperatingWindow,
    day: date,
    court_id,
    periods: Iterable = (),
    bookings: Iterable = (),
    sessions: Iterable = (),
    tz: tzinfo = UTC,
    now: datetime | None = None,
    strict: bool = False,
) -> list[AvailabilityVerdict]:
    """Return one verdict per slot of window on day for court_id.

    Precedence: blackout, then conflicting booking, then course session,
    then (only if now is given) slots that have already started.
    Overlap uses half-open intervals, so back-to-back bookings don't clash.
    """
    slots = slots_for_window(window)
    if not slots:
        return []

    blackout = resolve_blackout(day, periods, court_id=court_id, tz=tz, strict=strict)
    if blackout is not None:
        return [AvailabilityVerdict(slot, False, blackout.reason) for slot in slots]

    busy = busy_intervals(court_id, bookings, sessions, strict=strict)
    now = _aware(now) if now is not None else None

    verdicts = []
    for slot in slots:
        slot_start, slot_end = slot_bounds(day, slot, tz)
        reason = next((r for b_start, b_end, r in busy if b_start < slot_end and b_end > slot_start), None)
        if reason is None and now is not None and slot_start <= now:
            reason = REASON_PAST
        verdicts.append(AvailabilityVerdict(slot, reason is None, reason))
    return verdicts


def find_verdict(verdicts: Iterable[AvailabilityVerdict], label: str) -> AvailabilityVerdict | None:
    return next((v for v in verdicts if v.slot.label == label), None)


# ---------------------------------------------------------------------------
# Course capacity
# ---------------------------------------------------------------------------


def session_is_bookable(max_participants: int, booked_count: int) -> bool:
    if not max_participants:
        return True
    return booked_count < max_participants


def course_is_bookable(
    pricing_mode,
    max_participants: int,
    confirmed_count: int = 0,
    session_counts: Iterable[int] = (),
) -> bool:
    """Capacity check by pricing mode.

    full_course: full once confirmed_count reaches max_participants.
    per_session: bookable while any session has room; no sessions means
    nothing to book. max_participants = 0 means unlimited in both modes.
    """
    mode = str(pricing_mode) if pricing_mode else PRICING_FULL_COURSE
    if mode == PRICING_PER_SESSION:
        counts = list(session_counts)
        if not counts:
            return False
        return any(session_is_bookable(max_participants, c) for c in counts)
    if not max_participants:
        return True
    return confirmed_count < max_participants


def course_availability(
    course,
    confirmed_count: int = 0,
    session_counts: Mapping[int, int] | None = None,
) -> CourseVerdict:
    """Verdict for a Course row (or lookalike) given its fill levels.

    session_counts maps session id to booked seats; missing ids count as 0.
    """
    session_counts = session_counts or {}
    max_participants = course.max_participants or 0
    sessions = tuple(
        SessionVerdict(
            session_id=s.id,
            booked_count=session_counts.get(s.id, 0),
            bookable=session_is_bookable(max_participants, session_counts.get(s.id, 0)),
        )
        for s in (course.sessions or [])
    )
    bookable = course_is_bookable(
        course.pricing_mode,
        max_participants,
        confirmed_count,
        [s.booked_count for s in sessions],
    )
    return CourseVerdict(course.id, bookable, None if bookable else REASON_FULL, sessions)
