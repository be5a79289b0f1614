"""Blackout period resolution.

Works on anything with start_date, end_date, court_id and reason
attributes: BlockedPeriod rows, or plain objects in tests.

Ranges are inclusive calendar dates in club-local time, i.e. a period
from 2024-06-01 to 2024-06-03 covers 2024-06-01 00:00 up to and including
2024-06-03 23:59:59.999. When periods overlap, the one that starts first
wins; ties keep their input order.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, tzinfo

logger = logging.getLogger(__name__)


class AvailabilityDataError(ValueError):
    """Raised in strict mode when snapshot data can't be interpreted."""


def local_date(day: date | datetime, tz: tzinfo | None = None) -> date:
    """Normalise a date or datetime to a club-local calendar date."""
    if isinstance(day, datetime):
        if tz is not None and day.tzinfo is not None:
            day = day.astimezone(tz)
        return day.date()
    return day


def _as_date(value) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _bounds(period, strict: bool) -> tuple[date, date] | None:
    start = _as_date(getattr(period, "start_date", None))
    end = _as_date(getattr(period, "end_date", None))
    if start is None or end is None or start > end:
        if strict:
            raise AvailabilityDataError(f"Malformed blocked period: {period!r}")
        logger.warning("Ignoring malformed blocked period %r", period)
        return None
    return start, end


def applies_to_court(period, court_id) -> bool:
    """Club-wide periods (court_id None) apply everywhere, others to their court only."""
    scope = getattr(period, "court_id", None)
    return scope is None or scope == court_id


def resolve_blackout(
    day: date | datetime,
    periods: Iterable,
    court_id=None,
    tz: tzinfo | None = None,
    strict: bool = False,
):
    """Return the first blocked period covering day, or None.

    With court_id=None only club-wide periods are considered.
    """
    target = local_date(day, tz)

    ranged = []
    for period in periods:
        bounds = _bounds(period, strict)
        if bounds is not None:
            ranged.append((bounds, period))
    # sorted() is stable, so equal start dates keep storage order
    ranged.sort(key=lambda item: item[0][0])

    for (start, end), period in ranged:
        if not applies_to_court(period, court_id):
            continue
        if start <= target <= end:
            return period
    return None


def is_blocked(day: date | datetime, periods: Iterable, court_id=None, tz: tzinfo | None = None) -> bool:
    return resolve_blackout(day, periods, court_id=court_id, tz=tz) is not None
