"""Unit tests for the availability engine (pure functions, no DB)."""

from datetime import UTC, date, datetime, time
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from clubslots.models.booking import BookingStatus
from clubslots.models.course import PricingMode
from clubslots.services.availability import (
    REASON_COURSE,
    REASON_FULL,
    REASON_PAST,
    REASON_TAKEN,
    course_availability,
    course_is_bookable,
    court_availability,
    find_verdict,
    session_is_bookable,
)
from clubslots.services.blackouts import AvailabilityDataError, is_blocked, local_date, resolve_blackout
from clubslots.services.slots import OperatingWindow, format_offset, generate_slots, iter_slots, parse_label

BERLIN = ZoneInfo("Europe/Berlin")
DAY = date(2030, 6, 3)
WINDOW = OperatingWindow(start_hour=8, end_hour=12, slot_duration_minutes=60)


def _period(start, end, reason="Tournament", court_id=None):
    return SimpleNamespace(start_date=start, end_date=end, reason=reason, court_id=court_id)


def _booking(start_hour, end_hour, court_id=1, status=BookingStatus.ACTIVE, day=DAY, tz=UTC):
    return SimpleNamespace(
        court_id=court_id,
        start_time=datetime.combine(day, time(start_hour), tzinfo=tz),
        end_time=datetime.combine(day, time(end_hour), tzinfo=tz),
        status=status,
    )


def _labels(verdicts):
    return {v.slot.label: (v.bookable, v.blocked_reason) for v in verdicts}


# ---------------------------------------------------------------------------
# Slot generator
# ---------------------------------------------------------------------------


class TestGenerateSlots:
    def test_ninety_minute_slots_drop_partial_tail(self):
        # 08:00 ends 09:30; a 09:30 slot would end 11:00, past the 10:00 close
        assert [s.label for s in generate_slots(8, 10, 90)] == ["08:00"]
        assert [s.label for s in generate_slots(8, 11, 90)] == ["08:00", "09:30"]

    def test_empty_range(self):
        assert generate_slots(9, 9, 30) == []

    def test_inverted_range(self):
        assert generate_slots(12, 8, 60) == []

    @pytest.mark.parametrize("duration", [0, -15])
    def test_non_positive_duration(self, duration):
        assert generate_slots(8, 22, duration) == []

    @pytest.mark.parametrize(
        ("start", "end", "duration"),
        [(8, 22, 60), (7, 21, 45), (6, 23, 90), (0, 24, 25), (10, 11, 60), (9, 17, 120)],
    )
    def test_offsets_form_arithmetic_sequence(self, start, end, duration):
        slots = generate_slots(start, end, duration)
        offsets = [s.offset_minutes for s in slots]
        assert offsets[0] == start * 60
        assert all(b - a == duration for a, b in zip(offsets, offsets[1:]))
        assert offsets[-1] + duration <= end * 60
        assert offsets[-1] + 2 * duration > end * 60

    def test_labels_zero_padded(self):
        slots = generate_slots(7, 9, 30)
        assert [s.label for s in slots] == ["07:00", "07:30", "08:00", "08:30"]

    def test_iter_slots_is_restartable(self):
        assert list(iter_slots(8, 12, 60)) == list(iter_slots(8, 12, 60))

    def test_slot_helpers(self):
        last = generate_slots(20, 24, 60)[-1]
        assert last.label == "23:00"
        assert last.end_label == "24:00"
        assert last.start == time(23, 0)

    def test_window_from_court(self):
        court = SimpleNamespace(start_hour=8, end_hour=12, slot_duration_minutes=60)
        assert OperatingWindow.for_court(court) == WINDOW

    def test_format_and_parse_label(self):
        assert format_offset(570) == "09:30"
        assert parse_label("09:30") == 570
        with pytest.raises(ValueError):
            parse_label("25:00")


# ---------------------------------------------------------------------------
# Blackout resolver
# ---------------------------------------------------------------------------


class TestBlackouts:
    PERIOD = _period(date(2024, 6, 1), date(2024, 6, 3))

    @pytest.mark.parametrize(
        "moment",
        [datetime(2024, 6, 1, 23, 0), datetime(2024, 6, 3, 0, 1), date(2024, 6, 2)],
    )
    def test_inside_inclusive_range(self, moment):
        assert is_blocked(moment, [self.PERIOD])

    @pytest.mark.parametrize("moment", [datetime(2024, 5, 31, 23, 59), datetime(2024, 6, 4, 0, 0)])
    def test_outside_range(self, moment):
        assert not is_blocked(moment, [self.PERIOD])

    def test_returns_period_for_reason(self):
        assert resolve_blackout(date(2024, 6, 2), [self.PERIOD]).reason == "Tournament"

    def test_no_periods(self):
        assert resolve_blackout(date(2024, 6, 2), []) is None

    def test_aware_datetime_uses_club_local_date(self):
        # 22:30 UTC on 31 May is 00:30 on 1 June in Berlin (CEST)
        moment = datetime(2024, 5, 31, 22, 30, tzinfo=UTC)
        assert local_date(moment, BERLIN) == date(2024, 6, 1)
        assert is_blocked(moment, [self.PERIOD], tz=BERLIN)
        assert not is_blocked(moment, [self.PERIOD])

    def test_overlap_resolved_by_earliest_start_not_list_order(self):
        short = _period(date(2024, 6, 5), date(2024, 6, 6), reason="Club championship")
        long = _period(date(2024, 6, 1), date(2024, 6, 10), reason="Resurfacing")
        assert resolve_blackout(date(2024, 6, 5), [short, long]).reason == "Resurfacing"
        assert resolve_blackout(date(2024, 6, 5), [long, short]).reason == "Resurfacing"

    def test_equal_start_keeps_storage_order(self):
        first = _period(date(2024, 6, 1), date(2024, 6, 2), reason="First")
        second = _period(date(2024, 6, 1), date(2024, 6, 9), reason="Second")
        assert resolve_blackout(date(2024, 6, 1), [first, second]).reason == "First"
        assert resolve_blackout(date(2024, 6, 1), [second, first]).reason == "Second"

    def test_court_scoped_period(self):
        period = _period(date(2024, 6, 1), date(2024, 6, 3), court_id=1)
        assert is_blocked(date(2024, 6, 2), [period], court_id=1)
        assert not is_blocked(date(2024, 6, 2), [period], court_id=2)
        assert not is_blocked(date(2024, 6, 2), [period])

    def test_club_wide_period_blocks_every_court(self):
        assert is_blocked(date(2024, 6, 2), [self.PERIOD], court_id=7)

    def test_iso_string_dates_accepted(self):
        period = _period("2024-06-01", "2024-06-03")
        assert is_blocked(date(2024, 6, 3), [period])

    def test_malformed_period_skipped(self):
        inverted = _period(date(2024, 6, 3), date(2024, 6, 1), reason="Broken")
        missing = _period(None, date(2024, 6, 3), reason="Broken")
        assert resolve_blackout(date(2024, 6, 2), [inverted, missing, self.PERIOD]).reason == "Tournament"

    def test_malformed_period_raises_in_strict_mode(self):
        inverted = _period(date(2024, 6, 3), date(2024, 6, 1))
        with pytest.raises(AvailabilityDataError):
            resolve_blackout(date(2024, 6, 2), [inverted], strict=True)


# ---------------------------------------------------------------------------
# Court availability aggregator
# ---------------------------------------------------------------------------


class TestCourtAvailability:
    def test_all_bookable_without_data(self):
        verdicts = court_availability(WINDOW, DAY, 1)
        assert [v.slot.label for v in verdicts] == ["08:00", "09:00", "10:00", "11:00"]
        assert all(v.bookable and v.blocked_reason is None for v in verdicts)

    def test_booking_takes_its_slot(self):
        verdicts = _labels(court_availability(WINDOW, DAY, 1, bookings=[_booking(9, 10)]))
        assert verdicts["09:00"] == (False, REASON_TAKEN)
        assert verdicts["08:00"] == (True, None)
        assert verdicts["10:00"] == (True, None)

    def test_two_hour_booking_takes_two_slots(self):
        verdicts = _labels(court_availability(WINDOW, DAY, 1, bookings=[_booking(9, 11)]))
        assert verdicts["09:00"][0] is False
        assert verdicts["10:00"][0] is False
        assert verdicts["11:00"][0] is True

    def test_pending_hold_blocks_but_cancelled_does_not(self):
        bookings = [
            _booking(8, 9, status=BookingStatus.AWAITING_PAYMENT),
            _booking(9, 10, status=BookingStatus.CANCELLED),
        ]
        verdicts = _labels(court_availability(WINDOW, DAY, 1, bookings=bookings))
        assert verdicts["08:00"] == (False, REASON_TAKEN)
        assert verdicts["09:00"] == (True, None)

    def test_plain_string_status_accepted(self):
        verdicts = _labels(court_availability(WINDOW, DAY, 1, bookings=[_booking(8, 9, status="active")]))
        assert verdicts["08:00"] == (False, REASON_TAKEN)

    def test_other_court_ignored(self):
        verdicts = court_availability(WINDOW, DAY, 1, bookings=[_booking(9, 10, court_id=2)])
        assert all(v.bookable for v in verdicts)

    def test_blackout_wins_over_everything(self):
        period = _period(DAY, DAY, reason="Winter break")
        verdicts = court_availability(WINDOW, DAY, 1, periods=[period], bookings=[_booking(9, 10)])
        assert len(verdicts) == 4
        assert all(not v.bookable and v.blocked_reason == "Winter break" for v in verdicts)

    def test_course_session_occupies_court(self):
        session = SimpleNamespace(
            court_id=1,
            start_time=datetime.combine(DAY, time(10), tzinfo=UTC),
            end_time=datetime.combine(DAY, time(11), tzinfo=UTC),
        )
        verdicts = _labels(court_availability(WINDOW, DAY, 1, sessions=[session]))
        assert verdicts["10:00"] == (False, REASON_COURSE)

    def test_past_slots_when_now_given(self):
        now = datetime.combine(DAY, time(9, 30), tzinfo=UTC)
        verdicts = _labels(court_availability(WINDOW, DAY, 1, now=now))
        assert verdicts["08:00"] == (False, REASON_PAST)
        assert verdicts["09:00"] == (False, REASON_PAST)
        assert verdicts["10:00"] == (True, None)

    def test_club_timezone(self):
        # 07:00 UTC is 09:00 in Berlin during summer time
        verdicts = _labels(court_availability(WINDOW, DAY, 1, bookings=[_booking(7, 8)], tz=BERLIN))
        assert verdicts["09:00"] == (False, REASON_TAKEN)
        assert verdicts["08:00"] == (True, None)

    def test_naive_timestamps_read_as_utc(self):
        booking = SimpleNamespace(
            court_id=1,
            start_time=datetime.combine(DAY, time(9)),
            end_time=datetime.combine(DAY, time(10)),
            status=BookingStatus.ACTIVE,
        )
        verdicts = _labels(court_availability(WINDOW, DAY, 1, bookings=[booking]))
        assert verdicts["09:00"] == (False, REASON_TAKEN)

    def test_invalid_window_gives_no_verdicts(self):
        assert court_availability(OperatingWindow(10, 8, 60), DAY, 1) == []
        assert court_availability(OperatingWindow(8, 12, 0), DAY, 1) == []

    def test_malformed_booking_ignored_for_display(self):
        broken = _booking(10, 9)
        unknown = _booking(8, 9, status="confirmed")
        verdicts = court_availability(WINDOW, DAY, 1, bookings=[broken, unknown])
        assert all(v.bookable for v in verdicts)

    @pytest.mark.parametrize("booking", [_booking(10, 9), _booking(8, 9, status="confirmed")])
    def test_malformed_booking_raises_in_strict_mode(self, booking):
        with pytest.raises(AvailabilityDataError):
            court_availability(WINDOW, DAY, 1, bookings=[booking], strict=True)

    def test_idempotent(self):
        args = dict(periods=[_period(date(2030, 7, 1), date(2030, 7, 2))], bookings=[_booking(9, 10)])
        assert court_availability(WINDOW, DAY, 1, **args) == court_availability(WINDOW, DAY, 1, **args)

    def test_find_verdict(self):
        verdicts = court_availability(WINDOW, DAY, 1)
        assert find_verdict(verdicts, "10:00").slot.offset_minutes == 600
        assert find_verdict(verdicts, "10:30") is None


# ---------------------------------------------------------------------------
# Course capacity
# ---------------------------------------------------------------------------


class TestCourseCapacity:
    def test_full_course_at_capacity(self):
        assert course_is_bookable("full_course", 10, confirmed_count=10) is False
        assert course_is_bookable("full_course", 10, confirmed_count=9) is True

    @pytest.mark.parametrize("confirmed", [0, 10, 500])
    def test_full_course_unlimited(self, confirmed):
        assert course_is_bookable("full_course", 0, confirmed_count=confirmed) is True

    def test_per_session_any_open_session_keeps_course_open(self):
        assert course_is_bookable("per_session", 5, session_counts=[5, 2]) is True

    def test_per_session_all_full(self):
        assert course_is_bookable("per_session", 5, session_counts=[5, 5]) is False

    @pytest.mark.parametrize("max_participants", [0, 5])
    def test_per_session_without_sessions(self, max_participants):
        assert course_is_bookable("per_session", max_participants, session_counts=[]) is False

    def test_per_session_unlimited(self):
        assert course_is_bookable(PricingMode.PER_SESSION, 0, session_counts=[40]) is True

    def test_missing_mode_defaults_to_full_course(self):
        assert course_is_bookable(None, 2, confirmed_count=2) is False

    def test_session_is_bookable(self):
        assert session_is_bookable(5, 4) is True
        assert session_is_bookable(5, 5) is False
        assert session_is_bookable(0, 99) is True

    def test_course_availability_per_session(self):
        course = SimpleNamespace(
            id=3,
            pricing_mode=PricingMode.PER_SESSION,
            max_participants=5,
            sessions=[SimpleNamespace(id=10), SimpleNamespace(id=11)],
        )
        verdict = course_availability(course, session_counts={10: 5, 11: 2})
        assert verdict.bookable is True
        assert [(s.session_id, s.bookable) for s in verdict.sessions] == [(10, False), (11, True)]

        full = course_availability(course, session_counts={10: 5, 11: 5})
        assert full.bookable is False
        assert full.blocked_reason == REASON_FULL

    def test_course_availability_full_course(self):
        course = SimpleNamespace(id=4, pricing_mode=PricingMode.FULL_COURSE, max_participants=8, sessions=[])
        assert course_availability(course, confirmed_count=8).bookable is False
        assert course_availability(course, confirmed_count=3).bookable is True
