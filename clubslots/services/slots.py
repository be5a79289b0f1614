"""Operating windows and slot generation for court availability.

Pure calculation module: no database, no async, no FastAPI dependencies.
Misconfigured windows (non-positive duration, inverted hours) produce no
slots rather than an error, so a bad court row renders as "no slots".
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import time

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class OperatingWindow:
    start_hour: int
    end_hour: int
    slot_duration_minutes: int

    @classmethod
    def for_court(cls, court) -> "OperatingWindow":
        return cls(court.start_hour, court.end_hour, court.slot_duration_minutes)


@dataclass(frozen=True)
class TimeSlot:
    """A candidate start time, as minutes after local midnight."""

    label: str  # "HH:MM"
    offset_minutes: int
    duration_minutes: int

    @property
    def end_offset_minutes(self) -> int:
        return self.offset_minutes + self.duration_minutes

    @property
    def start(self) -> time:
        return _to_time(self.offset_minutes)

    @property
    def end_label(self) -> str:
        return format_offset(self.end_offset_minutes)


def format_offset(offset_minutes: int) -> str:
    """480 -> "08:00". 24:00 is kept as such for a window closing at midnight."""
    hours, minutes = divmod(offset_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def parse_label(label: str) -> int:
    """Inverse of format_offset. Raises ValueError on anything but HH:MM."""
    h, m = map(int, label.split(":"))
    if not (0 <= h < 24 and 0 <= m < 60):
        raise ValueError(f"Invalid slot time {label!r}")
    return h * 60 + m


def _to_time(offset_minutes: int) -> time:
    h, m = divmod(offset_minutes % MINUTES_PER_DAY, 60)
    return time(h, m)


def iter_slots(start_hour: int, end_hour: int, duration_minutes: int) -> Iterator[TimeSlot]:
    """Yield slots from start_hour:00 in steps of duration_minutes.

    A slot is only produced if it ends at or before end_hour:00; a trailing
    partial slot is dropped.
    """
    if duration_minutes <= 0 or start_hour >= end_hour:
        return

    current = start_hour * 60
    end = end_hour * 60
    while current + duration_minutes <= end:
        yield TimeSlot(format_offset(current), current, duration_minutes)
        current += duration_minutes


def generate_slots(start_hour: int, end_hour: int, duration_minutes: int) -> list[TimeSlot]:
    return list(iter_slots(start_hour, end_hour, duration_minutes))


def slots_for_window(window: OperatingWindow) -> list[TimeSlot]:
    return generate_slots(window.start_hour, window.end_hour, window.slot_duration_minutes)
