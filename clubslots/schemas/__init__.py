"""Pydantic schemas for API serialisation."""

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

# --- Club ---


class ClubOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    is_active: bool


class CourtOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    surface: str | None
    start_hour: int
    end_hour: int
    slot_duration_minutes: int


# --- Availability ---


class SlotOut(BaseModel):
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM"
    is_available: bool
    reason: str | None = None  # blackout reason, "taken", "course" or "past"


class AvailabilityOut(BaseModel):
    court_id: int
    court_name: str
    date: date
    blocked_reason: str | None = None
    slots: list[SlotOut]


class ClubAvailabilityOut(BaseModel):
    club_id: int
    club_name: str
    date: date
    courts: list[AvailabilityOut]


# --- Blocked periods ---


class BlockedPeriodCreate(BaseModel):
    start_date: date
    end_date: date
    reason: str = Field(min_length=1, max_length=200)
    court_id: int | None = None  # None = whole club

    @model_validator(mode="after")
    def _check_range(self) -> "BlockedPeriodCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class BlockedPeriodOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    start_date: date
    end_date: date
    reason: str
    court_id: int | None


# --- Booking ---


class BookingCreate(BaseModel):
    court_id: int
    booking_date: date
    start_time: time
    requires_payment: bool = True
    user_ref: str | None = None
    guest_name: str | None = None
    guest_email: EmailStr | None = None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    club_id: int
    court_id: int
    start_time: datetime
    end_time: datetime
    status: str
    created_at: datetime


# --- Courses ---


class SessionAvailabilityOut(BaseModel):
    session_id: int
    start_time: datetime
    end_time: datetime
    booked_count: int
    is_available: bool


class CourseAvailabilityOut(BaseModel):
    course_id: int
    title: str
    pricing_mode: str
    max_participants: int
    confirmed_count: int
    is_available: bool
    reason: str | None = None
    sessions: list[SessionAvailabilityOut]


# --- Cron ---


class CleanupOut(BaseModel):
    ok: bool = True
    deleted: int
