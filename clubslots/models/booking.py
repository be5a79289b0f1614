"""Booking model.

A booking reserves a court for a fixed time range. It starts life as an
awaiting_payment hold, is promoted to active once payment is confirmed, and
is reaped by the cleanup job if the hold expires first.
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Text, func, text
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubslots.models.base import Base, TimestampMixin
from clubslots.models.club import Court


class BookingStatus(enum.StrEnum):
    AWAITING_PAYMENT = "awaiting_payment"
    ACTIVE = "active"
    CANCELLED = "cancelled"


# Statuses that occupy the court
HOLDING_STATUSES = (BookingStatus.AWAITING_PAYMENT, BookingStatus.ACTIVE)

_HOLDING_WHERE = text("status IN ('awaiting_payment', 'active')")


class Booking(TimestampMixin, Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(primary_key=True)
    club_id: Mapped[int] = mapped_column(ForeignKey("clubs.id"), nullable=False)
    court_id: Mapped[int] = mapped_column(ForeignKey("courts.id"), nullable=False)

    # When (timezone-aware, stored as UTC)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status", values_callable=lambda e: [x.value for x in e]),
        default=BookingStatus.AWAITING_PAYMENT,
        nullable=False,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Who: identity lives with the auth provider, we only keep a reference
    user_ref: Mapped[str | None] = mapped_column(String(64))
    guest_name: Mapped[str | None] = mapped_column(String(200))
    guest_email: Mapped[str | None] = mapped_column(String(254))
    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships
    court: Mapped["Court"] = relationship()

    __table_args__ = (
        # Prevent double-booking: at most one holding booking per court and start time.
        Index(
            "ix_bookings_no_double",
            "court_id",
            "start_time",
            unique=True,
            postgresql_where=_HOLDING_WHERE,
            sqlite_where=_HOLDING_WHERE,
        ),
        # The availability grid reads by court + time range
        Index("ix_bookings_court_start", "court_id", "start_time"),
        # The cleanup job scans holds by age
        Index("ix_bookings_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Booking {self.start_time}-{self.end_time} court={self.court_id} {self.status}>"


# Overlapping holds on one court are rejected even when they start at different
# times (e.g. after a court's slot length changes). Needs the btree_gist
# extension for the court_id equality; SQLite has no equivalent.
Booking.__table__.append_constraint(
    ExcludeConstraint(
        (Booking.__table__.c.court_id, "="),
        (func.tstzrange(Booking.__table__.c.start_time, Booking.__table__.c.end_time), "&&"),
        name="ex_bookings_court_overlap",
        using="gist",
        where=_HOLDING_WHERE,
    ).ddl_if(dialect="postgresql")
)
