"""Course, session and enrolment models.

A course is sold either as one seat for the whole course (full_course) or
per individual session (per_session). Sessions occupy a court for their
time range, so they also show up as unavailable court slots.
"""

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubslots.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from clubslots.models.club import Club, Court


class PricingMode(enum.StrEnum):
    FULL_COURSE = "full_course"
    PER_SESSION = "per_session"


class EnrollmentStatus(enum.StrEnum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Course(TimestampMixin, Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(primary_key=True)
    club_id: Mapped[int] = mapped_column(ForeignKey("clubs.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    pricing_mode: Mapped[PricingMode] = mapped_column(
        Enum(PricingMode, name="pricing_mode", values_callable=lambda e: [x.value for x in e]),
        default=PricingMode.FULL_COURSE,
        nullable=False,
    )
    max_participants: Mapped[int] = mapped_column(Integer, default=8, nullable=False)  # 0 = unlimited

    # Relationships
    club: Mapped["Club"] = relationship(lazy="raise")
    sessions: Mapped[list["CourseSession"]] = relationship(
        back_populates="course", lazy="selectin", order_by="CourseSession.start_time"
    )

    def __repr__(self) -> str:
        return f"<Course {self.title} ({self.pricing_mode})>"


class CourseSession(TimestampMixin, Base):
    __tablename__ = "course_sessions"

    id: Mapped[int] = mapped_column(primary_key=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    court_id: Mapped[int] = mapped_column(ForeignKey("courts.id"), nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Relationships
    course: Mapped["Course"] = relationship(back_populates="sessions")
    court: Mapped["Court"] = relationship(lazy="raise")

    __table_args__ = (Index("ix_course_sessions_court_start", "court_id", "start_time"),)

    def __repr__(self) -> str:
        return f"<CourseSession course={self.course_id} {self.start_time}>"


class CourseEnrollment(TimestampMixin, Base):
    """One participant seat. session_id is set for per-session bookings only."""

    __tablename__ = "course_enrollments"

    id: Mapped[int] = mapped_column(primary_key=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    session_id: Mapped[int | None] = mapped_column(ForeignKey("course_sessions.id", ondelete="CASCADE"))
    user_ref: Mapped[str | None] = mapped_column(String(64))
    status: Mapped[EnrollmentStatus] = mapped_column(
        Enum(EnrollmentStatus, name="enrollment_status", values_callable=lambda e: [x.value for x in e]),
        default=EnrollmentStatus.CONFIRMED,
        nullable=False,
    )

    __table_args__ = (Index("ix_enrollments_course_session", "course_id", "session_id"),)

    def __repr__(self) -> str:
        return f"<CourseEnrollment course={self.course_id} session={self.session_id} {self.status}>"
