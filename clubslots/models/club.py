"""Club and court models.

Club = a tenant (e.g. a tennis or padel club) identified by its URL slug.
Court = an individual bookable court with its own operating window.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubslots.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from clubslots.models.blocked_period import BlockedPeriod


class Club(TimestampMixin, Base):
    __tablename__ = "clubs"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    courts: Mapped[list["Court"]] = relationship(back_populates="club", lazy="selectin")
    blocked_periods: Mapped[list["BlockedPeriod"]] = relationship(back_populates="club", lazy="raise")

    def __repr__(self) -> str:
        return f"<Club {self.slug}>"


class Court(TimestampMixin, Base):
    """A bookable court. Opening hours and slot length are configured per court."""

    __tablename__ = "courts"

    id: Mapped[int] = mapped_column(primary_key=True)
    club_id: Mapped[int] = mapped_column(ForeignKey("clubs.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    surface: Mapped[str | None] = mapped_column(String(50))  # hard, clay, grass, artificial

    # Operating window (whole hours, local club time)
    start_hour: Mapped[int] = mapped_column(Integer, default=8, nullable=False)
    end_hour: Mapped[int] = mapped_column(Integer, default=22, nullable=False)
    slot_duration_minutes: Mapped[int] = mapped_column(Integer, default=60, nullable=False)

    # Display ordering
    sort_order: Mapped[int] = mapped_column(default=0, nullable=False)

    # Relationships
    club: Mapped["Club"] = relationship(back_populates="courts")

    __table_args__ = (Index("ix_courts_club_name", "club_id", "name", unique=True),)

    def __repr__(self) -> str:
        return f"<Court {self.name} @ club {self.club_id}>"
