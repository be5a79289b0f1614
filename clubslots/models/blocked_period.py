"""Administrator-defined blackout periods (closures, tournaments, winter break)."""

from datetime import date

from sqlalchemy import Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubslots.models.base import Base, TimestampMixin
from clubslots.models.club import Club, Court


class BlockedPeriod(TimestampMixin, Base):
    """An inclusive date range during which no bookings are allowed.

    court_id = None blocks every court of the club.
    """

    __tablename__ = "blocked_periods"

    id: Mapped[int] = mapped_column(primary_key=True)
    club_id: Mapped[int] = mapped_column(ForeignKey("clubs.id"), nullable=False)
    court_id: Mapped[int | None] = mapped_column(ForeignKey("courts.id", ondelete="CASCADE"))
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str] = mapped_column(String(200), nullable=False)

    # Relationships
    club: Mapped["Club"] = relationship(back_populates="blocked_periods")
    court: Mapped["Court | None"] = relationship(lazy="raise")

    __table_args__ = (Index("ix_blocked_periods_club_end", "club_id", "end_date"),)

    def __repr__(self) -> str:
        return f"<BlockedPeriod {self.start_date}..{self.end_date} club={self.club_id} court={self.court_id}>"
