"""Celery cleanup task, run in-process against a file-backed SQLite database.

Plain sync tests: the task drives its own event loop with asyncio.run().
"""

import asyncio
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from clubslots.core.config import settings
from clubslots.models import Base, Booking, BookingStatus, Club, Court
from clubslots.worker import release_expired_bookings_task

START = datetime(2030, 6, 3, 8, tzinfo=UTC)


def _seed_holds(url: str, created_ats: list[datetime]) -> None:
    async def _run():
        engine = create_async_engine(url)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with async_sessionmaker(engine, expire_on_commit=False)() as db:
            club = Club(name="Worker Club", slug="worker-club")
            db.add(club)
            await db.flush()
            court = Court(club_id=club.id, name="Court 1")
            db.add(court)
            await db.flush()
            for i, created in enumerate(created_ats):
                booking = Booking(
                    club_id=club.id,
                    court_id=court.id,
                    start_time=START + timedelta(hours=i),
                    end_time=START + timedelta(hours=i + 1),
                    status=BookingStatus.AWAITING_PAYMENT,
                )
                booking.created_at = created
                db.add(booking)
            await db.commit()
        await engine.dispose()

    asyncio.run(_run())


def _count_bookings(url: str) -> int:
    async def _run():
        engine = create_async_engine(url)
        async with async_sessionmaker(engine)() as db:
            count = (await db.execute(select(func.count(Booking.id)))).scalar_one()
        await engine.dispose()
        return count

    return asyncio.run(_run())


def test_cleanup_task_runs_on_consecutive_ticks(tmp_path, monkeypatch):
    url = f"sqlite+aiosqlite:///{tmp_path / 'worker.db'}"
    monkeypatch.setattr(settings, "database_url", url)
    now = datetime.now(UTC)
    _seed_holds(url, [now - timedelta(minutes=45), now - timedelta(minutes=1)])

    assert release_expired_bookings_task() == 1
    # Each tick runs on a new event loop
    assert release_expired_bookings_task() == 0
    assert release_expired_bookings_task() == 0

    assert _count_bookings(url) == 1


def test_cleanup_task_with_nothing_to_release(tmp_path, monkeypatch):
    url = f"sqlite+aiosqlite:///{tmp_path / 'worker.db'}"
    monkeypatch.setattr(settings, "database_url", url)
    _seed_holds(url, [datetime.now(UTC)])

    assert release_expired_bookings_task() == 0
    assert _count_bookings(url) == 1
