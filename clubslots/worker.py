"""Celery worker and beat schedule.

Run the worker with beat embedded:
    celery -A clubslots.worker worker -B
"""

import asyncio
import logging

from celery import Celery
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from clubslots.core.config import settings
from clubslots.services.cleanup import release_expired_bookings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "clubslots",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=settings.timezone,
    enable_utc=True,
    beat_schedule={
        "release-expired-bookings": {
            "task": "clubslots.release_expired_bookings",
            "schedule": float(settings.cleanup_interval_seconds),
        },
    },
)


async def _release_expired() -> int:
    # Each asyncio.run() has its own loop; connections must not outlive it
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with async_sessionmaker(engine, expire_on_commit=False)() as db:
            deleted = await release_expired_bookings(db)
            await db.commit()
            return deleted
    finally:
        await engine.dispose()


@celery_app.task(name="clubslots.release_expired_bookings")
def release_expired_bookings_task() -> int:
    deleted = asyncio.run(_release_expired())
    logger.info("Cleanup run finished: %d holds released", deleted)
    return deleted
