"""Scheduled-job endpoints for external cron triggers.

Celery beat runs the same cleanup; this endpoint exists for hosts where an
HTTP cron is all that's available.
"""

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clubslots.core.config import settings
from clubslots.core.database import get_db
from clubslots.schemas import CleanupOut
from clubslots.services.cleanup import release_expired_bookings

router = APIRouter(prefix="/cron", tags=["cron"])


def require_cron_secret(
    x_cron_secret: str | None = Header(None),
    secret: str | None = Query(None),
) -> None:
    """Check the shared secret when one is configured."""
    if not settings.cron_secret:
        return
    if (x_cron_secret or secret) != settings.cron_secret:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.api_route(
    "/cleanup-bookings",
    methods=["GET", "POST"],
    response_model=CleanupOut,
    dependencies=[Depends(require_cron_secret)],
)
async def cleanup_bookings(db: AsyncSession = Depends(get_db)):
    deleted = await release_expired_bookings(db)
    return CleanupOut(deleted=deleted)
