"""Blackout period administration: list, create, delete.

Access control belongs to the auth provider in front of this service.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clubslots.core.config import settings
from clubslots.core.database import get_db
from clubslots.models.blocked_period import BlockedPeriod
from clubslots.models.club import Court
from clubslots.routes.clubs import get_club_or_404
from clubslots.schemas import BlockedPeriodCreate, BlockedPeriodOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clubs/{slug}/blocked-periods", tags=["blocked-periods"])


@router.get("", response_model=list[BlockedPeriodOut])
async def list_blocked_periods(
    slug: str,
    court_id: int | None = Query(None, description="Include this court's periods as well as club-wide ones"),
    include_past: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    club = await get_club_or_404(db, slug)

    stmt = select(BlockedPeriod).where(BlockedPeriod.club_id == club.id)
    if court_id is not None:
        stmt = stmt.where(or_(BlockedPeriod.court_id.is_(None), BlockedPeriod.court_id == court_id))
    if not include_past:
        stmt = stmt.where(BlockedPeriod.end_date >= datetime.now(settings.tz).date())

    result = await db.execute(stmt.order_by(BlockedPeriod.start_date, BlockedPeriod.id))
    return result.scalars().all()


@router.post("", response_model=BlockedPeriodOut, status_code=status.HTTP_201_CREATED)
async def create_blocked_period(slug: str, body: BlockedPeriodCreate, db: AsyncSession = Depends(get_db)):
    club = await get_club_or_404(db, slug)

    if body.court_id is not None:
        result = await db.execute(select(Court.id).where(Court.id == body.court_id, Court.club_id == club.id))
        if result.scalar_one_or_none() is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Court does not belong to this club",
            )

    period = BlockedPeriod(
        club_id=club.id,
        court_id=body.court_id,
        start_date=body.start_date,
        end_date=body.end_date,
        reason=body.reason,
    )
    db.add(period)
    await db.flush()
    logger.info("Blocked %s..%s at %s (court=%s): %s", period.start_date, period.end_date, slug, period.court_id, period.reason)
    return period


@router.delete("/{period_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blocked_period(slug: str, period_id: int, db: AsyncSession = Depends(get_db)):
    club = await get_club_or_404(db, slug)
    result = await db.execute(
        select(BlockedPeriod).where(BlockedPeriod.id == period_id, BlockedPeriod.club_id == club.id)
    )
    period = result.scalar_one_or_none()
    if period is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blocked period not found")

    await db.delete(period)
