"""Monitor API endpoints.

Callers are authenticated upstream; the owning user id arrives as an
opaque value.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import Monitor, UptimeEvent
from ..schemas.monitor import (
    MonitorCreate,
    MonitorResponse,
    UptimeEventResponse,
    MonitorEvents,
)
from ..utils.db_utils import retry_on_lock

router = APIRouter(prefix="/api/monitors", tags=["monitors"])


async def _get_monitor_or_404(db: AsyncSession, monitor_id: int) -> Monitor:
    result = await db.execute(select(Monitor).where(Monitor.id == monitor_id))
    monitor = result.scalar_one_or_none()
    if not monitor:
        raise HTTPException(status_code=404, detail="Monitor not found")
    return monitor


@router.post("", response_model=MonitorResponse, status_code=201)
async def create_monitor(monitor: MonitorCreate, db: AsyncSession = Depends(get_db)):
    """Create a new monitor. It is due on the next tick of its tier."""
    db_monitor = Monitor(
        user_id=monitor.user_id,
        url=monitor.url,
        port=monitor.port,
        frequency=monitor.frequency,
        is_paused=False,
    )
    db.add(db_monitor)
    await retry_on_lock(db.commit)
    await db.refresh(db_monitor)
    return MonitorResponse.model_validate(db_monitor)


@router.get("", response_model=List[MonitorResponse])
async def list_monitors(user_id: str = Query(..., min_length=1), db: AsyncSession = Depends(get_db)):
    """List all monitors belonging to a user."""
    result = await db.execute(
        select(Monitor).where(Monitor.user_id == user_id).order_by(Monitor.id)
    )
    return [MonitorResponse.model_validate(m) for m in result.scalars().all()]


@router.get("/{monitor_id}/events", response_model=MonitorEvents)
async def get_monitor_events(
    monitor_id: int,
    user_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """All uptime events of a user's monitor, latest first."""
    result = await db.execute(
        select(Monitor).where(Monitor.id == monitor_id, Monitor.user_id == user_id)
    )
    monitor = result.scalar_one_or_none()
    if not monitor:
        raise HTTPException(status_code=404, detail="Monitor not found")

    events = await db.execute(
        select(UptimeEvent)
        .where(UptimeEvent.monitor_id == monitor_id)
        .order_by(UptimeEvent.timestamp.desc(), UptimeEvent.id.desc())
    )
    return MonitorEvents(
        url=monitor.url,
        frequency=monitor.frequency,
        port=monitor.port,
        uptime_events=[UptimeEventResponse.model_validate(e) for e in events.scalars().all()],
    )


@router.put("/{monitor_id}/pause", response_model=MonitorResponse)
async def pause_monitor(monitor_id: int, db: AsyncSession = Depends(get_db)):
    """Stop scheduling checks for a monitor."""
    monitor = await _get_monitor_or_404(db, monitor_id)
    monitor.is_paused = True
    await retry_on_lock(db.commit)
    await db.refresh(monitor)
    return MonitorResponse.model_validate(monitor)


@router.put("/{monitor_id}/resume", response_model=MonitorResponse)
async def resume_monitor(monitor_id: int, db: AsyncSession = Depends(get_db)):
    """Put a paused monitor back on its tier's schedule."""
    monitor = await _get_monitor_or_404(db, monitor_id)
    monitor.is_paused = False
    await retry_on_lock(db.commit)
    await db.refresh(monitor)
    return MonitorResponse.model_validate(monitor)
