"""Durable store used by the check engine."""
import logging
from datetime import datetime
from typing import List

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import Monitor, UptimeEvent
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)


class PersistenceFailure(RuntimeError):
    """The store rejected an event or timestamp write."""


class MonitorStore:
    """What the dispatcher and schedulers need from storage.

    Each write must be atomic on its own; nothing here spans documents.
    """

    async def find_due_monitors(self, tier: int, stale_before: datetime) -> List[Monitor]:
        """Unpaused monitors of ``tier`` never checked or last checked at/before ``stale_before``."""
        raise NotImplementedError

    async def save_event(self, event: UptimeEvent) -> None:
        raise NotImplementedError

    async def update_monitor_timestamp(self, monitor_id: int, now: datetime) -> None:
        raise NotImplementedError


class SqlMonitorStore(MonitorStore):
    """MonitorStore over the SQLAlchemy async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        if session_factory is None:
            from ..database import async_session
            session_factory = async_session
        self.session_factory = session_factory

    async def find_due_monitors(self, tier: int, stale_before: datetime) -> List[Monitor]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Monitor)
                .where(
                    Monitor.frequency == tier,
                    Monitor.is_paused.is_(False),
                    or_(
                        Monitor.last_checked_at.is_(None),
                        Monitor.last_checked_at <= stale_before,
                    ),
                )
                .order_by(Monitor.id)
            )
            return list(result.scalars().all())

    async def save_event(self, event: UptimeEvent) -> None:
        async def _write():
            async with self.session_factory() as session:
                session.add(event)
                await session.commit()

        try:
            await retry_on_lock(_write)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not save event for monitor {event.monitor_id}: {e}") from e

    async def update_monitor_timestamp(self, monitor_id: int, now: datetime) -> None:
        async def _write():
            async with self.session_factory() as session:
                await session.execute(
                    update(Monitor)
                    .where(Monitor.id == monitor_id)
                    .values(last_checked_at=now)
                )
                await session.commit()

        try:
            await retry_on_lock(_write)
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Could not update timestamp of monitor {monitor_id}: {e}") from e
