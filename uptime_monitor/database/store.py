"""
Monitor Store for Uptime Monitor

The persistence contract the monitoring engine depends on, and its
SQLAlchemy implementation.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from sqlalchemy import select

from uptime_monitor.config.constants import CheckStatus
from uptime_monitor.database.manager import DatabaseManager
from uptime_monitor.database.models import (
    Monitor,
    MonitorCheck,
    MonitorNotification,
    NotificationChannel,
)
from uptime_monitor.monitoring.types import ChannelTarget, Check, MonitorConfig


class MonitorStore(Protocol):
    """Persistence operations used by the scheduler, checker and dispatcher."""

    async def list_active_monitors(self) -> List[MonitorConfig]:
        ...

    async def insert_check(self, check: Check) -> Check:
        ...

    async def latest_status(self, monitor_id: int) -> Optional[CheckStatus]:
        ...

    async def channels_bound_to(
        self,
        monitor_id: int,
        enabled_only: bool = True,
    ) -> List[ChannelTarget]:
        ...


class SQLStore:
    """
    MonitorStore backed by the application database.

    Every call opens its own session; nothing is held between calls.
    """

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def list_active_monitors(self) -> List[MonitorConfig]:
        async with self.db.session() as session:
            result = await session.execute(
                select(Monitor).where(Monitor.active.is_(True)).order_by(Monitor.id)
            )
            return [MonitorConfig.from_model(m) for m in result.scalars().all()]

    async def insert_check(self, check: Check) -> Check:
        """Append a check row and return the check with its id set."""
        row = MonitorCheck(
            monitor_id=check.monitor_id,
            status=check.status.value,
            response_time=check.response_time,
            status_code=check.status_code,
            message=check.message,
            checked_at=check.checked_at,
        )
        async with self.db.session() as session:
            session.add(row)
            await session.flush()
            check.id = row.id
        return check

    async def latest_status(self, monitor_id: int) -> Optional[CheckStatus]:
        """
        Status of the most recent check for a monitor, None when it has
        never been checked. Ties on checked_at go to the later insert.
        """
        async with self.db.session() as session:
            result = await session.execute(
                select(MonitorCheck.status)
                .where(MonitorCheck.monitor_id == monitor_id)
                .order_by(MonitorCheck.checked_at.desc(), MonitorCheck.id.desc())
                .limit(1)
            )
            status = result.scalar_one_or_none()

        if status is None:
            return None
        try:
            return CheckStatus(status)
        except ValueError:
            return CheckStatus.UNKNOWN

    async def channels_bound_to(
        self,
        monitor_id: int,
        enabled_only: bool = True,
    ) -> List[ChannelTarget]:
        """Channels bound to a monitor, each carrying its binding override."""
        query = (
            select(NotificationChannel, MonitorNotification.events)
            .join(
                MonitorNotification,
                MonitorNotification.channel_id == NotificationChannel.id,
            )
            .where(MonitorNotification.monitor_id == monitor_id)
            .order_by(NotificationChannel.id)
        )
        if enabled_only:
            query = query.where(NotificationChannel.enabled.is_(True))

        async with self.db.session() as session:
            result = await session.execute(query)
            return [
                ChannelTarget(
                    id=channel.id,
                    name=channel.name,
                    destination_url=channel.destination_url,
                    enabled=bool(channel.enabled),
                    events=channel.events,
                    binding_events=binding_events,
                )
                for channel, binding_events in result.all()
            ]
