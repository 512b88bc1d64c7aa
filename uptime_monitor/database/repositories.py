"""
============================================================================
UPTIME MONITOR - REPOSITORIES
============================================================================
CRUD for monitors, check history, notification channels and bindings.
This is what an API layer calls; the monitoring engine itself only uses
the narrower MonitorStore.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import json
from typing import Any, Iterable, List, Optional, Type

from sqlalchemy import delete, select

from uptime_monitor.config.constants import NotificationEvent, ProtocolKind
from uptime_monitor.config.settings import MonitoringSettings
from uptime_monitor.database.manager import DatabaseManager
from uptime_monitor.database.models import (
    Base,
    Monitor,
    MonitorCheck,
    MonitorNotification,
    NotificationChannel,
)
from uptime_monitor.exceptions import (
    DatabaseNotFoundError,
    InvalidEventListError,
    InvalidIntervalError,
    ValidationException,
)
from uptime_monitor.monitoring.types import MonitorConfig
from uptime_monitor.notifications.destinations import DestinationSender, validate_destination
from uptime_monitor.utils.logger import get_logger


def encode_events(events: Optional[Iterable[str]]) -> Optional[str]:
    """
    Validate an event list and encode it for storage.

    Legacy names are rewritten to their current form. None and an empty
    list both encode to None.

    Raises:
        InvalidEventListError: If a name is not a known event
    """
    if events is None:
        return None

    if isinstance(events, str):
        raise InvalidEventListError("Event list must be a list of names", value=events)

    names: List[str] = []
    for name in events:
        event = NotificationEvent.parse(name) if isinstance(name, str) else None
        if event is None:
            raise InvalidEventListError(f"Unknown notification event: {name!r}", value=name)
        if event.value not in names:
            names.append(event.value)

    return json.dumps(names) if names else None


# ============================================================================
# DATABASE REPOSITORY BASE CLASS
# ============================================================================

class BaseRepository:
    """
    Base repository class for database operations.
    Provides common CRUD operations.
    """

    model_class: Type[Base] = Base

    def __init__(self, db_manager: DatabaseManager):
        """
        Initialize repository.

        Args:
            db_manager: DatabaseManager instance
        """
        self.db = db_manager
        self.logger = get_logger(self.__class__.__name__)

    async def get_by_id(self, record_id: Any) -> Optional[Any]:
        """
        Get record by primary key.

        Returns:
            Model instance or None
        """
        async with self.db.session() as session:
            return await session.get(self.model_class, record_id)

    async def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[Any]:
        """
        Get all records.

        Args:
            limit: Maximum number of records
            offset: Number of records to skip
        """
        async with self.db.session() as session:
            query = select(self.model_class).offset(offset)
            if limit:
                query = query.limit(limit)

            result = await session.execute(query)
            return list(result.scalars().all())

    async def create(self, model_instance: Any) -> Any:
        """
        Create new record.

        Returns:
            Created model instance
        """
        async with self.db.session() as session:
            session.add(model_instance)
            await session.flush()
            await session.refresh(model_instance)
        self.logger.debug(f"Created {model_instance!r}")
        return model_instance

    async def delete_by_id(self, record_id: Any) -> bool:
        """
        Delete record by primary key.

        Returns:
            True if a row was deleted
        """
        async with self.db.session() as session:
            instance = await session.get(self.model_class, record_id)
            if instance is None:
                return False
            await session.delete(instance)
        self.logger.debug(f"Deleted {self.model_class.__name__} {record_id}")
        return True

    async def _require(self, session: Any, record_id: Any) -> Any:
        instance = await session.get(self.model_class, record_id)
        if instance is None:
            raise DatabaseNotFoundError(self.model_class.__tablename__, record_id)
        return instance


# ============================================================================
# MONITOR REPOSITORY
# ============================================================================

class MonitorRepository(BaseRepository):
    """Repository for Monitor model operations."""

    model_class = Monitor

    def __init__(self, db_manager: DatabaseManager, settings: Optional[MonitoringSettings] = None):
        super().__init__(db_manager)
        self.settings = settings or MonitoringSettings()

    @staticmethod
    def _validate(interval: Any, timeout: Any, monitor_id: Optional[int] = None) -> None:
        if not isinstance(interval, int) or interval <= 0:
            raise InvalidIntervalError(interval, monitor_id=monitor_id)
        if not isinstance(timeout, int) or timeout <= 0:
            raise ValidationException(
                "Timeout must be a positive number of seconds",
                field="timeout",
                value=timeout,
            )

    async def create_monitor(
        self,
        name: str,
        url: str,
        type: str = ProtocolKind.HTTP.value,
        interval: Optional[int] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        active: bool = True,
    ) -> Monitor:
        """Create a monitor, filling unset fields from the monitoring defaults."""
        interval = self.settings.default_interval if interval is None else interval
        timeout = self.settings.default_timeout if timeout is None else timeout
        self._validate(interval, timeout)

        monitor = Monitor(
            name=name,
            url=url,
            type=type.lower(),
            interval=interval,
            timeout=timeout,
            max_retries=(
                self.settings.default_max_retries if max_retries is None else max_retries
            ),
            active=active,
        )
        return await self.create(monitor)

    async def update_monitor(self, monitor_id: int, **fields: Any) -> Monitor:
        """
        Update monitor columns.

        Raises:
            DatabaseNotFoundError: If the monitor does not exist
        """
        allowed = {"name", "url", "type", "interval", "timeout", "max_retries", "active"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationException(
                f"Unknown monitor fields: {', '.join(sorted(unknown))}",
                field="fields",
            )

        async with self.db.session() as session:
            monitor = await self._require(session, monitor_id)
            self._validate(
                fields.get("interval", monitor.interval),
                fields.get("timeout", monitor.timeout),
                monitor_id=monitor_id,
            )
            for key, value in fields.items():
                setattr(monitor, key, value)
            await session.flush()
            await session.refresh(monitor)
            return monitor

    async def set_active(self, monitor_id: int, active: bool) -> Monitor:
        return await self.update_monitor(monitor_id, active=active)

    async def get_config(self, monitor_id: int) -> MonitorConfig:
        """
        Scheduler snapshot of a monitor.

        Raises:
            DatabaseNotFoundError: If the monitor does not exist
        """
        async with self.db.session() as session:
            monitor = await self._require(session, monitor_id)
            return MonitorConfig.from_model(monitor)


# ============================================================================
# CHECK REPOSITORY
# ============================================================================

class CheckRepository(BaseRepository):
    """Repository for MonitorCheck history."""

    model_class = MonitorCheck

    async def get_recent(self, monitor_id: int, limit: int = 50) -> List[MonitorCheck]:
        """Most recent checks for a monitor, newest first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(MonitorCheck)
                .where(MonitorCheck.monitor_id == monitor_id)
                .order_by(MonitorCheck.checked_at.desc(), MonitorCheck.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())


# ============================================================================
# CHANNEL REPOSITORY
# ============================================================================

class ChannelRepository(BaseRepository):
    """
    Repository for notification channels and their monitor bindings.

    Destination URLs are validated before anything is written.
    """

    model_class = NotificationChannel

    def __init__(self, db_manager: DatabaseManager, sender: Optional[DestinationSender] = None):
        super().__init__(db_manager)
        self.sender = sender

    async def create_channel(
        self,
        name: str,
        destination_url: str,
        events: Optional[Iterable[str]] = None,
        enabled: bool = True,
    ) -> NotificationChannel:
        """
        Create a channel.

        Raises:
            InvalidDestinationURLError: If the URL is unusable
            InvalidEventListError: If an event name is unknown
        """
        validate_destination(destination_url, self.sender)
        channel = NotificationChannel(
            name=name,
            destination_url=destination_url.strip(),
            events=encode_events(events),
            enabled=enabled,
        )
        return await self.create(channel)

    async def update_channel(
        self,
        channel_id: int,
        name: Optional[str] = None,
        destination_url: Optional[str] = None,
        events: Optional[Iterable[str]] = None,
        enabled: Optional[bool] = None,
        clear_events: bool = False,
    ) -> NotificationChannel:
        """
        Update a channel. Pass ``clear_events=True`` to go back to the
        default event set.

        Raises:
            DatabaseNotFoundError: If the channel does not exist
            InvalidDestinationURLError: If the new URL is unusable
        """
        if destination_url is not None:
            validate_destination(destination_url, self.sender)
        encoded = encode_events(events)

        async with self.db.session() as session:
            channel = await self._require(session, channel_id)
            if name is not None:
                channel.name = name
            if destination_url is not None:
                channel.destination_url = destination_url.strip()
            if clear_events:
                channel.events = None
            elif events is not None:
                channel.events = encoded
            if enabled is not None:
                channel.enabled = enabled
            await session.flush()
            await session.refresh(channel)
            return channel

    async def bind(
        self,
        monitor_id: int,
        channel_id: int,
        events: Optional[Iterable[str]] = None,
    ) -> MonitorNotification:
        """
        Attach a channel to a monitor, replacing any existing binding.

        ``events`` overrides the channel's own list for this monitor.
        """
        encoded = encode_events(events)
        async with self.db.session() as session:
            if await session.get(Monitor, monitor_id) is None:
                raise DatabaseNotFoundError(Monitor.__tablename__, monitor_id)
            await self._require(session, channel_id)

            binding = await session.merge(
                MonitorNotification(
                    monitor_id=monitor_id,
                    channel_id=channel_id,
                    events=encoded,
                )
            )
            await session.flush()
            return binding

    async def unbind(self, monitor_id: int, channel_id: int) -> bool:
        async with self.db.session() as session:
            result = await session.execute(
                delete(MonitorNotification).where(
                    MonitorNotification.monitor_id == monitor_id,
                    MonitorNotification.channel_id == channel_id,
                )
            )
            return bool(result.rowcount)

    async def get_bound(self, monitor_id: int) -> List[NotificationChannel]:
        async with self.db.session() as session:
            result = await session.execute(
                select(NotificationChannel)
                .join(MonitorNotification, MonitorNotification.channel_id == NotificationChannel.id)
                .where(MonitorNotification.monitor_id == monitor_id)
                .order_by(NotificationChannel.id)
            )
            return list(result.scalars().all())
