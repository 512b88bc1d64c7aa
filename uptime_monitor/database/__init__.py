"""
Database Package for Uptime Monitor

Provides database connectivity, models, repositories and the monitor
store used by the monitoring engine, on SQLAlchemy with async support.
"""

from uptime_monitor.database.manager import DatabaseManager

from uptime_monitor.database.models import (
    Base,
    Monitor,
    MonitorCheck,
    NotificationChannel,
    MonitorNotification,
)

from uptime_monitor.database.repositories import (
    BaseRepository,
    MonitorRepository,
    CheckRepository,
    ChannelRepository,
    encode_events,
)

from uptime_monitor.database.store import MonitorStore, SQLStore

__all__ = [
    # Connection
    "DatabaseManager",

    # Models
    "Base",
    "Monitor",
    "MonitorCheck",
    "NotificationChannel",
    "MonitorNotification",

    # Repositories
    "BaseRepository",
    "MonitorRepository",
    "CheckRepository",
    "ChannelRepository",
    "encode_events",

    # Store
    "MonitorStore",
    "SQLStore",
]
