"""
Database Models for Uptime Monitor

SQLAlchemy ORM models for monitors, their append-only check history,
notification channels and the monitor-to-channel bindings.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text,
    ForeignKey, Index, func
)
from sqlalchemy.orm import declarative_base, relationship

from uptime_monitor.config.constants import CheckStatus, Defaults, ProtocolKind


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


# ============================================================================
# BASE MODEL CONFIGURATION
# ============================================================================

Base = declarative_base()


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.
    """
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )


# ============================================================================
# MONITOR MODEL
# ============================================================================

class Monitor(Base, TimestampMixin):
    """
    Monitor Model

    One independently scheduled probe target.
    """
    __tablename__ = "monitors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)
    type = Column(String(32), nullable=False, default=ProtocolKind.HTTP.value)

    interval = Column(Integer, nullable=False, default=Defaults.CHECK_INTERVAL)
    timeout = Column(Integer, nullable=False, default=Defaults.CHECK_TIMEOUT)

    # Stored for the API layer; a tick always makes a single attempt
    max_retries = Column(Integer, nullable=False, default=Defaults.MAX_RETRIES)

    active = Column(Boolean, nullable=False, default=True, index=True)

    checks = relationship(
        "MonitorCheck",
        back_populates="monitor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    bindings = relationship(
        "MonitorNotification",
        back_populates="monitor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Monitor(id={self.id}, name={self.name!r}, type={self.type})>"


# ============================================================================
# MONITOR CHECK MODEL
# ============================================================================

class MonitorCheck(Base):
    """
    Monitor Check Model

    Append-only record of a single probe outcome.
    """
    __tablename__ = "monitor_checks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    monitor_id = Column(
        Integer,
        ForeignKey("monitors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(String(16), nullable=False, default=CheckStatus.UNKNOWN.value)
    response_time = Column(Integer, nullable=False, default=0)
    status_code = Column(Integer, nullable=True)
    message = Column(Text, nullable=False, default="")
    checked_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    monitor = relationship("Monitor", back_populates="checks")

    __table_args__ = (
        Index("idx_monitor_checks_monitor_checked", "monitor_id", "checked_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<MonitorCheck(id={self.id}, monitor_id={self.monitor_id}, "
            f"status={self.status})>"
        )


# ============================================================================
# NOTIFICATION CHANNEL MODEL
# ============================================================================

class NotificationChannel(Base, TimestampMixin):
    """
    Notification Channel Model

    A named destination URL plus the events it subscribes to.
    """
    __tablename__ = "notification_channels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    # Opaque notifier URL; embeds provider credentials
    destination_url = Column(Text, nullable=False)

    # JSON list of event names; NULL or [] selects the default set
    events = Column(Text, nullable=True)

    enabled = Column(Boolean, nullable=False, default=True)

    bindings = relationship(
        "MonitorNotification",
        back_populates="channel",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize without the destination URL."""
        return {
            "id": self.id,
            "name": self.name,
            "events": self.events,
            "enabled": self.enabled,
        }

    def __repr__(self) -> str:
        return f"<NotificationChannel(id={self.id}, name={self.name!r})>"


# ============================================================================
# MONITOR NOTIFICATION (BINDING) MODEL
# ============================================================================

class MonitorNotification(Base):
    """
    Monitor Notification Binding

    Attaches a channel to a monitor, optionally overriding the
    channel's event list for that monitor.
    """
    __tablename__ = "monitor_notifications"

    monitor_id = Column(
        Integer,
        ForeignKey("monitors.id", ondelete="CASCADE"),
        primary_key=True,
    )
    channel_id = Column(
        Integer,
        ForeignKey("notification_channels.id", ondelete="CASCADE"),
        primary_key=True,
    )
    events = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    monitor = relationship("Monitor", back_populates="bindings")
    channel = relationship("NotificationChannel", back_populates="bindings")

    def __repr__(self) -> str:
        return (
            f"<MonitorNotification(monitor_id={self.monitor_id}, "
            f"channel_id={self.channel_id})>"
        )
