"""
============================================================================
UPTIME MONITOR - MONITORING VALUE TYPES
============================================================================
Plain value objects passed between the scheduler, the probes, the store
and the notification dispatcher. None of them hold a database session.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional

from uptime_monitor.config.constants import (
    DEFAULT_EVENTS,
    CheckStatus,
    Defaults,
    NotificationEvent,
)
from uptime_monitor.exceptions import InvalidEventListError


# ============================================================================
# MONITOR SNAPSHOT
# ============================================================================

@dataclass(frozen=True)
class MonitorConfig:
    """
    Read-only snapshot of a monitor as the scheduler sees it.

    Jobs hold one of these instead of an ORM row so a tick never touches
    a detached or expired session object.
    """

    id: int
    name: str
    url: str
    type: str
    interval: int = Defaults.CHECK_INTERVAL
    timeout: int = Defaults.CHECK_TIMEOUT
    max_retries: int = Defaults.MAX_RETRIES
    active: bool = True

    @classmethod
    def from_model(cls, monitor: Any) -> "MonitorConfig":
        """Build a snapshot from a Monitor ORM row."""
        return cls(
            id=monitor.id,
            name=monitor.name,
            url=monitor.url,
            type=monitor.type,
            interval=monitor.interval,
            timeout=monitor.timeout,
            max_retries=monitor.max_retries,
            active=bool(monitor.active),
        )


# ============================================================================
# PROBE OUTCOME / CHECK
# ============================================================================

class ProbeOutcome:
    """
    Result of one probe execution, before it is attached to a monitor.
    """
    __slots__ = ("status", "latency_ms", "status_code", "message")

    def __init__(
        self,
        status: CheckStatus,
        latency_ms: Optional[int] = None,
        status_code: Optional[int] = None,
        message: str = "",
    ):
        self.status = status
        self.latency_ms = latency_ms
        self.status_code = status_code
        self.message = message

    @classmethod
    def up(cls, message: str = "", **kwargs: Any) -> "ProbeOutcome":
        return cls(CheckStatus.UP, message=message, **kwargs)

    @classmethod
    def down(cls, message: str = "", **kwargs: Any) -> "ProbeOutcome":
        return cls(CheckStatus.DOWN, message=message, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {slot: getattr(self, slot) for slot in self.__slots__}

    def __repr__(self) -> str:
        return (
            f"ProbeOutcome(status={self.status.value}, latency_ms={self.latency_ms}, "
            f"status_code={self.status_code}, message={self.message!r})"
        )


@dataclass
class Check:
    """
    One observation of a monitor, as appended to the check history.
    """

    monitor_id: int
    status: CheckStatus
    response_time: int = 0
    status_code: Optional[int] = None
    message: str = ""
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: Optional[int] = None

    @classmethod
    def from_outcome(cls, monitor_id: int, outcome: ProbeOutcome) -> "Check":
        return cls(
            monitor_id=monitor_id,
            status=outcome.status,
            response_time=outcome.latency_ms or 0,
            status_code=outcome.status_code,
            message=outcome.message,
        )


# ============================================================================
# CHANNEL TARGET
# ============================================================================

def parse_event_list(raw: Optional[str]) -> Optional[FrozenSet[NotificationEvent]]:
    """
    Decode a stored JSON event list.

    Returns None when the list is absent or empty. Unknown names inside
    a valid list are ignored.

    Raises:
        InvalidEventListError: If the value is not a JSON list of strings
    """
    if raw is None or raw.strip() == "":
        return None

    try:
        names = json.loads(raw)
    except ValueError as e:
        raise InvalidEventListError(value=raw, cause=e) from e

    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise InvalidEventListError(value=raw)

    if not names:
        return None

    events = (NotificationEvent.parse(name) for name in names)
    return frozenset(e for e in events if e is not None)


@dataclass(frozen=True)
class ChannelTarget:
    """
    A notification channel as bound to one monitor.

    ``events`` is the channel's own stored list; ``binding_events`` is the
    per-monitor override from the binding row. Both are raw JSON text.
    """

    id: int
    name: str
    destination_url: str
    enabled: bool = True
    events: Optional[str] = None
    binding_events: Optional[str] = None

    def effective_events(self) -> FrozenSet[NotificationEvent]:
        """
        Events this channel receives for the bound monitor.

        A present, non-empty binding override replaces the channel list;
        an absent or empty channel list means the default set.

        Raises:
            InvalidEventListError: If either stored list is malformed
        """
        override = parse_event_list(self.binding_events)
        if override is not None:
            return override

        own = parse_event_list(self.events)
        if own is not None:
            return own

        return DEFAULT_EVENTS

    def subscribes_to(self, event: NotificationEvent) -> bool:
        return self.enabled and event in self.effective_events()


# ============================================================================
# ALERT REQUEST
# ============================================================================

@dataclass(frozen=True)
class AlertRequest:
    """
    Everything the dispatcher needs to notify about one event.
    """

    monitor: MonitorConfig
    check: Check
    event: NotificationEvent
    previous_status: Optional[CheckStatus] = None
