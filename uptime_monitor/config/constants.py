"""
Constants Module for Uptime Monitor

Contains the enumerations, default event sets, and message template
constants shared by the monitoring engine and the notification pipeline.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Final, Optional, Tuple


class CheckStatus(str, Enum):
    """
    Check Status Enumeration

    Outcome of a single probe of a monitor.
    """

    UP = "up"
    DOWN = "down"
    UNKNOWN = "unknown"

    @classmethod
    def get_emoji(cls, status: "CheckStatus") -> str:
        """Get emoji for check status."""
        emojis = {
            cls.UP: "🟢",
            cls.DOWN: "🔴",
            cls.UNKNOWN: "🟡",
        }
        return emojis.get(status, "❓")


class ProtocolKind(str, Enum):
    """
    Protocol Kind Enumeration

    Protocol identifiers with a built-in probe strategy. Monitors may carry
    any other string; those are classified as unknown.
    """

    HTTP = "http"
    HTTPS = "https"
    TCP = "tcp"
    PING = "ping"
    DNS = "dns"


class NotificationEvent(str, Enum):
    """
    Notification Event Enumeration

    Alert events derived from two consecutive check states.
    """

    UP = "up"
    DOWN = "down"
    RECOVERY = "recovery"
    SLOW = "slow"

    @classmethod
    def parse(cls, value: str) -> Optional["NotificationEvent"]:
        """
        Parse an event name, accepting the legacy stored names.

        Returns None for names that are not known events.
        """
        name = value.strip().lower()
        name = LEGACY_EVENT_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            return None


# Event names written by earlier schema versions
LEGACY_EVENT_ALIASES: Final[Dict[str, str]] = {
    "monitor_up": "up",
    "monitor_down": "down",
    "response_slow": "slow",
}

# Channels with no explicit event list receive exactly these events
DEFAULT_EVENTS: Final[FrozenSet[NotificationEvent]] = frozenset({
    NotificationEvent.UP,
    NotificationEvent.DOWN,
    NotificationEvent.RECOVERY,
})


class MessageTemplates:
    """
    Message Templates

    Emoji and title per event kind, plus the fixed test message.
    """

    EVENT_HEADERS: Final[Dict[NotificationEvent, Tuple[str, str]]] = {
        NotificationEvent.UP: ("✅", "Monitor UP"),
        NotificationEvent.DOWN: ("🔴", "Monitor DOWN"),
        NotificationEvent.SLOW: ("🐢", "Slow Response"),
        NotificationEvent.RECOVERY: ("🔄", "Monitor Recovered"),
    }

    FALLBACK_HEADER: Final[Tuple[str, str]] = ("ℹ️", "Monitor Alert")

    TEST_MESSAGE: Final[str] = (
        "🧪 Test notification from Uptime Monitor - "
        "Your notification channel is configured correctly!"
    )

    CHECKED_AT_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S %Z"

    @classmethod
    def header_for(cls, event: NotificationEvent) -> Tuple[str, str]:
        """Get (emoji, title) for an event."""
        return cls.EVENT_HEADERS.get(event, cls.FALLBACK_HEADER)


class Defaults:
    """
    Default Values

    Fallbacks for monitors and probes.
    """

    # Monitor defaults
    CHECK_INTERVAL: Final[int] = 60
    CHECK_TIMEOUT: Final[int] = 30
    MAX_RETRIES: Final[int] = 3

    # Probe defaults
    PING_COUNT: Final[int] = 3
    PING_INTERVAL: Final[float] = 1.0
    SLOW_RESPONSE_THRESHOLD_MS: Final[int] = 5000
    USER_AGENT: Final[str] = "UptimeMonitor/1.0 (Monitoring Service)"

    # Messages
    UNKNOWN_PROTOCOL_MESSAGE: Final[str] = "Unknown monitor type"
    HTTP_OK_MESSAGE: Final[str] = "OK"
    NO_PACKETS_MESSAGE: Final[str] = "no packets received"
