"""
Configuration Package for Uptime Monitor

This package contains all configuration-related modules including:
- Settings management with environment variable support
- Constants and enums used throughout the application
"""

from uptime_monitor.config.settings import (
    Settings,
    DatabaseSettings,
    MonitoringSettings,
    NotificationSettings,
    LoggingSettings,
    ServerSettings,
    get_settings,
    load_settings,
)

from uptime_monitor.config.constants import (
    CheckStatus,
    ProtocolKind,
    NotificationEvent,
    DEFAULT_EVENTS,
    MessageTemplates,
    Defaults,
)

__all__ = [
    # Settings
    "Settings",
    "DatabaseSettings",
    "MonitoringSettings",
    "NotificationSettings",
    "LoggingSettings",
    "ServerSettings",
    "get_settings",
    "load_settings",

    # Constants
    "CheckStatus",
    "ProtocolKind",
    "NotificationEvent",
    "DEFAULT_EVENTS",
    "MessageTemplates",
    "Defaults",
]
