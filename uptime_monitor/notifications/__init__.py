"""
Notifications Package for Uptime Monitor

    • NotificationDispatcher — bounded worker pool fanning alerts out
    • DestinationSender      — send seam, implemented over apprise
    • build_message          — plain-text alert body
"""

from uptime_monitor.notifications.destinations import (
    SUPPORTED_SERVICES,
    AppriseSender,
    DestinationSender,
    ServiceInfo,
    get_supported_services,
    validate_destination,
)
from uptime_monitor.notifications.dispatcher import DispatchReport, NotificationDispatcher
from uptime_monitor.notifications.templates import build_message

__all__ = [
    "SUPPORTED_SERVICES",
    "AppriseSender",
    "DestinationSender",
    "ServiceInfo",
    "get_supported_services",
    "validate_destination",
    "DispatchReport",
    "NotificationDispatcher",
    "build_message",
]
