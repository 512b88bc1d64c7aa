"""
Exceptions Package for Uptime Monitor

Provides the exception hierarchy for error handling
throughout the application.
"""

from uptime_monitor.exceptions.base import (
    UptimeMonitorException,
    ConfigurationError,
    InitializationError,
)

from uptime_monitor.exceptions.database import (
    DatabaseException,
    DatabaseConnectionError,
    DatabaseQueryError,
    DatabaseNotFoundError,
)

from uptime_monitor.exceptions.validation import (
    ValidationException,
    InvalidDestinationURLError,
    InvalidIntervalError,
    InvalidEventListError,
)

from uptime_monitor.exceptions.notification import (
    NotificationException,
    NotificationSendError,
    NotificationTimeoutError,
    QueueFullError,
)

from uptime_monitor.exceptions.scheduler import (
    SchedulerException,
    SchedulerStoppedError,
)

__all__ = [
    # Base exceptions
    "UptimeMonitorException",
    "ConfigurationError",
    "InitializationError",

    # Database exceptions
    "DatabaseException",
    "DatabaseConnectionError",
    "DatabaseQueryError",
    "DatabaseNotFoundError",

    # Validation exceptions
    "ValidationException",
    "InvalidDestinationURLError",
    "InvalidIntervalError",
    "InvalidEventListError",

    # Notification exceptions
    "NotificationException",
    "NotificationSendError",
    "NotificationTimeoutError",
    "QueueFullError",

    # Scheduler exceptions
    "SchedulerException",
    "SchedulerStoppedError",
]
