"""
Notification Exception Classes for Uptime Monitor

Errors raised while delivering alerts to notification destinations.
"""

from __future__ import annotations

from typing import Any, Optional

from uptime_monitor.exceptions.base import UptimeMonitorException


class NotificationException(UptimeMonitorException):
    """
    Base Notification Exception

    Parent class for all delivery-related exceptions.
    """

    default_error_code = 4000
    default_recoverable = True

    def __init__(
        self,
        message: str,
        channel: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if channel:
            self.details["channel"] = channel


class NotificationSendError(NotificationException):
    """
    Notification Send Error

    Raised when a destination rejects or fails to accept a message.
    """

    default_error_code = 4001


class NotificationTimeoutError(NotificationException):
    """
    Notification Timeout Error

    Raised when a destination send exceeds the per-send timeout.
    """

    default_error_code = 4002

    def __init__(
        self,
        timeout: float,
        channel: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(
            f"Notification send timed out after {timeout}s",
            channel=channel,
            **kwargs
        )
        self.details["timeout"] = timeout


class QueueFullError(NotificationException):
    """
    Queue Full Error

    Raised when the dispatcher queue cannot accept another alert.
    """

    default_error_code = 4003

    def __init__(
        self,
        maxsize: int,
        **kwargs: Any
    ) -> None:
        super().__init__(f"Notification queue is full ({maxsize} pending)", **kwargs)
        self.details["maxsize"] = maxsize
