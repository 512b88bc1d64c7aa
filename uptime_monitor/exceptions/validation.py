"""
Validation Exception Classes for Uptime Monitor

Provides specialized exceptions for invalid monitor configuration,
destination URLs and event subscriptions.
"""

from __future__ import annotations

from typing import Any, Optional

from uptime_monitor.exceptions.base import UptimeMonitorException


class ValidationException(UptimeMonitorException):
    """
    Base Validation Exception

    Parent class for all validation-related exceptions.
    """

    default_error_code = 3000
    default_recoverable = True

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize validation exception.

        Args:
            message: Error message
            field: The field that failed validation
            value: The invalid value (sanitized)
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if field:
            self.details["field"] = field

        if value is not None:
            self.details["value"] = self._sanitize_value(value)

    @staticmethod
    def _sanitize_value(value: Any) -> str:
        """Truncate a value for logging."""
        str_value = str(value)

        if len(str_value) > 100:
            str_value = str_value[:100] + "..."

        return str_value


class InvalidDestinationURLError(ValidationException):
    """
    Invalid Destination URL Error

    Raised when a notification destination URL is malformed or names a
    provider that no notifier supports. The URL embeds credentials, so
    only its scheme is recorded.
    """

    default_error_code = 3001

    def __init__(
        self,
        message: str = "Invalid destination URL",
        url: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field="destination_url", **kwargs)

        if url:
            scheme = url.split("://", 1)[0] if "://" in url else ""
            self.details["scheme"] = scheme or None


class InvalidIntervalError(ValidationException):
    """
    Invalid Interval Error

    Raised when a monitor cannot be scheduled at its check interval.
    """

    default_error_code = 3002

    def __init__(
        self,
        interval: Any,
        monitor_id: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(
            f"Check interval must be a positive number of seconds, got {interval!r}",
            field="interval",
            value=interval,
            **kwargs
        )

        if monitor_id is not None:
            self.details["monitor_id"] = monitor_id


class InvalidEventListError(ValidationException):
    """
    Invalid Event List Error

    Raised when a subscription list names no known events or is not a
    JSON list of strings.
    """

    default_error_code = 3003

    def __init__(
        self,
        message: str = "Invalid notification event list",
        value: Optional[Any] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, field="events", value=value, **kwargs)
