"""
Scheduler Exception Classes for Uptime Monitor

Errors raised by the monitor scheduler registry.
"""

from __future__ import annotations

from typing import Any, Optional

from uptime_monitor.exceptions.base import UptimeMonitorException


class SchedulerException(UptimeMonitorException):
    """
    Base Scheduler Exception

    Parent class for all scheduler-related exceptions.
    """

    default_error_code = 5000

    def __init__(
        self,
        message: str,
        monitor_id: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if monitor_id is not None:
            self.details["monitor_id"] = monitor_id


class SchedulerStoppedError(SchedulerException):
    """
    Scheduler Stopped Error

    Raised when a job is installed on a scheduler that has been stopped.
    """

    default_error_code = 5001
    default_recoverable = False

    def __init__(
        self,
        monitor_id: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(
            "Scheduler has been stopped and accepts no new jobs",
            monitor_id=monitor_id,
            **kwargs
        )
