"""
Base Exception Classes for Uptime Monitor

Root of the exception hierarchy plus the configuration and startup
errors raised while the application is being assembled.

Error code ranges:
    1xxx  configuration / initialization
    2xxx  database
    3xxx  validation
    4xxx  notification delivery
    5xxx  scheduler
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional


class UptimeMonitorException(Exception):
    """
    Base Exception Class

    Every error the monitor raises on purpose derives from this class,
    so callers at a boundary (a scheduler tick, a dispatcher worker, the
    startup sequence) can catch one type and log it uniformly.

    Attributes:
        message: Human-readable error message
        error_code: Numeric code, see the ranges above
        details: Structured context; never holds credentials
        cause: The underlying exception, if any
        recoverable: False when retrying the same operation is pointless
        timestamp: When the exception was created (UTC)
    """

    default_error_code: int = 1000
    default_recoverable: bool = True

    def __init__(
        self,
        message: str = "An error occurred",
        error_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details: Dict[str, Any] = dict(details or {})
        self.cause = cause
        self.recoverable = self.default_recoverable if recoverable is None else recoverable
        self.timestamp = datetime.now(timezone.utc)

    @property
    def full_message(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, used by the health endpoint and JSON logs."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": repr(self.cause) if self.cause else None,
        }

    def log_format(self) -> str:
        """
        One-line rendering for log records:
        ``Name[code]: message | key=value ... | cause=...``
        """
        line = f"{type(self).__name__}[{self.error_code}]: {self.message}"

        if self.details:
            pairs = " ".join(f"{key}={value}" for key, value in sorted(self.details.items()))
            line = f"{line} | {pairs}"

        if self.cause:
            line = f"{line} | cause={type(self.cause).__name__}: {self.cause}"

        return line

    @classmethod
    def from_exception(
        cls,
        exception: BaseException,
        message: Optional[str] = None,
        **kwargs: Any
    ) -> "UptimeMonitorException":
        """Wrap a foreign exception, keeping it as the cause."""
        return cls(
            message=message or str(exception) or type(exception).__name__,
            cause=exception,
            **kwargs
        )

    def __str__(self) -> str:
        return self.full_message

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"error_code={self.error_code}, details={self.details})"
        )


class ConfigurationError(UptimeMonitorException):
    """
    Configuration Error

    Raised when the environment or .env file does not produce valid
    settings. ``fields`` lists the offending setting names.
    """

    default_error_code = 1100
    default_recoverable = False

    def __init__(
        self,
        message: str,
        fields: Optional[Iterable[str]] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if fields:
            self.details["fields"] = sorted(set(fields))


class InitializationError(UptimeMonitorException):
    """
    Initialization Error

    Raised when a subsystem cannot be brought up during startup, for
    example the health server failing to bind its port.
    """

    default_error_code = 1200
    default_recoverable = False

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if component:
            self.details["component"] = component
