"""
Database Exception Classes for Uptime Monitor

Provides specialized exceptions for database-related errors
including connection issues, query errors, and missing rows.
"""

from __future__ import annotations

from typing import Any, Optional

from uptime_monitor.exceptions.base import UptimeMonitorException


class DatabaseException(UptimeMonitorException):
    """
    Base Database Exception

    Parent class for all database-related exceptions.
    """

    default_error_code = 2000
    default_recoverable = False

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        """
        Initialize database exception.

        Args:
            message: Error message
            table: The database table involved
            **kwargs: Additional arguments
        """
        super().__init__(message, **kwargs)

        if table:
            self.details["table"] = table


class DatabaseConnectionError(DatabaseException):
    """
    Database Connection Error

    Raised when unable to establish or maintain database connection.
    """

    default_error_code = 2001

    def __init__(
        self,
        message: str = "Unable to connect to database",
        url: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)

        if url:
            self.details["url"] = url


class DatabaseQueryError(DatabaseException):
    """
    Database Query Error

    Raised when a database statement fails to execute.
    """

    default_error_code = 2002

    def __init__(
        self,
        message: str = "Database query failed",
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)


class DatabaseNotFoundError(DatabaseException):
    """
    Database Not Found Error

    Raised when a referenced row does not exist.
    """

    default_error_code = 2003
    default_recoverable = True

    def __init__(
        self,
        entity: str,
        entity_id: Any,
        **kwargs: Any
    ) -> None:
        super().__init__(f"{entity} {entity_id} not found", table=entity, **kwargs)
        self.details["entity_id"] = entity_id
