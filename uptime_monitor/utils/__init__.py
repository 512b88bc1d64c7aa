"""
Utilities Package for Uptime Monitor

Shared helpers used across the application.
"""

from uptime_monitor.utils.logger import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
