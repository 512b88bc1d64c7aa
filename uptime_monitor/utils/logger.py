"""
Logging Utility for Uptime Monitor

Configures loguru sinks from LoggingSettings and hands out
component-bound loggers.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger

    from uptime_monitor.config.settings import Settings


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> - "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
    "{extra[component]} | {name}:{function}:{line} - {message}"
)


# ============================================================================
# LOGGER CONFIGURATION
# ============================================================================

def setup_logging(settings: Optional["Settings"] = None) -> None:
    """
    Configure logging system with console and file sinks.

    Replaces loguru's default stderr sink. Safe to call more than once;
    every call starts from a clean set of sinks.

    Args:
        settings: Application settings (cached settings when omitted)
    """
    if settings is None:
        from uptime_monitor.config.settings import get_settings
        settings = get_settings()

    log_settings = settings.logging
    log_level = log_settings.level.value

    logger.remove()
    logger.configure(extra={"component": "app"})

    # Console Handler
    if log_settings.to_console:
        logger.add(
            sys.stdout,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=log_settings.colorize,
            backtrace=settings.debug,
            diagnose=settings.debug,
        )

    # File Handler
    if log_settings.to_file:
        log_settings.file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_settings.file_path,
            format=FILE_FORMAT,
            level=log_level,
            rotation=log_settings.rotation,
            retention=log_settings.retention,
            compression="zip",
            serialize=log_settings.serialize,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )

    logger.info("Logging system initialized")
    logger.info(f"Log level: {log_level}")
    logger.info(f"Console logging: {log_settings.to_console}")
    logger.info(f"File logging: {log_settings.to_file}")


def get_logger(component: Optional[str] = None) -> "Logger":
    """
    Get logger instance bound to a component name.

    Args:
        component: Component name shown in every record

    Returns:
        Logger instance
    """
    if component:
        return logger.bind(component=component)
    return logger.bind(component="app")
