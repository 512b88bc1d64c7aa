"""
============================================================================
UPTIME MONITOR - MAIN APPLICATION
============================================================================
Wires every layer together and owns the startup / shutdown order.

Startup Order
-------------
1.  Load settings & configure logging
2.  Initialize DatabaseManager (create tables if needed)
3.  Create SQLStore, ProbeRegistry, NotificationDispatcher
4.  Create MonitorChecker and MonitorScheduler
5.  Start NotificationDispatcher workers
6.  Start MonitorScheduler (loads active monitors)
7.  Start HealthServer (aiohttp, non-blocking)
8.  Wait for SIGINT / SIGTERM

Shutdown Order (reverse)
-------------------------
    stop health server → stop scheduler → wait for state listeners →
    stop dispatcher → close DB → exit

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
import signal
import sys
from typing import Optional

from uptime_monitor.config.constants import CheckStatus
from uptime_monitor.config.settings import Settings, get_settings, load_settings
from uptime_monitor.database.manager import DatabaseManager
from uptime_monitor.database.store import SQLStore
from uptime_monitor.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    InitializationError,
    UptimeMonitorException,
)
from uptime_monitor.monitoring.checker import MonitorChecker
from uptime_monitor.monitoring.health import HealthServer
from uptime_monitor.monitoring.probes import ProbeRegistry
from uptime_monitor.monitoring.scheduler import MonitorScheduler
from uptime_monitor.monitoring.types import Check, MonitorConfig
from uptime_monitor.notifications.dispatcher import NotificationDispatcher
from uptime_monitor.utils.logger import get_logger, setup_logging


logger = get_logger("Main")


async def log_state_change(
    monitor: MonitorConfig,
    check: Check,
    previous: Optional[CheckStatus],
) -> None:
    """Default state listener: one log line per status transition."""
    before = previous.value if previous is not None else "none"
    logger.info(
        f"{CheckStatus.get_emoji(check.status)} {monitor.name} "
        f"{before} → {check.status.value} ({check.message})"
    )


# ============================================================================
# APPLICATION CLASS
# ============================================================================

class UptimeMonitorApplication:
    """
    Top-level application orchestrator.

    Owns every subsystem and is the single place that knows the startup /
    shutdown order. Subsystems get their collaborators through their
    constructors; only Settings is cached process-wide.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

        self.db_manager: Optional[DatabaseManager] = None
        self.store: Optional[SQLStore] = None
        self.dispatcher: Optional[NotificationDispatcher] = None
        self.checker: Optional[MonitorChecker] = None
        self.scheduler: Optional[MonitorScheduler] = None
        self.health_server: Optional[HealthServer] = None

        self._is_running = False
        self._shutdown_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._is_running

    # ==================================================================
    # PHASE 1: DATABASE
    # ==================================================================

    async def _init_database(self) -> None:
        logger.info("── Phase 1: Database ─────────────────────────────")
        self.db_manager = DatabaseManager(self.settings.database)
        await self.db_manager.initialize()
        if not await self.db_manager.check_connection():
            raise DatabaseConnectionError(
                "Database did not answer the connection check",
                url=self.db_manager.masked_url,
            )
        self.store = SQLStore(self.db_manager)
        logger.info(f"  ✓ Connected to {self.settings.database.type.value}")

    # ==================================================================
    # PHASE 2: MONITORING ENGINE
    # ==================================================================

    async def _init_monitoring(self) -> None:
        logger.info("── Phase 2: Monitoring Engine ────────────────────")
        monitoring = self.settings.monitoring

        self.dispatcher = NotificationDispatcher(
            store=self.store,
            settings=self.settings.notifications,
        )
        self.checker = MonitorChecker(
            store=self.store,
            probes=ProbeRegistry.default(monitoring),
            dispatcher=self.dispatcher,
            slow_threshold_ms=monitoring.slow_response_threshold_ms,
            state_listener=log_state_change,
        )
        self.scheduler = MonitorScheduler(self.store, self.checker.run)
        logger.info("  ✓ NotificationDispatcher, MonitorChecker, MonitorScheduler created")

    # ==================================================================
    # PHASE 3: HEALTH SERVER
    # ==================================================================

    def _init_health(self) -> None:
        if not self.settings.server.enabled:
            logger.info("── Phase 3: Health server disabled ───────────────")
            return

        logger.info("── Phase 3: Health Server ────────────────────────")
        self.health_server = HealthServer(
            self.settings.server,
            scheduler=self.scheduler,
            dispatcher=self.dispatcher,
            app_version=self.settings.app_version,
        )

    async def _start_health(self) -> None:
        server = self.settings.server
        try:
            await self.health_server.start()
        except OSError as e:
            raise InitializationError(
                f"Health server could not bind {server.host}:{server.port}",
                component="HealthServer",
                cause=e,
            ) from e

    # ==================================================================
    # FULL STARTUP SEQUENCE
    # ==================================================================

    async def startup(self) -> bool:
        """
        Execute the complete startup sequence.
        Returns False (and logs errors) if any phase fails.
        """
        logger.info("=" * 74)
        logger.info(f"  STARTING {self.settings.app_name} v{self.settings.app_version} …")
        logger.info("=" * 74)

        try:
            await self._init_database()
            await self._init_monitoring()
            self._init_health()

            logger.info("── Starting background services ───────────────────")
            await self.dispatcher.start()
            await self.scheduler.start()
            if self.health_server:
                await self._start_health()
        except UptimeMonitorException as e:
            logger.error(f"  ✗ Startup failed: {e.log_format()}")
            return False

        self._is_running = True
        logger.info("=" * 74)
        logger.info("  ✓ ALL SYSTEMS OPERATIONAL")
        logger.info(f"  Monitors scheduled: {len(self.scheduler.job_ids())}")
        if self.health_server:
            server = self.settings.server
            logger.info(f"  Health endpoint: http://{server.host}:{server.port}/health")
        logger.info("=" * 74)
        return True

    # ==================================================================
    # SHUTDOWN SEQUENCE
    # ==================================================================

    async def shutdown(self) -> None:
        """
        Graceful shutdown in reverse order.
        A failure in one subsystem does not stop the others cleaning up.
        """
        logger.info("=" * 74)
        logger.info("  SHUTTING DOWN …")
        logger.info("=" * 74)

        self._is_running = False

        steps = [
            ("HealthServer", self.health_server.stop if self.health_server else None),
            ("MonitorScheduler", self.scheduler.stop if self.scheduler else None),
            ("MonitorChecker", self.checker.close if self.checker else None),
            ("NotificationDispatcher", self.dispatcher.stop if self.dispatcher else None),
            ("Database", self.db_manager.close if self.db_manager else None),
        ]

        for name, stop in steps:
            if stop is None:
                continue
            try:
                await stop()
                logger.info(f"  ✓ {name} stopped")
            except Exception as e:
                logger.opt(exception=e).error(f"  ✗ {name} stop error: {e}")

        logger.info("=" * 74)
        logger.info("  ✓ SHUTDOWN COMPLETE")
        logger.info("=" * 74)

    # ==================================================================
    # RUN
    # ==================================================================

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    async def run(self) -> None:
        """Block until a shutdown is requested."""
        await self._shutdown_event.wait()


# ============================================================================
# SIGNAL HANDLER SETUP
# ============================================================================

def _install_signal_handlers(app: UptimeMonitorApplication) -> None:
    """
    Install SIGTERM / SIGINT handlers that ask the application to stop.
    """
    loop = asyncio.get_running_loop()

    def _handle_signal(sig: signal.Signals) -> None:
        logger.info(f"  ⚡ {sig.name} received — initiating graceful shutdown…")
        app.request_shutdown()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal, sig)
        except (NotImplementedError, RuntimeError):
            # Not supported on Windows; KeyboardInterrupt still applies
            logger.debug(f"  Signal handler for {sig.name} not installed")


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

async def main() -> int:
    """
    Create the app, start it and run until shutdown.
    """
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"  ✗ {e.log_format()}")
        return 2

    setup_logging(settings)

    app = UptimeMonitorApplication(settings)
    _install_signal_handlers(app)

    if not await app.startup():
        logger.error("  ✗ Startup failed — exiting")
        await app.shutdown()
        return 1

    try:
        await app.run()
    finally:
        await app.shutdown()
    return 0


def run() -> None:
    """Console entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("  ⚡ KeyboardInterrupt received")
