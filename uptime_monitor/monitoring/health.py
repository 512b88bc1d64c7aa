"""
============================================================================
UPTIME MONITOR - HEALTH SERVER
============================================================================
Small aiohttp server exposing liveness and a JSON status summary of the
scheduler and the notification dispatcher.

    GET /        → "OK"
    GET /health  → status, uptime, scheduled monitors, dispatcher stats

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from aiohttp import web

from uptime_monitor.config.settings import ServerSettings
from uptime_monitor.utils.logger import get_logger

if TYPE_CHECKING:
    from uptime_monitor.monitoring.scheduler import MonitorScheduler
    from uptime_monitor.notifications.dispatcher import NotificationDispatcher


logger = get_logger("HealthServer")


class HealthServer:
    """
    Health endpoint for the monitor process itself.

    Attributes
    ----------
    app : aiohttp.web.Application
    _runner : aiohttp.web.AppRunner
    _site : aiohttp.web.TCPSite
    _start_time : float          -- epoch seconds when the server started
    _request_count : int         -- total requests served
    """

    def __init__(
        self,
        settings: ServerSettings,
        scheduler: Optional["MonitorScheduler"] = None,
        dispatcher: Optional["NotificationDispatcher"] = None,
        app_version: str = "",
    ):
        self.settings = settings
        self.scheduler = scheduler
        self.dispatcher = dispatcher
        self.app_version = app_version

        self.app = web.Application()
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None
        self._start_time: float = time.time()
        self._request_count: int = 0

        self.app.router.add_get("/", self._handle_root)
        self.app.router.add_get("/health", self._handle_health)

    async def start(self) -> None:
        """Bind and start serving."""
        self._start_time = time.time()
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.settings.host, self.settings.port)
        await self._site.start()
        logger.info(f"✓ HealthServer listening on {self.settings.host}:{self.settings.port}")

    async def stop(self) -> None:
        """Gracefully shut down the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
        logger.info("✓ HealthServer stopped")

    # ------------------------------------------------------------------
    # ROUTE HANDLERS
    # ------------------------------------------------------------------

    async def _handle_root(self, request: web.Request) -> web.Response:
        """GET /: simple liveness probe."""
        self._request_count += 1
        return web.Response(text="OK", status=200)

    async def _handle_health(self, request: web.Request) -> web.Response:
        """GET /health: detailed health JSON."""
        self._request_count += 1
        return web.json_response(self.snapshot(), status=200)

    def snapshot(self) -> Dict[str, Any]:
        uptime_seconds = time.time() - self._start_time

        health: Dict[str, Any] = {
            "status": "healthy",
            "version": self.app_version,
            "uptime_seconds": round(uptime_seconds, 1),
            "uptime_human": _seconds_to_human(int(uptime_seconds)),
            "requests_served": self._request_count,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        if self.scheduler is not None:
            jobs = self.scheduler.get_job_stats()
            health["scheduler"] = {
                "running": self.scheduler.is_running,
                "monitors": len(jobs),
                "in_flight": len(self.scheduler.in_flight()),
                "errors": sum(job["error_count"] for job in jobs),
                "skipped_ticks": sum(job["skipped_ticks"] for job in jobs),
            }
            if not self.scheduler.is_running:
                health["status"] = "degraded"

        if self.dispatcher is not None:
            health["notifications"] = self.dispatcher.get_stats()

        return health


def _seconds_to_human(seconds: int) -> str:
    """Convert seconds to a human-readable string like '2h 30m 15s'."""
    if seconds <= 0:
        return "0s"

    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")
    return " ".join(parts)
