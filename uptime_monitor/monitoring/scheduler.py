"""
============================================================================
UPTIME MONITOR - MONITOR SCHEDULER
============================================================================
Keeps one timer task per monitor and launches a tick on every fire.

Timing
------
Timers run at a fixed rate on the event loop's monotonic clock. A job
installed at ``t0`` fires at ``t0 + interval``, ``t0 + 2*interval`` and so
on. If the loop was blocked past one or more fire times, those fires are
skipped and counted as missed; they are never run back to back.

Ticks
-----
Each fire runs the tick callable as its own task, so a slow monitor never
delays another. Ticks of the same monitor never overlap: a fire that
lands while the previous tick for that monitor id is still running is
skipped and counted. In-flight tracking is keyed by monitor id, so it
also holds across a job being replaced.

Registry
--------
The id → job map is only mutated under one asyncio.Lock. Installing a job
for an id that already has one cancels the old timer first.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional

from uptime_monitor.exceptions import (
    InvalidIntervalError,
    SchedulerStoppedError,
    UptimeMonitorException,
)
from uptime_monitor.monitoring.types import MonitorConfig
from uptime_monitor.utils.logger import get_logger

if TYPE_CHECKING:
    from uptime_monitor.database.store import MonitorStore


logger = get_logger("Scheduler")

TickRunner = Callable[[MonitorConfig], Awaitable[Any]]


# ============================================================================
# JOB DEFINITION
# ============================================================================

@dataclass
class ScheduledJob:
    """
    The live timer for one monitor.

    Attributes
    ----------
    monitor : MonitorConfig
        Snapshot the ticks run against.
    installed_at : float
        Loop time at installation; fire n is due at
        ``installed_at + n * interval``.
    task : asyncio.Task | None
        The timer task.
    run_count, error_count : int
        Completed and failed ticks.
    skipped_ticks : int
        Fires dropped because the previous tick was still running.
    missed_fires : int
        Fires dropped because the loop woke up too late for them.
    """

    monitor: MonitorConfig
    installed_at: float
    task: Optional[asyncio.Task] = None
    run_count: int = 0
    error_count: int = 0
    skipped_ticks: int = 0
    missed_fires: int = 0
    last_run: Optional[datetime] = None

    @property
    def interval(self) -> int:
        return self.monitor.interval

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monitor_id": self.monitor.id,
            "name": self.monitor.name,
            "type": self.monitor.type,
            "interval_seconds": self.interval,
            "run_count": self.run_count,
            "error_count": self.error_count,
            "skipped_ticks": self.skipped_ticks,
            "missed_fires": self.missed_fires,
            "last_run": self.last_run.isoformat() if self.last_run else None,
        }


# ============================================================================
# SCHEDULER
# ============================================================================

class MonitorScheduler:
    """
    Per-monitor timer registry.

    Usage
    -----
        scheduler = MonitorScheduler(store, checker.run)
        await scheduler.start()
        await scheduler.add_monitor(monitor)
        # ... later ...
        await scheduler.stop()
    """

    def __init__(self, store: "MonitorStore", runner: TickRunner):
        self.store = store
        self.runner = runner

        self._jobs: Dict[int, ScheduledJob] = {}
        self._lock = asyncio.Lock()
        self._in_flight: Dict[int, asyncio.Task] = {}

        self._running = False
        self._stopped = False

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """
        Install a job for every active monitor in the store.

        A monitor that cannot be installed is logged and skipped.
        """
        if self._running:
            logger.warning("Scheduler is already running")
            return

        self._stopped = False
        self._running = True

        monitors = await self.store.list_active_monitors()
        installed = 0
        for monitor in monitors:
            try:
                await self.add_monitor(monitor)
                installed += 1
            except UptimeMonitorException as e:
                logger.error(
                    f"[Scheduler] Failed to schedule monitor {monitor.id} "
                    f"({monitor.name}): {e.log_format()}"
                )

        logger.info(f"✓ Scheduler started — {installed}/{len(monitors)} monitors scheduled")

    async def stop(self) -> None:
        """Cancel every timer and every in-flight tick, and wait for them."""
        self._stopped = True
        self._running = False

        async with self._lock:
            timers = [job.task for job in self._jobs.values() if job.task is not None]
            self._jobs.clear()

        ticks = list(self._in_flight.values())

        for task in timers + ticks:
            task.cancel()
        if timers or ticks:
            await asyncio.gather(*timers, *ticks, return_exceptions=True)
        self._in_flight.clear()

        logger.info("✓ Scheduler stopped")

    # ------------------------------------------------------------------
    # REGISTRY
    # ------------------------------------------------------------------

    async def add_monitor(self, monitor: MonitorConfig) -> None:
        """
        Install or replace the job for ``monitor.id``.

        Raises
        ------
        InvalidIntervalError
            The interval is not positive; an existing job is left alone.
        SchedulerStoppedError
            The scheduler has been stopped.
        """
        if not isinstance(monitor.interval, (int, float)) or monitor.interval <= 0:
            raise InvalidIntervalError(monitor.interval, monitor_id=monitor.id)

        if self._stopped:
            raise SchedulerStoppedError(monitor_id=monitor.id)

        async with self._lock:
            old = self._jobs.pop(monitor.id, None)
            if old is not None:
                await self._cancel_timer(old)

            loop = asyncio.get_running_loop()
            job = ScheduledJob(monitor=monitor, installed_at=loop.time())
            job.task = asyncio.create_task(
                self._timer_loop(job),
                name=f"monitor-timer-{monitor.id}",
            )
            self._jobs[monitor.id] = job

        action = "Replaced" if old is not None else "Added"
        logger.info(
            f"[Scheduler] {action} monitor {monitor.id} ({monitor.name}) "
            f"every {monitor.interval}s"
        )

    async def remove_monitor(self, monitor_id: int) -> None:
        """Cancel and forget the job for ``monitor_id``; unknown ids are ignored."""
        async with self._lock:
            job = self._jobs.pop(monitor_id, None)
            if job is None:
                return
            await self._cancel_timer(job)

        logger.info(f"[Scheduler] Removed monitor {monitor_id}")

    def job_ids(self) -> List[int]:
        return sorted(self._jobs)

    def has_job(self, monitor_id: int) -> bool:
        return monitor_id in self._jobs

    def get_job(self, monitor_id: int) -> Optional[ScheduledJob]:
        return self._jobs.get(monitor_id)

    def in_flight(self) -> List[int]:
        """Monitor ids with a tick currently running."""
        return sorted(mid for mid, task in self._in_flight.items() if not task.done())

    # ------------------------------------------------------------------
    # TIMERS
    # ------------------------------------------------------------------

    @staticmethod
    async def _cancel_timer(job: ScheduledJob) -> None:
        if job.task is None:
            return
        job.task.cancel()
        await asyncio.gather(job.task, return_exceptions=True)

    async def _timer_loop(self, job: ScheduledJob) -> None:
        loop = asyncio.get_running_loop()
        interval = job.interval
        n = 1

        while True:
            due = job.installed_at + n * interval
            delay = due - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)

            late_by = loop.time() - due
            if late_by >= interval:
                missed = int(late_by // interval)
                job.missed_fires += missed
                n += missed
                logger.debug(
                    f"[Scheduler] Monitor {job.monitor.id} skipped {missed} missed fire(s)"
                )

            self._fire(job)
            n += 1

    def _fire(self, job: ScheduledJob) -> None:
        monitor_id = job.monitor.id

        running = self._in_flight.get(monitor_id)
        if running is not None and not running.done():
            job.skipped_ticks += 1
            logger.debug(
                f"[Scheduler] Monitor {monitor_id} still checking, tick skipped "
                f"(skipped={job.skipped_ticks})"
            )
            return

        task = asyncio.create_task(self._run_tick(job), name=f"monitor-tick-{monitor_id}")
        self._in_flight[monitor_id] = task
        task.add_done_callback(lambda t, mid=monitor_id: self._tick_done(mid, t))

    def _tick_done(self, monitor_id: int, task: asyncio.Task) -> None:
        if self._in_flight.get(monitor_id) is task:
            del self._in_flight[monitor_id]

    async def _run_tick(self, job: ScheduledJob) -> None:
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        try:
            await self.runner(job.monitor)
        except Exception as e:
            job.error_count += 1
            logger.opt(exception=e).error(
                f"[Scheduler] Tick for monitor {job.monitor.id} FAILED after "
                f"{loop.time() - start_time:.2f}s"
            )
            return

        job.run_count += 1
        job.last_run = datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # DIAGNOSTICS
    # ------------------------------------------------------------------

    def get_job_stats(self) -> List[Dict[str, Any]]:
        """Return status of all scheduled jobs."""
        return [self._jobs[mid].to_dict() for mid in self.job_ids()]
