"""
============================================================================
UPTIME MONITOR - CHECK PIPELINE
============================================================================
What happens on every scheduler tick for one monitor:

MonitorChecker.run(monitor)
├── ProbeRegistry.probe()       ← never raises, reports up/down/unknown
├── store.latest_status()       ← previous status, None when no history
├── store.insert_check()        ← append; on failure the tick ends here
├── classify()                  ← event or None
├── dispatcher.submit()         ← non-blocking enqueue
└── state listener              ← fire-and-forget on status change

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Set

from uptime_monitor.config.constants import CheckStatus, Defaults
from uptime_monitor.exceptions import DatabaseException
from uptime_monitor.monitoring.classifier import classify
from uptime_monitor.monitoring.probes import ProbeRegistry
from uptime_monitor.monitoring.types import AlertRequest, Check, MonitorConfig
from uptime_monitor.utils.logger import get_logger

if TYPE_CHECKING:
    from uptime_monitor.database.store import MonitorStore
    from uptime_monitor.notifications.dispatcher import NotificationDispatcher


logger = get_logger("Checker")

StateListener = Callable[[MonitorConfig, Check, Optional[CheckStatus]], Awaitable[None]]


class MonitorChecker:
    """
    Runs the probe → persist → classify → dispatch pipeline for a monitor.

    Parameters
    ----------
    store : MonitorStore
        Check history and previous-status lookup.
    probes : ProbeRegistry
        Strategy table for the monitor's protocol kind.
    dispatcher : NotificationDispatcher | None
        Receives an AlertRequest whenever an event is classified.
    slow_threshold_ms : int
        Latency above which an up check is ``slow``; 0 disables.
    state_listener : async callable | None
        Called as ``listener(monitor, check, previous)`` when the status
        changed. Awaited in the background; its errors are only logged.
    """

    def __init__(
        self,
        store: "MonitorStore",
        probes: ProbeRegistry,
        dispatcher: Optional["NotificationDispatcher"] = None,
        slow_threshold_ms: int = Defaults.SLOW_RESPONSE_THRESHOLD_MS,
        state_listener: Optional[StateListener] = None,
    ):
        self.store = store
        self.probes = probes
        self.dispatcher = dispatcher
        self.slow_threshold_ms = slow_threshold_ms
        self.state_listener = state_listener
        self._listener_tasks: Set[asyncio.Task] = set()

    async def run(self, monitor: MonitorConfig) -> Optional[Check]:
        """
        Check a monitor once.

        Returns the stored check, or None when it could not be stored.
        """
        outcome = await self.probes.probe(monitor)
        check = Check.from_outcome(monitor.id, outcome)

        previous = await self._previous_status(monitor)

        try:
            check = await self.store.insert_check(check)
        except DatabaseException as e:
            logger.error(
                f"[Checker] Failed to save check for monitor {monitor.id}: {e.log_format()}"
            )
            return None

        logger.debug(
            f"[Checker] {monitor.name} ({monitor.type}) → {check.status.value} "
            f"in {check.response_time}ms"
        )

        event = classify(check.status, previous, check.response_time, self.slow_threshold_ms)
        if event is not None and self.dispatcher is not None:
            self.dispatcher.submit(
                AlertRequest(
                    monitor=monitor,
                    check=check,
                    event=event,
                    previous_status=previous,
                )
            )

        if check.status != (previous or CheckStatus.UNKNOWN):
            self._notify_state_change(monitor, check, previous)

        return check

    async def _previous_status(self, monitor: MonitorConfig) -> Optional[CheckStatus]:
        try:
            return await self.store.latest_status(monitor.id)
        except DatabaseException as e:
            logger.warning(
                f"[Checker] Could not read previous status for monitor {monitor.id}, "
                f"treating as no prior check: {e.log_format()}"
            )
            return None

    def _notify_state_change(
        self,
        monitor: MonitorConfig,
        check: Check,
        previous: Optional[CheckStatus],
    ) -> None:
        if self.state_listener is None:
            return

        task = asyncio.create_task(self._call_listener(monitor, check, previous))
        self._listener_tasks.add(task)
        task.add_done_callback(self._listener_tasks.discard)

    async def _call_listener(
        self,
        monitor: MonitorConfig,
        check: Check,
        previous: Optional[CheckStatus],
    ) -> None:
        try:
            await self.state_listener(monitor, check, previous)
        except Exception as e:
            logger.opt(exception=e).warning(
                f"[Checker] State listener failed for monitor {monitor.id}"
            )

    async def close(self) -> None:
        """Wait for in-flight state listener calls."""
        if self._listener_tasks:
            await asyncio.gather(*self._listener_tasks, return_exceptions=True)
