"""
============================================================================
UPTIME MONITOR - NOTIFICATION DISPATCHER
============================================================================
Turns classified events into messages and fans them out to every
subscribed destination.

Design
------
The check pipeline calls ``submit()``, which is non-blocking: it pushes an
AlertRequest onto a bounded asyncio.Queue and returns. A fixed pool of
worker tasks pulls requests off the queue and runs ``deliver()`` for each.

Delivery resolves the channels bound to the monitor, keeps the enabled
ones whose effective subscription contains the event, renders one message
and sends it to each channel concurrently. Sends are bounded by a shared
semaphore and each one by a timeout, so a stalled destination holds at
most one slot for at most ``send_timeout`` seconds.

Fan-out is best effort: a failing destination is logged and recorded in
the DispatchReport, its siblings still receive the message, and nothing
is retried.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from uptime_monitor.config.settings import NotificationSettings
from uptime_monitor.exceptions import (
    InvalidEventListError,
    NotificationSendError,
    NotificationTimeoutError,
    QueueFullError,
    UptimeMonitorException,
)
from uptime_monitor.monitoring.types import AlertRequest, ChannelTarget
from uptime_monitor.notifications.destinations import DestinationSender, default_sender
from uptime_monitor.notifications.templates import build_message
from uptime_monitor.utils.logger import get_logger

if TYPE_CHECKING:
    from uptime_monitor.database.store import MonitorStore


logger = get_logger("Dispatcher")


# ============================================================================
# DISPATCH REPORT
# ============================================================================

@dataclass
class DispatchReport:
    """
    Outcome of delivering one AlertRequest.

    ``failed`` maps channel id to the error text for that channel.
    """

    monitor_id: int
    event: str
    delivered: List[int] = field(default_factory=list)
    failed: Dict[int, str] = field(default_factory=dict)
    skipped: List[int] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monitor_id": self.monitor_id,
            "event": self.event,
            "delivered": list(self.delivered),
            "failed": dict(self.failed),
            "skipped": list(self.skipped),
        }


# ============================================================================
# NOTIFICATION DISPATCHER
# ============================================================================

class NotificationDispatcher:
    """
    Bounded worker pool delivering alerts to notification channels.

    Parameters
    ----------
    store : MonitorStore
        Source of the channels bound to a monitor.
    sender : DestinationSender | None
        Backend that actually sends; the apprise sender when omitted.
    settings : NotificationSettings | None
        Pool sizing and timeouts.
    """

    def __init__(
        self,
        store: "MonitorStore",
        sender: Optional[DestinationSender] = None,
        settings: Optional[NotificationSettings] = None,
    ):
        self.store = store
        self.sender = sender or default_sender()
        self.settings = settings or NotificationSettings()

        self._queue: asyncio.Queue[AlertRequest] = asyncio.Queue(
            maxsize=self.settings.queue_size
        )
        self._send_semaphore = asyncio.Semaphore(self.settings.max_concurrent_sends)

        self._running = False
        self._workers: List[asyncio.Task] = []

        self._stats: Dict[str, int] = {
            "submitted": 0,
            "dropped": 0,
            "delivered": 0,
            "failed": 0,
            "discarded": 0,
        }

        logger.info(
            f"NotificationDispatcher created — workers={self.settings.workers}, "
            f"queue_size={self.settings.queue_size}, "
            f"send_timeout={self.settings.send_timeout}s"
        )

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Launch the worker tasks."""
        if self._running:
            logger.warning("NotificationDispatcher is already running")
            return

        self._running = True
        self._workers = [
            asyncio.create_task(self._worker_loop(i), name=f"notify-worker-{i}")
            for i in range(self.settings.workers)
        ]
        logger.info(f"✓ NotificationDispatcher started — {len(self._workers)} workers")

    async def stop(self) -> None:
        """Cancel the workers and discard anything still queued."""
        self._running = False

        for task in self._workers:
            task.cancel()
        for task in self._workers:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._workers = []

        discarded = 0
        while not self._queue.empty():
            try:
                request = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
            discarded += 1
            logger.debug(
                f"[Dispatcher] Discarding undelivered {request.event.value} alert "
                f"for monitor {request.monitor.id}"
            )
        if discarded:
            self._stats["discarded"] += discarded
            logger.warning(f"[Dispatcher] Discarded {discarded} undelivered alerts on shutdown")

        logger.info("✓ NotificationDispatcher stopped")

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    def submit(self, request: AlertRequest) -> bool:
        """
        Non-blocking enqueue of an alert.

        Returns
        -------
        bool
            True if the alert was enqueued, False if it was dropped.
        """
        try:
            self._enqueue(request)
        except QueueFullError as e:
            self._stats["dropped"] += 1
            logger.warning(
                f"[Dispatcher] Dropping {request.event.value} alert for "
                f"monitor {request.monitor.id}: {e.log_format()}"
            )
            return False

        self._stats["submitted"] += 1
        logger.debug(
            f"[Dispatcher] Enqueued {request.event.value} alert for "
            f"monitor={request.monitor.id}, queue_size={self._queue.qsize()}"
        )
        return True

    def _enqueue(self, request: AlertRequest) -> None:
        try:
            self._queue.put_nowait(request)
        except asyncio.QueueFull as e:
            raise QueueFullError(self._queue.maxsize, cause=e) from e

    async def deliver(self, request: AlertRequest) -> DispatchReport:
        """
        Send one alert to every subscribed channel of its monitor.

        Per-channel failures are recorded in the report, never raised.
        """
        monitor = request.monitor
        event = request.event
        report = DispatchReport(monitor_id=monitor.id, event=event.value)

        channels = await self.store.channels_bound_to(monitor.id, enabled_only=True)
        targets = [c for c in channels if self._is_subscribed(c, request, report)]

        if not targets:
            logger.debug(
                f"[Dispatcher] No notification channels for monitor {monitor.id} "
                f"and event {event.value}"
            )
            return report

        message = build_message(monitor, request.check, event, request.previous_status)

        results = await asyncio.gather(
            *(self._send_to_channel(channel, message) for channel in targets)
        )

        for channel, error in zip(targets, results):
            if error is None:
                report.delivered.append(channel.id)
                logger.info(
                    f"[Dispatcher] Notification sent to channel {channel.name} "
                    f"for monitor {monitor.name} ({event.value})"
                )
            else:
                report.failed[channel.id] = error.message
                logger.warning(
                    f"[Dispatcher] Failed to send notification to channel "
                    f"{channel.name}: {error.log_format()}"
                )

        self._stats["delivered"] += len(report.delivered)
        self._stats["failed"] += len(report.failed)
        return report

    async def send_test(self, url: str) -> None:
        """
        Validate a destination URL and send the fixed test message to it.

        Raises
        ------
        InvalidDestinationURLError
            The URL is malformed or names an unsupported service.
        NotificationSendError, NotificationTimeoutError
            The destination did not accept the message in time.
        """
        self.sender.validate(url)
        error = await self._send(url, self.settings.test_message)
        if error is not None:
            raise error
        logger.info("[Dispatcher] Test notification delivered")

    async def join(self) -> None:
        """Wait until every alert queued so far has been processed."""
        await self._queue.join()

    def get_stats(self) -> Dict[str, Any]:
        return {
            "running": self._running,
            "workers": len(self._workers),
            "queue_size": self._queue.qsize(),
            "queue_maxsize": self._queue.maxsize,
            **self._stats,
        }

    # ------------------------------------------------------------------
    # INTERNALS
    # ------------------------------------------------------------------

    @staticmethod
    def _is_subscribed(
        channel: ChannelTarget,
        request: AlertRequest,
        report: DispatchReport,
    ) -> bool:
        try:
            subscribed = channel.subscribes_to(request.event)
        except InvalidEventListError as e:
            logger.warning(
                f"[Dispatcher] Failed to parse events for channel {channel.name}: "
                f"{e.log_format()}"
            )
            subscribed = False

        if not subscribed:
            report.skipped.append(channel.id)
        return subscribed

    async def _send_to_channel(
        self,
        channel: ChannelTarget,
        message: str,
    ) -> Optional[UptimeMonitorException]:
        error = await self._send(channel.destination_url, message)
        if error is not None:
            error.details.setdefault("channel", channel.name)
        return error

    async def _send(self, url: str, message: str) -> Optional[UptimeMonitorException]:
        """Send under the semaphore and timeout; return the error instead of raising."""
        timeout = self.settings.send_timeout
        async with self._send_semaphore:
            try:
                await asyncio.wait_for(self.sender.send(url, message), timeout=timeout)
            except asyncio.TimeoutError as e:
                return NotificationTimeoutError(timeout, cause=e)
            except UptimeMonitorException as e:
                return e
            except Exception as e:
                return NotificationSendError.from_exception(e)
        return None

    async def _worker_loop(self, worker_id: int) -> None:
        """
        Pull alerts off the queue and deliver them until cancelled.
        """
        logger.debug(f"[Dispatcher] Worker {worker_id} started")

        while self._running:
            try:
                request = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            try:
                await self.deliver(request)
            except Exception as e:
                logger.opt(exception=e).error(
                    f"[Dispatcher] Worker {worker_id} failed delivering "
                    f"{request.event.value} alert for monitor {request.monitor.id}"
                )
            finally:
                self._queue.task_done()

        logger.debug(f"[Dispatcher] Worker {worker_id} exited")
