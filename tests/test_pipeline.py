"""
Tests for the probe → persist → classify → dispatch pipeline.
"""

import asyncio

import httpx
import respx

from uptime_monitor.config.constants import CheckStatus, NotificationEvent
from uptime_monitor.config.settings import MonitoringSettings
from uptime_monitor.database.repositories import ChannelRepository, MonitorRepository
from uptime_monitor.database.store import SQLStore
from uptime_monitor.monitoring.checker import MonitorChecker
from uptime_monitor.monitoring.probes import ProbeRegistry
from uptime_monitor.monitoring.scheduler import MonitorScheduler
from uptime_monitor.monitoring.types import ProbeOutcome
from uptime_monitor.notifications.dispatcher import NotificationDispatcher

from conftest import make_channel, make_monitor


class RecordingDispatcher:
    def __init__(self):
        self.requests = []

    def submit(self, request):
        self.requests.append(request)
        return True

    @property
    def events(self):
        return [r.event for r in self.requests]


def down(message="connection refused"):
    return ProbeOutcome.down(message, latency_ms=5)


def up(latency_ms=50):
    return ProbeOutcome.up("OK", latency_ms=latency_ms, status_code=200)


# ============================================================================
# SCENARIOS
# ============================================================================

async def test_first_failure_notifies_subscribed_channel(
    store, sender, notify_settings, scripted_registry
):
    registry, _ = scripted_registry(down("HTTP 502"))
    monitor = make_monitor(1, name="Checkout API", type="scripted")
    store.channels[1] = [make_channel(1, events='["down"]')]

    dispatcher = NotificationDispatcher(store, sender=sender, settings=notify_settings)
    checker = MonitorChecker(store, registry, dispatcher=dispatcher)

    await dispatcher.start()
    try:
        check = await checker.run(monitor)
        await asyncio.wait_for(dispatcher.join(), timeout=2)
    finally:
        await dispatcher.stop()

    assert check.status == CheckStatus.DOWN
    messages = sender.messages_to(make_channel(1).destination_url)
    assert len(messages) == 1
    assert "Checkout API" in messages[0]
    assert "Status: down" in messages[0].splitlines()


async def test_down_then_up_is_recovery(store, scripted_registry):
    registry, _ = scripted_registry(down(), up())
    dispatcher = RecordingDispatcher()
    checker = MonitorChecker(store, registry, dispatcher=dispatcher)
    monitor = make_monitor(1, type="scripted")

    await checker.run(monitor)
    await checker.run(monitor)

    assert dispatcher.events == [NotificationEvent.DOWN, NotificationEvent.RECOVERY]
    assert dispatcher.requests[1].previous_status == CheckStatus.DOWN


async def test_slow_response_on_steady_up(store, scripted_registry):
    registry, _ = scripted_registry(up(6000))
    dispatcher = RecordingDispatcher()
    checker = MonitorChecker(store, registry, dispatcher=dispatcher, slow_threshold_ms=5000)
    monitor = make_monitor(1, type="scripted")

    await checker.run(monitor)
    await checker.run(monitor)

    assert dispatcher.events == [NotificationEvent.UP, NotificationEvent.SLOW]


async def test_zero_threshold_disables_slow(store, scripted_registry):
    registry, _ = scripted_registry(up(6000))
    dispatcher = RecordingDispatcher()
    checker = MonitorChecker(store, registry, dispatcher=dispatcher, slow_threshold_ms=0)
    monitor = make_monitor(1, type="scripted")

    await checker.run(monitor)
    await checker.run(monitor)

    assert dispatcher.events == [NotificationEvent.UP]


@respx.mock
async def test_http_503_is_stored_as_down(store):
    respx.get("https://shop.example.com/health").mock(return_value=httpx.Response(503))
    checker = MonitorChecker(store, ProbeRegistry.default(MonitoringSettings()))

    check = await checker.run(make_monitor(1, url="https://shop.example.com/health"))

    assert store.checks == [check]
    assert check.status == CheckStatus.DOWN
    assert check.message == "HTTP 503"
    assert check.status_code == 503


# ============================================================================
# FAILURE PATHS
# ============================================================================

async def test_unknown_kind_is_stored_without_event(store):
    dispatcher = RecordingDispatcher()
    checker = MonitorChecker(store, ProbeRegistry(), dispatcher=dispatcher)

    check = await checker.run(make_monitor(1, type="gopher"))

    assert check.status == CheckStatus.UNKNOWN
    assert check.message == "Unknown monitor type"
    assert dispatcher.requests == []


async def test_insert_failure_drops_observation(store, scripted_registry):
    registry, _ = scripted_registry(down())
    dispatcher = RecordingDispatcher()
    checker = MonitorChecker(store, registry, dispatcher=dispatcher)
    store.fail_insert = True

    result = await checker.run(make_monitor(1, type="scripted"))

    assert result is None
    assert store.checks == []
    assert dispatcher.requests == []


async def test_previous_read_failure_counts_as_no_history(store, scripted_registry):
    registry, _ = scripted_registry(up())
    dispatcher = RecordingDispatcher()
    checker = MonitorChecker(store, registry, dispatcher=dispatcher)
    store.fail_latest = True

    check = await checker.run(make_monitor(1, type="scripted"))

    assert check.id == 1
    assert dispatcher.events == [NotificationEvent.UP]
    assert dispatcher.requests[0].previous_status is None


# ============================================================================
# STATE LISTENER
# ============================================================================

async def test_listener_called_on_change_only(store, scripted_registry):
    registry, _ = scripted_registry(down(), down(), up())
    seen = []

    async def listener(monitor, check, previous):
        seen.append((previous, check.status))

    checker = MonitorChecker(store, registry, state_listener=listener)
    monitor = make_monitor(1, type="scripted")

    for _ in range(3):
        await checker.run(monitor)
    await checker.close()

    assert seen == [(None, CheckStatus.DOWN), (CheckStatus.DOWN, CheckStatus.UP)]


async def test_listener_failure_does_not_reach_tick(store, scripted_registry):
    registry, _ = scripted_registry(down())

    async def listener(monitor, check, previous):
        raise RuntimeError("viewer gone")

    checker = MonitorChecker(store, registry, state_listener=listener)

    check = await checker.run(make_monitor(1, type="scripted"))
    await checker.close()

    assert check.status == CheckStatus.DOWN


# ============================================================================
# END TO END
# ============================================================================

async def test_scheduled_monitor_alerts_bound_channel(db, sender, notify_settings, scripted_registry):
    registry, probe = scripted_registry(down("HTTP 500"))
    monitor_row = await MonitorRepository(db).create_monitor(
        "Billing", "https://billing.example.com", type="scripted", interval=1
    )
    channels = ChannelRepository(db, sender=sender)
    ops = await channels.create_channel("ops", "json://ops.example.com/hook")
    await channels.bind(monitor_row.id, ops.id)

    store = SQLStore(db)
    dispatcher = NotificationDispatcher(store, sender=sender, settings=notify_settings)
    checker = MonitorChecker(store, registry, dispatcher=dispatcher)
    scheduler = MonitorScheduler(store, checker.run)

    await dispatcher.start()
    await scheduler.start()
    try:
        for _ in range(40):
            if probe.calls >= 2:
                break
            await asyncio.sleep(0.1)
        await asyncio.wait_for(dispatcher.join(), timeout=2)
    finally:
        await scheduler.stop()
        await checker.close()
        await dispatcher.stop()

    assert probe.calls >= 2
    messages = sender.messages_to("json://ops.example.com/hook")
    assert len(messages) == 1
    assert messages[0].startswith("🔴 Monitor DOWN: Billing")
    assert await store.latest_status(monitor_row.id) == CheckStatus.DOWN
