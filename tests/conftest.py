"""
Shared fixtures: a temporary SQLite database, an in-memory MonitorStore
and a recording DestinationSender.
"""

import asyncio
from typing import Dict, List, Optional

import pytest

from uptime_monitor.config.constants import CheckStatus
from uptime_monitor.config.settings import DatabaseSettings, NotificationSettings
from uptime_monitor.database.manager import DatabaseManager
from uptime_monitor.exceptions import (
    DatabaseQueryError,
    InvalidDestinationURLError,
    NotificationSendError,
)
from uptime_monitor.monitoring.probes import ProbeRegistry, ProbeStrategy
from uptime_monitor.monitoring.types import ChannelTarget, Check, MonitorConfig, ProbeOutcome
from uptime_monitor.notifications.destinations import DestinationSender


# ============================================================================
# DATABASE
# ============================================================================

@pytest.fixture
async def db(tmp_path):
    manager = DatabaseManager(
        DatabaseSettings(),
        url=f"sqlite+aiosqlite:///{tmp_path / 'uptime_test.db'}",
    )
    await manager.initialize()
    yield manager
    await manager.close()


# ============================================================================
# FAKES
# ============================================================================

class FakeStore:
    """In-memory MonitorStore with switchable failures."""

    def __init__(self, monitors: Optional[List[MonitorConfig]] = None):
        self.monitors: List[MonitorConfig] = list(monitors or [])
        self.checks: List[Check] = []
        self.channels: Dict[int, List[ChannelTarget]] = {}
        self.fail_insert = False
        self.fail_latest = False

    async def list_active_monitors(self) -> List[MonitorConfig]:
        return [m for m in self.monitors if m.active]

    async def insert_check(self, check: Check) -> Check:
        if self.fail_insert:
            raise DatabaseQueryError("insert failed")
        check.id = len(self.checks) + 1
        self.checks.append(check)
        return check

    async def latest_status(self, monitor_id: int) -> Optional[CheckStatus]:
        if self.fail_latest:
            raise DatabaseQueryError("select failed")
        for check in reversed(self.checks):
            if check.monitor_id == monitor_id:
                return check.status
        return None

    async def channels_bound_to(
        self,
        monitor_id: int,
        enabled_only: bool = True,
    ) -> List[ChannelTarget]:
        channels = self.channels.get(monitor_id, [])
        if enabled_only:
            channels = [c for c in channels if c.enabled]
        return list(channels)


class FakeSender(DestinationSender):
    """
    Records every send. URLs starting with ``fail://`` raise, URLs starting
    with ``slow://`` never finish, and ``bad://`` or scheme-less URLs do not
    validate.
    """

    def __init__(self):
        self.sent: List[tuple] = []

    def validate(self, url: str) -> None:
        if not url or "://" not in url or url.startswith("bad://"):
            raise InvalidDestinationURLError("unsupported", url=url)

    async def send(self, url: str, message: str) -> None:
        if url.startswith("fail://"):
            raise NotificationSendError("provider rejected the message")
        if url.startswith("slow://"):
            await asyncio.sleep(3600)
        self.sent.append((url, message))

    def messages_to(self, url: str) -> List[str]:
        return [message for sent_url, message in self.sent if sent_url == url]


class ScriptedProbe(ProbeStrategy):
    """Returns queued outcomes in order, repeating the last one."""

    def __init__(self, *outcomes: ProbeOutcome):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def probe(self, target: str, timeout: float) -> ProbeOutcome:
        self.calls += 1
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        outcome = self.outcomes[0]
        return ProbeOutcome(
            outcome.status,
            latency_ms=outcome.latency_ms,
            status_code=outcome.status_code,
            message=outcome.message,
        )


def make_monitor(monitor_id: int = 1, **kwargs) -> MonitorConfig:
    values = {
        "id": monitor_id,
        "name": f"Monitor {monitor_id}",
        "url": f"https://service-{monitor_id}.example.com/health",
        "type": "http",
        "interval": 60,
        "timeout": 5,
    }
    values.update(kwargs)
    return MonitorConfig(**values)


def make_channel(channel_id: int = 1, **kwargs) -> ChannelTarget:
    values = {
        "id": channel_id,
        "name": f"channel-{channel_id}",
        "destination_url": f"json://hooks.example.com/{channel_id}",
    }
    values.update(kwargs)
    return ChannelTarget(**values)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def notify_settings():
    return NotificationSettings(workers=2, queue_size=10, send_timeout=0.2)


@pytest.fixture
def scripted_registry():
    def build(*outcomes: ProbeOutcome):
        probe = ScriptedProbe(*outcomes)
        return ProbeRegistry({"scripted": probe}), probe

    return build
