"""
Tests for the SQL-backed monitor store and the repositories, on a
temporary SQLite database.
"""

from datetime import datetime, timedelta, timezone

import pytest

from uptime_monitor.config.constants import CheckStatus
from uptime_monitor.database.repositories import (
    ChannelRepository,
    CheckRepository,
    MonitorRepository,
    encode_events,
)
from uptime_monitor.database.store import SQLStore
from uptime_monitor.exceptions import (
    DatabaseNotFoundError,
    InvalidDestinationURLError,
    InvalidEventListError,
    InvalidIntervalError,
)
from uptime_monitor.monitoring.types import Check

from conftest import FakeSender


BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def sql_store(db):
    return SQLStore(db)


@pytest.fixture
def monitors(db):
    return MonitorRepository(db)


@pytest.fixture
def channels(db):
    return ChannelRepository(db, sender=FakeSender())


# ============================================================================
# EVENT LIST ENCODING
# ============================================================================

class TestEncodeEvents:

    def test_none_and_empty_mean_default(self):
        assert encode_events(None) is None
        assert encode_events([]) is None

    def test_legacy_names_are_normalized(self):
        assert encode_events(["monitor_down", "response_slow", "down"]) == '["down", "slow"]'

    def test_unknown_name_rejected(self):
        with pytest.raises(InvalidEventListError):
            encode_events(["down", "exploded"])

    def test_bare_string_rejected(self):
        with pytest.raises(InvalidEventListError):
            encode_events("down")


# ============================================================================
# MONITOR STORE
# ============================================================================

class TestSQLStore:

    async def test_list_active_monitors(self, sql_store, monitors):
        first = await monitors.create_monitor("API", "https://api.example.com", interval=30)
        paused = await monitors.create_monitor("Old", "https://old.example.com", active=False)
        await monitors.create_monitor("DB", "tcp://db.internal:5432", type="TCP")

        active = await sql_store.list_active_monitors()

        assert [m.name for m in active] == ["API", "DB"]
        assert active[0].id == first.id
        assert active[0].interval == 30
        assert active[1].type == "tcp"
        assert paused.id not in {m.id for m in active}

    async def test_latest_status_none_without_history(self, sql_store, monitors):
        monitor = await monitors.create_monitor("API", "https://api.example.com")

        assert await sql_store.latest_status(monitor.id) is None

    async def test_latest_status_orders_by_checked_at(self, sql_store, monitors):
        monitor = await monitors.create_monitor("API", "https://api.example.com")

        await sql_store.insert_check(
            Check(monitor.id, CheckStatus.DOWN, checked_at=BASE_TIME + timedelta(minutes=2))
        )
        await sql_store.insert_check(
            Check(monitor.id, CheckStatus.UP, checked_at=BASE_TIME)
        )

        assert await sql_store.latest_status(monitor.id) == CheckStatus.DOWN

    async def test_latest_status_tie_goes_to_later_insert(self, sql_store, monitors):
        monitor = await monitors.create_monitor("API", "https://api.example.com")

        await sql_store.insert_check(Check(monitor.id, CheckStatus.UP, checked_at=BASE_TIME))
        await sql_store.insert_check(Check(monitor.id, CheckStatus.DOWN, checked_at=BASE_TIME))

        assert await sql_store.latest_status(monitor.id) == CheckStatus.DOWN

    async def test_insert_check_assigns_id(self, sql_store, monitors):
        monitor = await monitors.create_monitor("API", "https://api.example.com")

        check = await sql_store.insert_check(
            Check(monitor.id, CheckStatus.DOWN, response_time=15, status_code=503, message="HTTP 503")
        )

        assert check.id is not None
        recent = await CheckRepository(sql_store.db).get_recent(monitor.id)
        assert [(c.status, c.status_code, c.message) for c in recent] == [
            ("down", 503, "HTTP 503")
        ]

    async def test_channels_bound_to_carries_override(self, sql_store, monitors, channels):
        monitor = await monitors.create_monitor("API", "https://api.example.com")
        other = await monitors.create_monitor("Web", "https://www.example.com")
        ops = await channels.create_channel("ops", "json://ops.example.com/hook", events=["down"])
        dev = await channels.create_channel("dev", "json://dev.example.com/hook")
        off = await channels.create_channel("off", "json://off.example.com/hook", enabled=False)

        await channels.bind(monitor.id, ops.id, events=["slow"])
        await channels.bind(monitor.id, dev.id)
        await channels.bind(monitor.id, off.id)
        await channels.bind(other.id, dev.id)

        bound = await sql_store.channels_bound_to(monitor.id)

        assert [c.name for c in bound] == ["ops", "dev"]
        assert bound[0].events == '["down"]'
        assert bound[0].binding_events == '["slow"]'
        assert bound[1].events is None
        assert bound[1].binding_events is None

        everything = await sql_store.channels_bound_to(monitor.id, enabled_only=False)
        assert [c.name for c in everything] == ["ops", "dev", "off"]

    async def test_rebind_replaces_override(self, sql_store, monitors, channels):
        monitor = await monitors.create_monitor("API", "https://api.example.com")
        ops = await channels.create_channel("ops", "json://ops.example.com/hook")

        await channels.bind(monitor.id, ops.id, events=["slow"])
        await channels.bind(monitor.id, ops.id, events=["recovery"])

        bound = await sql_store.channels_bound_to(monitor.id)
        assert len(bound) == 1
        assert bound[0].binding_events == '["recovery"]'


# ============================================================================
# REPOSITORIES
# ============================================================================

class TestRepositories:

    async def test_create_monitor_uses_defaults(self, monitors):
        monitor = await monitors.create_monitor("API", "https://api.example.com")

        assert monitor.interval == 60
        assert monitor.timeout == 30
        assert monitor.max_retries == 3
        assert monitor.type == "http"

    async def test_create_monitor_rejects_bad_interval(self, monitors):
        with pytest.raises(InvalidIntervalError):
            await monitors.create_monitor("API", "https://api.example.com", interval=0)

    async def test_update_missing_monitor(self, monitors):
        with pytest.raises(DatabaseNotFoundError):
            await monitors.update_monitor(404, name="ghost")

    async def test_get_config_snapshot(self, monitors):
        created = await monitors.create_monitor("API", "https://api.example.com", timeout=5)
        await monitors.set_active(created.id, False)

        config = await monitors.get_config(created.id)

        assert config.timeout == 5
        assert config.active is False

    async def test_channel_with_invalid_url_is_not_stored(self, channels):
        with pytest.raises(InvalidDestinationURLError):
            await channels.create_channel("broken", "bad://nowhere")

        assert await channels.get_all() == []

    async def test_update_channel_validates_url(self, channels):
        channel = await channels.create_channel("ops", "json://ops.example.com/hook")

        with pytest.raises(InvalidDestinationURLError):
            await channels.update_channel(channel.id, destination_url="no-scheme")

        reloaded = await channels.get_by_id(channel.id)
        assert reloaded.destination_url == "json://ops.example.com/hook"

    async def test_update_channel_clears_events(self, channels):
        channel = await channels.create_channel("ops", "json://ops.example.com/hook", events=["slow"])

        updated = await channels.update_channel(channel.id, clear_events=True)

        assert updated.events is None

    async def test_unbind(self, monitors, channels):
        monitor = await monitors.create_monitor("API", "https://api.example.com")
        ops = await channels.create_channel("ops", "json://ops.example.com/hook")
        await channels.bind(monitor.id, ops.id)

        assert await channels.unbind(monitor.id, ops.id) is True
        assert await channels.unbind(monitor.id, ops.id) is False
        assert await channels.get_bound(monitor.id) == []

    async def test_deleting_monitor_cascades_to_checks(self, sql_store, monitors):
        monitor = await monitors.create_monitor("API", "https://api.example.com")
        await sql_store.insert_check(Check(monitor.id, CheckStatus.UP))

        assert await monitors.delete_by_id(monitor.id) is True

        assert await CheckRepository(sql_store.db).get_recent(monitor.id) == []

