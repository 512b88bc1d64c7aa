"""
Tests for notification message rendering.
"""

from datetime import datetime, timezone

from uptime_monitor.config.constants import CheckStatus, NotificationEvent
from uptime_monitor.monitoring.types import Check
from uptime_monitor.notifications.templates import build_message

from conftest import make_monitor


CHECKED_AT = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_check(status, response_time=0, message=""):
    return Check(
        monitor_id=1,
        status=status,
        response_time=response_time,
        message=message,
        checked_at=CHECKED_AT,
    )


def test_down_message_lists_every_part():
    monitor = make_monitor(name="API", url="https://api.example.com/health")
    check = make_check(CheckStatus.DOWN, response_time=132, message="HTTP 503")

    body = build_message(monitor, check, NotificationEvent.DOWN, CheckStatus.UP)

    assert body.splitlines() == [
        "🔴 Monitor DOWN: API",
        "URL: https://api.example.com/health",
        "Status: up → down",
        "Response Time: 132ms",
        "Message: HTTP 503",
        "Checked: 2024-05-01 12:00:00 UTC",
    ]


def test_no_previous_status_shows_current_only():
    body = build_message(make_monitor(), make_check(CheckStatus.DOWN), NotificationEvent.DOWN)

    assert "Status: down" in body.splitlines()
    assert "→" not in body


def test_equal_statuses_show_current_only():
    check = make_check(CheckStatus.UP, response_time=6000)
    body = build_message(make_monitor(), check, NotificationEvent.SLOW, CheckStatus.UP)

    assert body.startswith("🐢 Slow Response: Monitor 1")
    assert "Status: up" in body.splitlines()


def test_zero_latency_and_empty_message_are_omitted():
    body = build_message(make_monitor(), make_check(CheckStatus.UP), NotificationEvent.UP)

    assert "Response Time" not in body
    assert "Message:" not in body


def test_recovery_header():
    body = build_message(
        make_monitor(name="Web"),
        make_check(CheckStatus.UP, response_time=40),
        NotificationEvent.RECOVERY,
        CheckStatus.DOWN,
    )

    assert body.splitlines()[0] == "🔄 Monitor Recovered: Web"
    assert "Status: down → up" in body


def test_naive_timestamp_is_rendered_as_utc():
    check = make_check(CheckStatus.UP)
    check.checked_at = datetime(2024, 5, 1, 8, 30, 0)

    body = build_message(make_monitor(), check, NotificationEvent.UP)

    assert body.splitlines()[-1] == "Checked: 2024-05-01 08:30:00 UTC"
