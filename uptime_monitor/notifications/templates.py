"""
Message Templates for Uptime Monitor

Renders the plain-text body sent to every destination for an event.
"""

from __future__ import annotations

from datetime import timezone
from typing import List, Optional

from uptime_monitor.config.constants import CheckStatus, MessageTemplates, NotificationEvent
from uptime_monitor.monitoring.types import Check, MonitorConfig


def build_message(
    monitor: MonitorConfig,
    check: Check,
    event: NotificationEvent,
    previous_status: Optional[CheckStatus] = None,
) -> str:
    """
    Render the notification body for one event.

    Example::

        🔴 Monitor DOWN: API
        URL: https://api.example.com/health
        Status: up → down
        Response Time: 132ms
        Message: HTTP 503
        Checked: 2024-05-01 12:00:00 UTC
    """
    emoji, title = MessageTemplates.header_for(event)

    lines: List[str] = [
        f"{emoji} {title}: {monitor.name}",
        f"URL: {monitor.url}",
    ]

    current = CheckStatus(check.status).value
    if previous_status is not None and CheckStatus(previous_status).value != current:
        lines.append(f"Status: {CheckStatus(previous_status).value} → {current}")
    else:
        lines.append(f"Status: {current}")

    if check.response_time > 0:
        lines.append(f"Response Time: {check.response_time}ms")

    if check.message:
        lines.append(f"Message: {check.message}")

    checked_at = check.checked_at
    if checked_at.tzinfo is None:
        checked_at = checked_at.replace(tzinfo=timezone.utc)
    lines.append(f"Checked: {checked_at.strftime(MessageTemplates.CHECKED_AT_FORMAT)}")

    return "\n".join(lines)
