"""
Event Classifier for Uptime Monitor

Maps two consecutive check states onto the alert event they imply.
"""

from __future__ import annotations

from typing import Optional

from uptime_monitor.config.constants import CheckStatus, NotificationEvent


def classify(
    current: CheckStatus,
    previous: Optional[CheckStatus],
    latency_ms: int,
    slow_threshold_ms: int,
) -> Optional[NotificationEvent]:
    """
    Derive the event for a new check, or None when nothing is worth
    announcing. ``previous`` is None when the monitor has no history and
    is then handled exactly like ``unknown``.

    Rules, first match wins:

    ========  =======  ===========================================  ========
    previous  current  condition                                    event
    ========  =======  ===========================================  ========
    down      up                                                    recovery
    up        down                                                  down
    unknown   up                                                    up
    unknown   down                                                  down
    any       up       threshold > 0 and latency > threshold        slow
    ========  =======  ===========================================  ========
    """
    current = CheckStatus(current)
    previous = CheckStatus(previous) if previous is not None else CheckStatus.UNKNOWN

    if previous == CheckStatus.DOWN and current == CheckStatus.UP:
        return NotificationEvent.RECOVERY
    if previous == CheckStatus.UP and current == CheckStatus.DOWN:
        return NotificationEvent.DOWN
    if previous == CheckStatus.UNKNOWN and current == CheckStatus.UP:
        return NotificationEvent.UP
    if previous == CheckStatus.UNKNOWN and current == CheckStatus.DOWN:
        return NotificationEvent.DOWN

    if current == CheckStatus.UP and 0 < slow_threshold_ms < latency_ms:
        return NotificationEvent.SLOW

    return None
