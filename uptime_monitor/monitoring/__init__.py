"""
============================================================================
UPTIME MONITOR - MONITORING PACKAGE
============================================================================
Runtime monitoring engine:
    • MonitorScheduler   : one fixed-rate timer per monitor
    • MonitorChecker     : probe → persist → classify → dispatch
    • ProbeRegistry      : HTTP/TCP/ping/DNS probe strategies
    • classify           : state transition → alert event
    • HealthServer       : aiohttp health endpoint

monitoring/
├── __init__.py          ← this file
├── types.py             ← MonitorConfig, Check, ChannelTarget, AlertRequest
├── probes.py            ← probe strategies and registry
├── classifier.py        ← classify()
├── checker.py           ← MonitorChecker
├── scheduler.py         ← MonitorScheduler + ScheduledJob
└── health.py            ← HealthServer
============================================================================
"""

from uptime_monitor.monitoring.types import (
    AlertRequest,
    ChannelTarget,
    Check,
    MonitorConfig,
    ProbeOutcome,
)
from uptime_monitor.monitoring.classifier import classify
from uptime_monitor.monitoring.probes import (
    DNSProbe,
    HTTPProbe,
    PingProbe,
    ProbeRegistry,
    ProbeStrategy,
    TCPProbe,
)
from uptime_monitor.monitoring.checker import MonitorChecker
from uptime_monitor.monitoring.scheduler import MonitorScheduler, ScheduledJob
from uptime_monitor.monitoring.health import HealthServer

__all__ = [
    # Types
    "AlertRequest",
    "ChannelTarget",
    "Check",
    "MonitorConfig",
    "ProbeOutcome",

    # Engine
    "classify",
    "MonitorChecker",
    "MonitorScheduler",
    "ScheduledJob",

    # Probes
    "ProbeStrategy",
    "ProbeRegistry",
    "HTTPProbe",
    "TCPProbe",
    "PingProbe",
    "DNSProbe",

    # Ops
    "HealthServer",
]
