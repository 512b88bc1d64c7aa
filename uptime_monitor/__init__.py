"""
Uptime Monitor

Scheduling-and-checking engine for uptime monitoring: per-monitor timers,
protocol probes, status-transition classification and notification fan-out.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
