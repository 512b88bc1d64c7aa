"""
============================================================================
UPTIME MONITOR - PROBE STRATEGIES
============================================================================
One strategy per protocol kind, looked up in a registry keyed by the
monitor's ``type`` column.

ProbeRegistry
├── HTTPProbe   ← GET via httpx, 2xx/3xx is up
├── TCPProbe    ← asyncio connect to host:port
├── PingProbe   ← unprivileged ICMP echo via icmplib
└── DNSProbe    ← A-record resolution via dnspython

Probes never raise for target failures; they report ``down`` with a
message. A kind with no registered strategy reports ``unknown``.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import dns.asyncresolver
import dns.exception
import dns.resolver
import httpx
import icmplib

from uptime_monitor.config.constants import CheckStatus, Defaults, ProtocolKind
from uptime_monitor.config.settings import MonitoringSettings
from uptime_monitor.monitoring.types import MonitorConfig, ProbeOutcome
from uptime_monitor.utils.logger import get_logger


logger = get_logger("Probes")


def _error_text(exc: BaseException) -> str:
    """Exception text, falling back to the class name when it is empty."""
    return str(exc) or type(exc).__name__


# ============================================================================
# STRATEGY INTERFACE
# ============================================================================

class ProbeStrategy(ABC):
    """
    Probe one target with a timeout in seconds.

    Strategies may leave ``latency_ms`` unset; the registry then records
    the wall-clock duration of the call.
    """

    @abstractmethod
    async def probe(self, target: str, timeout: float) -> ProbeOutcome:
        ...


# ============================================================================
# HTTP PROBE
# ============================================================================

class HTTPProbe(ProbeStrategy):
    """
    GET the target and judge it by status code.

    Codes in [200, 400) are up. One client per check, no retries.
    """

    def __init__(
        self,
        user_agent: str = Defaults.USER_AGENT,
        follow_redirects: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agent = user_agent
        self.follow_redirects = follow_redirects
        self._transport = transport

    async def probe(self, target: str, timeout: float) -> ProbeOutcome:
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(timeout),
                follow_redirects=self.follow_redirects,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            ) as client:
                # per-phase httpx timeouts do not cap a slowly trickled body
                response = await asyncio.wait_for(client.get(target), timeout)
        except asyncio.TimeoutError:
            logger.debug(f"[HTTP] {target} → no complete response within {timeout}s")
            return ProbeOutcome.down(f"Request timed out after {timeout:g}s")
        except httpx.HTTPError as e:
            logger.debug(f"[HTTP] {target} → {type(e).__name__}: {e}")
            return ProbeOutcome.down(_error_text(e))

        code = response.status_code
        if 200 <= code < 400:
            return ProbeOutcome.up(Defaults.HTTP_OK_MESSAGE, status_code=code)

        logger.debug(f"[HTTP] {target} → {code}")
        return ProbeOutcome.down(f"HTTP {code}", status_code=code)


# ============================================================================
# TCP PROBE
# ============================================================================

class TCPProbe(ProbeStrategy):
    """
    Open a TCP connection to host:port and close it straight away.

    Accepts ``tcp://host:port`` or a bare ``host:port``.
    """

    @staticmethod
    def parse_address(target: str) -> str:
        """Return the host:port part of a TCP target, possibly empty."""
        target = target.strip()
        if target.lower().startswith("tcp://"):
            return urlsplit(target).netloc
        return target

    @staticmethod
    def _split_host_port(address: str) -> Tuple[str, int]:
        host, _, port = address.rpartition(":")
        return host.strip("[]"), int(port)

    async def probe(self, target: str, timeout: float) -> ProbeOutcome:
        address = self.parse_address(target)

        if not address:
            return ProbeOutcome.down("no host:port specified")

        if ":" not in address:
            return ProbeOutcome.down(
                f"TCP check requires host:port format, got: {address}"
            )

        try:
            host, port = self._split_host_port(address)
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return ProbeOutcome.down(
                f"TCP connection failed to {address}: timed out after {timeout}s"
            )
        except (OSError, ValueError) as e:
            return ProbeOutcome.down(f"TCP connection failed to {address}: {_error_text(e)}")

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"[TCP] {address} close error ignored: {e}")

        return ProbeOutcome.up(f"TCP connection successful to {address}")


# ============================================================================
# PING PROBE
# ============================================================================

class PingProbe(ProbeStrategy):
    """
    Send unprivileged ICMP echo requests and report the average RTT.

    Accepts ``ping://host`` or a bare host. The whole probe is bounded by
    ``timeout * count + interval * (count - 1)`` seconds.
    """

    def __init__(self, count: int = Defaults.PING_COUNT, interval: float = Defaults.PING_INTERVAL):
        self.count = count
        self.interval = interval

    @staticmethod
    def parse_host(target: str) -> str:
        target = target.strip()
        if "://" in target:
            parts = urlsplit(target)
            return parts.hostname or parts.path.strip("/")
        return target

    def total_budget(self, timeout: float) -> float:
        return timeout * self.count + self.interval * (self.count - 1)

    async def probe(self, target: str, timeout: float) -> ProbeOutcome:
        host = self.parse_host(target)
        if not host:
            return ProbeOutcome.down("no host specified")

        try:
            result = await asyncio.wait_for(
                icmplib.async_ping(
                    host,
                    count=self.count,
                    interval=self.interval,
                    timeout=timeout,
                    privileged=False,
                ),
                timeout=self.total_budget(timeout),
            )
        except asyncio.TimeoutError:
            return ProbeOutcome.down(Defaults.NO_PACKETS_MESSAGE)
        except icmplib.ICMPLibError as e:
            return ProbeOutcome.down(_error_text(e))

        if result.packets_received == 0:
            return ProbeOutcome.down(Defaults.NO_PACKETS_MESSAGE)

        avg_rtt = result.avg_rtt
        return ProbeOutcome.up(
            f"Ping successful, avg RTT: {avg_rtt:.3f}ms",
            latency_ms=int(round(avg_rtt)),
        )


# ============================================================================
# DNS PROBE
# ============================================================================

class DNSProbe(ProbeStrategy):
    """
    Resolve an A record for the target host.

    Accepts ``dns://host`` or a bare host; the timeout is the resolver
    lifetime.
    """

    @staticmethod
    def parse_domain(target: str) -> str:
        target = target.strip()
        if "://" in target:
            parts = urlsplit(target)
            return parts.hostname or parts.path.strip("/")
        return target.split("/")[0].split(":")[0]

    async def probe(self, target: str, timeout: float) -> ProbeOutcome:
        domain = self.parse_domain(target)
        if not domain:
            return ProbeOutcome.down("no domain specified")

        resolver = dns.asyncresolver.Resolver()
        resolver.lifetime = timeout

        try:
            answers = await resolver.resolve(domain, "A")
        except dns.resolver.NXDOMAIN:
            return ProbeOutcome.down(f"Domain {domain} does not exist (NXDOMAIN)")
        except dns.resolver.NoAnswer:
            return ProbeOutcome.down(f"No A record for {domain}")
        except dns.exception.Timeout:
            return ProbeOutcome.down(f"DNS resolution for {domain} timed out")
        except dns.exception.DNSException as e:
            return ProbeOutcome.down(f"DNS resolution for {domain} failed: {_error_text(e)}")

        addresses = ", ".join(str(rdata) for rdata in answers)
        return ProbeOutcome.up(f"Resolved {domain} to {addresses}")


# ============================================================================
# PROBE REGISTRY
# ============================================================================

class ProbeRegistry:
    """
    Strategy table keyed by protocol kind.
    """

    def __init__(self, strategies: Optional[Dict[str, ProbeStrategy]] = None):
        self._strategies: Dict[str, ProbeStrategy] = {}
        for kind, strategy in (strategies or {}).items():
            self.register(kind, strategy)

    @classmethod
    def default(cls, settings: Optional[MonitoringSettings] = None) -> "ProbeRegistry":
        """Registry with the built-in strategies configured from settings."""
        settings = settings or MonitoringSettings()
        http = HTTPProbe(
            user_agent=settings.user_agent,
            follow_redirects=settings.follow_redirects,
        )
        return cls({
            ProtocolKind.HTTP.value: http,
            ProtocolKind.HTTPS.value: http,
            ProtocolKind.TCP.value: TCPProbe(),
            ProtocolKind.PING.value: PingProbe(
                count=settings.ping_count,
                interval=settings.ping_interval,
            ),
            ProtocolKind.DNS.value: DNSProbe(),
        })

    def register(self, kind: str, strategy: ProbeStrategy) -> None:
        self._strategies[kind.lower()] = strategy

    def get(self, kind: str) -> Optional[ProbeStrategy]:
        return self._strategies.get((kind or "").lower())

    def kinds(self) -> List[str]:
        return sorted(self._strategies)

    async def probe(self, monitor: MonitorConfig) -> ProbeOutcome:
        """
        Probe a monitor's target with its own timeout.

        Never raises except on cancellation.
        """
        strategy = self.get(monitor.type)
        if strategy is None:
            return ProbeOutcome(
                CheckStatus.UNKNOWN,
                latency_ms=0,
                message=Defaults.UNKNOWN_PROTOCOL_MESSAGE,
            )

        start_time = time.perf_counter()
        try:
            outcome = await strategy.probe(monitor.url, monitor.timeout)
        except Exception as e:
            logger.opt(exception=e).warning(
                f"[Probes] {monitor.type} probe for monitor {monitor.id} raised"
            )
            outcome = ProbeOutcome.down(_error_text(e))

        if outcome.latency_ms is None:
            outcome.latency_ms = int((time.perf_counter() - start_time) * 1000)

        return outcome
