"""
Reachability probes.

Provides prober classes that measure round-trip time to an address:
- ICMP echo (needs raw-socket privileges)
- TCP connect (unprivileged)

Probes against one address run one after another; a failed probe is
recorded as a failed sample and never stops the run.
"""

import asyncio
import ipaddress
import itertools
import logging
import random
import time
from abc import ABC, abstractmethod

from scapy.layers.inet import ICMP, IP
from scapy.layers.inet6 import ICMPv6EchoReply, ICMPv6EchoRequest, IPv6
from scapy.sendrecv import sr

from .models import ProbeMethod, ProbeSample


logger = logging.getLogger(__name__)

ICMP_PAYLOAD = bytes(56)

# Echo identifiers handed out to IcmpProber instances
_identifiers = itertools.count(random.randint(0, 0xFFFF))


class ProbeFailed(Exception):
    """Raised by a single probe that got no usable reply."""


class BaseProber(ABC):
    """Base class for reachability probers."""

    method: ProbeMethod

    @abstractmethod
    async def probe(self, address: str, timeout: float, sequence: int = 0) -> float:
        """
        Send one probe to an address.

        Returns:
            Round-trip time in milliseconds

        Raises:
            Any exception when the address did not answer in time
        """

    async def probe_n(
        self,
        address: str,
        count: int,
        timeout: float,
        interval: float = 0.0,
    ) -> list[ProbeSample]:
        """
        Probe an address a fixed number of times.

        Args:
            address: IPv4 or IPv6 literal to probe
            count: Number of probes to send
            timeout: Per-probe timeout in seconds
            interval: Minimum spacing in seconds between probe starts

        Returns:
            Exactly `count` samples, in the order they were taken
        """
        loop = asyncio.get_running_loop()
        samples: list[ProbeSample] = []

        for sequence in range(count):
            started = loop.time()
            try:
                elapsed_ms = await self.probe(address, timeout, sequence)
                samples.append(ProbeSample.success(elapsed_ms))
            except asyncio.TimeoutError:
                samples.append(ProbeSample.failure(f"timed out after {timeout}s"))
            except Exception as e:
                # unreachable, host down and permission errors all count as loss
                samples.append(ProbeSample.failure(str(e) or type(e).__name__))

            if interval > 0 and sequence < count - 1:
                remaining = interval - (loop.time() - started)
                if remaining > 0:
                    await asyncio.sleep(remaining)

        failed = sum(1 for s in samples if not s.ok)
        logger.debug("%s: %d/%d probes failed (%s)", address, failed, count, self.method.value)
        return samples

    async def close(self):
        """Release prober resources."""


class IcmpProber(BaseProber):
    """
    ICMP echo request/reply, sent through scapy.

    Replies are matched on the echo identifier, so every prober gets its
    own; one instance should probe a single address run at a time.
    """

    method = ProbeMethod.ICMP

    def __init__(self):
        self.identifier = next(_identifiers) & 0xFFFF

    def _build_packet(self, address: str, sequence: int):
        if ipaddress.ip_address(address).version == 6:
            return IPv6(dst=address) / ICMPv6EchoRequest(
                id=self.identifier, seq=sequence, data=ICMP_PAYLOAD,
            )
        return IP(dst=address) / ICMP(id=self.identifier, seq=sequence) / ICMP_PAYLOAD

    @staticmethod
    def _is_echo_reply(reply) -> bool:
        if reply.haslayer(ICMPv6EchoReply):
            return True
        return reply.haslayer(ICMP) and reply[ICMP].type == 0

    def _send(self, address: str, timeout: float, sequence: int) -> float:
        ans, _ = sr(self._build_packet(address, sequence), timeout=timeout, verbose=0)

        if not ans:
            raise ProbeFailed(f"no reply within {timeout}s")
        sent, reply = ans[0]
        if not self._is_echo_reply(reply):
            raise ProbeFailed(f"unexpected reply: {reply.summary()}")
        # send and capture timestamps recorded by scapy
        return float(reply.time - sent.sent_time) * 1000

    async def probe(self, address: str, timeout: float, sequence: int = 0) -> float:
        """Send one echo request from a worker thread."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            lambda: self._send(address, timeout, sequence),
        )


class TcpProber(BaseProber):
    """TCP connect time to a fixed port."""

    method = ProbeMethod.TCP

    def __init__(self, port: int = 443):
        """
        Initialize TCP prober.

        Args:
            port: Port to connect to on the probed address
        """
        self.port = port

    async def probe(self, address: str, timeout: float, sequence: int = 0) -> float:
        """Open and immediately close a TCP connection."""
        start = time.perf_counter_ns()
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(address, self.port),
            timeout=timeout,
        )
        end = time.perf_counter_ns()

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass

        return (end - start) / 1_000_000


def create_prober(method: ProbeMethod, port: int = 443) -> BaseProber:
    """
    Create a prober instance for the given method.

    Args:
        method: Probe implementation to use
        port: Target port for TCP probes

    Returns:
        Appropriate prober instance
    """
    if method == ProbeMethod.ICMP:
        return IcmpProber()
    elif method == ProbeMethod.TCP:
        return TcpProber(port)
    else:
        raise ValueError(f"Unknown probe method: {method}")
