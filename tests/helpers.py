"""Test doubles and builders shared by the test modules."""

import asyncio
from typing import Callable, Optional

import dns.message
import dns.name
import dns.rcode
import dns.rrset
import httpx

from dohprobe.models import DNSRecord, ErrorKind, ProbeMethod, Resolution
from dohprobe.prober import BaseProber


class ScriptedProber(BaseProber):
    """Prober whose outcomes are fixed per address.

    Each outcome is a latency in ms or an exception instance to raise.
    """

    method = ProbeMethod.TCP

    def __init__(self, outcomes: Optional[dict] = None, default=10.0):
        self.outcomes = outcomes or {}
        self.default = default
        self.calls: list[tuple[str, int]] = []
        self.closed = False

    async def probe(self, address: str, timeout: float, sequence: int = 0) -> float:
        self.calls.append((address, sequence))
        script = self.outcomes.get(address, [])
        outcome = script[sequence] if sequence < len(script) else self.default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


class FakeDoHClient:
    """Stands in for DoHClient with canned resolutions per provider id."""

    def __init__(self, resolutions: dict, delays: Optional[dict] = None):
        self.resolutions = resolutions
        self.delays = delays or {}
        self.calls: list[str] = []
        self.closed = False

    async def resolve(self, hostname, profile, timeout=None):
        self.calls.append(profile.id)
        await asyncio.sleep(self.delays.get(profile.id, 0))
        resolution = self.resolutions[profile.id]
        if isinstance(resolution, BaseException):
            raise resolution
        return resolution

    async def close(self):
        self.closed = True


def make_wire_answer(
    hostname: str,
    addresses: list[str],
    rdtype: str = "A",
    ttl: int = 300,
    rcode: int = dns.rcode.NOERROR,
    cname: Optional[str] = None,
) -> bytes:
    """Build a wire-format DNS response for tests."""
    query = dns.message.make_query(hostname, rdtype)
    response = dns.message.make_response(query)
    response.set_rcode(rcode)

    owner = dns.name.from_text(hostname)
    if cname:
        response.answer.append(dns.rrset.from_text(owner, ttl, "IN", "CNAME", cname))
        owner = dns.name.from_text(cname)
    if addresses:
        response.answer.append(dns.rrset.from_text(owner, ttl, "IN", rdtype, *addresses))
    return response.to_wire()


def mock_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """Async httpx client that answers every request with `handler`."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def resolved(address: str, name: str = "github.com", ttl: int = 60) -> Resolution:
    return Resolution(
        records=[DNSRecord(name=name, record_type=1, ttl=ttl, address=address)],
        elapsed_ms=12.0,
    )


def failed(kind: ErrorKind = ErrorKind.RESOLUTION_FAILED, message: str = "HTTP 500") -> Resolution:
    return Resolution(error=kind, message=message, elapsed_ms=3.0)


