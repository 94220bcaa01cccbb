"""
Data models for dohprobe.

Defines structured types for resolver profiles, decoded DNS records,
probe samples and the per-provider report rows.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class RequestKind(Enum):
    """How a DoH provider expects its queries to be encoded."""
    STANDARD = "standard"  # RFC 8484 application/dns-message
    JSON = "json"          # application/dns-json API


class RecordType(Enum):
    """Address record types that can be looked up."""
    A = "A"
    AAAA = "AAAA"

    @property
    def code(self) -> int:
        """Numeric RR type code."""
        return 1 if self is RecordType.A else 28


class ErrorKind(Enum):
    """Failure categories surfaced in a provider result."""
    RESOLUTION_FAILED = "resolution_failed"
    NO_RECORDS = "no_records"
    PROBE_TIMEOUT = "probe_timeout"


class ProbeMethod(Enum):
    """Reachability probe implementations."""
    ICMP = "icmp"
    TCP = "tcp"


@dataclass(frozen=True)
class ResolverProfile:
    """Static description of one DoH provider."""
    id: str
    endpoint: str
    kind: RequestKind = RequestKind.STANDARD
    description: Optional[str] = None


@dataclass(frozen=True)
class DNSRecord:
    """One address record decoded from a DoH answer."""
    name: str
    record_type: int
    ttl: int
    address: str


@dataclass(frozen=True)
class ProbeSample:
    """Outcome of a single reachability probe."""
    elapsed_ms: Optional[float]
    ok: bool
    kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, elapsed_ms: float) -> "ProbeSample":
        return cls(elapsed_ms=elapsed_ms, ok=True)

    @classmethod
    def failure(cls, error: str) -> "ProbeSample":
        return cls(elapsed_ms=None, ok=False, kind=ErrorKind.PROBE_TIMEOUT, error=error)


@dataclass
class Resolution:
    """Result of one DoH lookup: either records or an error kind."""
    records: list[DNSRecord] = field(default_factory=list)
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    elapsed_ms: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if at least one address record was decoded."""
        return self.error is None and bool(self.records)


@dataclass(frozen=True)
class ProviderResult:
    """Aggregated outcome for one provider within a report."""
    profile: ResolverProfile
    record: Optional[DNSRecord]
    avg_latency_ms: Optional[float]
    loss_percent: float
    error: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    # Probe details
    samples_sent: int = 0
    samples_ok: int = 0
    min_latency_ms: Optional[float] = None
    max_latency_ms: Optional[float] = None
    jitter_ms: Optional[float] = None

    # Resolution details
    resolve_ms: Optional[float] = None
    records: tuple[DNSRecord, ...] = ()

    @property
    def is_success(self) -> bool:
        """A provider succeeded if it resolved an address."""
        return self.error is None and self.record is not None

    @property
    def address(self) -> Optional[str]:
        return self.record.address if self.record else None


@dataclass
class Report:
    """Ordered results for one hostname across all configured providers."""
    hostname: str
    record_type: RecordType
    results: tuple[ProviderResult, ...]
    started_at: datetime
    completed_at: datetime

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    @property
    def duration_seconds(self) -> float:
        """Total wall-clock time of the run in seconds."""
        return (self.completed_at - self.started_at).total_seconds()
