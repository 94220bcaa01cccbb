"""Pytest configuration and fixtures."""

from datetime import datetime

import pytest

from dohprobe.config import QueryConfig
from dohprobe.models import (
    DNSRecord,
    ErrorKind,
    ProviderResult,
    Report,
    RecordType,
    RequestKind,
    ResolverProfile,
)


@pytest.fixture
def json_profile() -> ResolverProfile:
    """Provider using the JSON API."""
    return ResolverProfile(
        id="1.1.1.1",
        endpoint="https://1.1.1.1/dns-query",
        kind=RequestKind.JSON,
    )


@pytest.fixture
def wire_profile() -> ResolverProfile:
    """Provider using RFC 8484 wire format."""
    return ResolverProfile(
        id="cloudflare",
        endpoint="https://cloudflare-dns.com/dns-query",
        kind=RequestKind.STANDARD,
    )


@pytest.fixture
def profiles() -> list[ResolverProfile]:
    """Three providers in configuration order."""
    return [
        ResolverProfile(id="1.1.1.1", endpoint="https://1.1.1.1/dns-query", kind=RequestKind.JSON),
        ResolverProfile(id="9.9.9.9", endpoint="https://9.9.9.9:5053/dns-query", kind=RequestKind.JSON),
        ResolverProfile(id="aliyun", endpoint="https://dns.alidns.com/resolve", kind=RequestKind.JSON),
    ]


@pytest.fixture
def fast_config() -> QueryConfig:
    """Default settings without the pause between probes."""
    return QueryConfig(probe_interval=0.0)


@pytest.fixture
def sample_report(profiles) -> Report:
    """Report with one reachable, one unreachable and one failed provider."""
    ok_record = DNSRecord(name="github.com", record_type=1, ttl=60, address="192.30.255.113")
    return Report(
        hostname="github.com",
        record_type=RecordType.A,
        results=(
            ProviderResult(
                profile=profiles[0],
                record=ok_record,
                avg_latency_ms=180.0,
                loss_percent=0.0,
                samples_sent=10,
                samples_ok=10,
                min_latency_ms=170.0,
                max_latency_ms=190.0,
                jitter_ms=20.0,
                resolve_ms=12.0,
                records=(ok_record,),
            ),
            ProviderResult(
                profile=profiles[1],
                record=None,
                avg_latency_ms=None,
                loss_percent=100.0,
                error=ErrorKind.RESOLUTION_FAILED,
                error_message="HTTP 500",
            ),
            ProviderResult(
                profile=profiles[2],
                record=DNSRecord(name="github.com", record_type=1, ttl=30, address="20.205.243.166"),
                avg_latency_ms=None,
                loss_percent=100.0,
                samples_sent=10,
                samples_ok=0,
            ),
        ),
        started_at=datetime(2024, 1, 1, 12, 0, 0),
        completed_at=datetime(2024, 1, 1, 12, 0, 10),
    )
