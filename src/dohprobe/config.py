"""
Query configuration.

Probe count, timeouts and the looked-up record type are plain settings
with defaults matching the classic `ping` sampling (10 probes, 1s apart).
"""

from dataclasses import dataclass

from .models import ProbeMethod, RecordType


DEFAULT_PROBE_COUNT = 10
DEFAULT_RESOLVE_TIMEOUT = 5.0
DEFAULT_PROBE_TIMEOUT = 1.0
DEFAULT_PROBE_INTERVAL = 1.0
DEFAULT_TCP_PORT = 443

HTTP_METHODS = ("GET", "POST")


@dataclass(frozen=True)
class QueryConfig:
    """Settings shared by every provider in one run."""
    record_type: RecordType = RecordType.A
    resolve_timeout: float = DEFAULT_RESOLVE_TIMEOUT
    probe_count: int = DEFAULT_PROBE_COUNT
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    probe_interval: float = DEFAULT_PROBE_INTERVAL
    probe_method: ProbeMethod = ProbeMethod.ICMP
    tcp_port: int = DEFAULT_TCP_PORT
    http_method: str = "GET"

    def validate(self) -> "QueryConfig":
        """
        Check that every setting is usable.

        Returns:
            The config itself, so it can be chained after construction

        Raises:
            ValueError: If a setting is out of range
        """
        if self.probe_count < 1:
            raise ValueError(f"probe count must be at least 1, got {self.probe_count}")
        if self.resolve_timeout <= 0:
            raise ValueError(f"resolve timeout must be positive, got {self.resolve_timeout}")
        if self.probe_timeout <= 0:
            raise ValueError(f"probe timeout must be positive, got {self.probe_timeout}")
        if self.probe_interval < 0:
            raise ValueError(f"probe interval cannot be negative, got {self.probe_interval}")
        if not 0 < self.tcp_port < 65536:
            raise ValueError(f"invalid TCP port: {self.tcp_port}")
        if self.http_method.upper() not in HTTP_METHODS:
            raise ValueError(f"HTTP method must be one of {HTTP_METHODS}, got {self.http_method}")
        return self
