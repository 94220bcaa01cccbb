"""
dohprobe - compare DNS-over-HTTPS resolvers.

Resolves a hostname through several DoH providers concurrently and
measures how reachable each returned address is.
"""

__version__ = "0.1.0"

from .config import QueryConfig
from .coordinator import QueryCoordinator
from .doh_client import DoHClient
from .models import (
    DNSRecord,
    ErrorKind,
    ProbeSample,
    ProviderResult,
    Report,
    RequestKind,
    ResolverProfile,
)
from .prober import create_prober
from .runner import ProviderRunner

__all__ = [
    "__version__",
    "DNSRecord",
    "DoHClient",
    "ErrorKind",
    "ProbeSample",
    "ProviderResult",
    "ProviderRunner",
    "QueryConfig",
    "QueryCoordinator",
    "Report",
    "RequestKind",
    "ResolverProfile",
    "create_prober",
]
