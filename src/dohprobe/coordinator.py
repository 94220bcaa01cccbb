"""
Query coordinator.

Runs one ProviderRunner per configured provider concurrently and joins
them into a Report whose order follows the provider list.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from .config import QueryConfig
from .doh_client import DoHClient
from .models import ProviderResult, Report, ResolverProfile
from .prober import BaseProber, create_prober
from .runner import ProviderRunner


logger = logging.getLogger(__name__)

# Type for progress callback: (provider id, completed, total)
ProgressCallback = Callable[[str, int, int], None]


class QueryCoordinator:
    """
    Fans a hostname out to several DoH providers.

    Each provider gets its own task and its own result slot, so one
    slow or failing provider never hides the others.
    """

    def __init__(
        self,
        config: Optional[QueryConfig] = None,
        client: Optional[DoHClient] = None,
        prober: Optional[BaseProber] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            config: Query settings (defaults if None)
            client: DoH client to share across providers
            prober: Prober to share across providers (a new one per
                provider if None)
        """
        self.config = (config or QueryConfig()).validate()
        self.client = client or DoHClient(
            record_type=self.config.record_type,
            timeout=self.config.resolve_timeout,
            http_method=self.config.http_method,
        )
        self.prober = prober

    def _create_runner(self) -> ProviderRunner:
        # ICMP replies are told apart by echo identifier, so concurrent
        # providers must not share a prober
        prober = self.prober or create_prober(self.config.probe_method, self.config.tcp_port)
        return ProviderRunner(self.client, prober, self.config)

    async def run(
        self,
        hostname: str,
        profiles: list[ResolverProfile],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Report:
        """
        Resolve and probe a hostname through every provider.

        Args:
            hostname: Name to resolve
            profiles: Providers, in the order the report should list them
            progress_callback: Optional callback invoked as providers finish

        Returns:
            Report with exactly one result per profile, in input order
        """
        started_at = datetime.now()
        total = len(profiles)
        completed = 0

        async def run_one(profile: ResolverProfile) -> ProviderResult:
            nonlocal completed
            runner = self._create_runner()
            try:
                result = await runner.run(hostname, profile)
            finally:
                if runner.prober is not self.prober:
                    await runner.prober.close()
            completed += 1
            if progress_callback:
                progress_callback(profile.id, completed, total)
            return result

        logger.debug("querying %d providers for %s", total, hostname)
        results = await asyncio.gather(*(run_one(p) for p in profiles))

        return Report(
            hostname=hostname,
            record_type=self.config.record_type,
            results=tuple(results),
            started_at=started_at,
            completed_at=datetime.now(),
        )

    async def close(self):
        """Close the DoH client and prober."""
        await self.client.close()
        if self.prober is not None:
            await self.prober.close()

    async def __aenter__(self) -> "QueryCoordinator":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
