"""
Per-provider run: resolve through one DoH provider, then probe the answer.

ProviderRunner.run never raises for resolution or probe problems; every
outcome is folded into the returned ProviderResult.
"""

import logging

from .config import QueryConfig
from .doh_client import DoHClient
from .models import ErrorKind, ProviderResult, Resolution, ResolverProfile
from .prober import BaseProber
from .statistics import StatisticsEngine


logger = logging.getLogger(__name__)


class ProviderRunner:
    """Resolves a hostname through one provider and probes the first address."""

    def __init__(
        self,
        client: DoHClient,
        prober: BaseProber,
        config: QueryConfig,
    ):
        """
        Initialize the runner.

        Args:
            client: DoH client used for the lookup
            prober: Prober used against the resolved address
            config: Probe count, timeouts and interval
        """
        self.client = client
        self.prober = prober
        self.config = config

    async def run(self, hostname: str, profile: ResolverProfile) -> ProviderResult:
        """
        Resolve and probe.

        Args:
            hostname: Name to resolve
            profile: Provider to resolve it through

        Returns:
            ProviderResult; on lookup failure the record is None, the
            error is set and loss is 100
        """
        resolution = None
        try:
            resolution = await self.client.resolve(
                hostname,
                profile,
                timeout=self.config.resolve_timeout,
            )
            return await self._run(hostname, profile, resolution)
        except Exception as e:
            logger.exception("%s: unexpected failure while resolving %s", profile.id, hostname)
            return ProviderResult(
                profile=profile,
                record=None,
                avg_latency_ms=None,
                loss_percent=100.0,
                error=ErrorKind.RESOLUTION_FAILED,
                error_message=str(e) or type(e).__name__,
                resolve_ms=resolution.elapsed_ms if resolution else None,
                records=tuple(resolution.records) if resolution else (),
            )

    async def _run(self, hostname: str, profile: ResolverProfile, resolution: Resolution) -> ProviderResult:
        if not resolution.is_success:
            return ProviderResult(
                profile=profile,
                record=None,
                avg_latency_ms=None,
                loss_percent=100.0,
                error=resolution.error or ErrorKind.NO_RECORDS,
                error_message=resolution.message,
                resolve_ms=resolution.elapsed_ms,
            )

        # Only the first answer is probed and reported
        record = resolution.records[0]

        samples = await self.prober.probe_n(
            record.address,
            self.config.probe_count,
            self.config.probe_timeout,
            interval=self.config.probe_interval,
        )
        summary = StatisticsEngine.summarize_samples(samples)

        logger.info(
            "%s: %s -> %s, loss %.0f%%",
            profile.id, hostname, record.address, summary.loss_percent,
        )

        return ProviderResult(
            profile=profile,
            record=record,
            avg_latency_ms=summary.avg_latency_ms,
            loss_percent=summary.loss_percent,
            samples_sent=summary.sent,
            samples_ok=summary.received,
            min_latency_ms=summary.min_latency_ms,
            max_latency_ms=summary.max_latency_ms,
            jitter_ms=summary.jitter_ms,
            resolve_ms=resolution.elapsed_ms,
            records=tuple(resolution.records),
        )
